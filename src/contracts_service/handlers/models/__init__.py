"""Handler configuration models."""

from contracts_service.handlers.models.env_vars import ContractsHandlerEnvVars, get_handler_env_vars

__all__ = [
    "ContractsHandlerEnvVars",
    "get_handler_env_vars",
]
