"""
Service Models Package

This package contains the Pydantic models used throughout the service,
including input validation models, output models, and the Contract domain model.
"""

from .contract import ACTIVE_STATUSES, TERMINAL_STATUSES, Contract, ContractStatus
from .input import ContractMessage, CreateContractRequest, OperationKind, UpdateContractRequest
from .output import BatchSummary, ContractOutput

__all__ = [
    # Input models
    "ContractMessage",
    "CreateContractRequest",
    "UpdateContractRequest",
    "OperationKind",

    # Output models
    "BatchSummary",
    "ContractOutput",

    # Domain models
    "Contract",
    "ContractStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
]
