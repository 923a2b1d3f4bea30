"""
Process-wide dependencies of the Lambda entry points.

The record store, the event publisher and the observability bundle are built
once per execution environment (cold start) and injected into the contract
service, so warm invocations reuse the same boto3 clients.
"""

from typing import Optional

from contracts_service.dal import get_contract_store
from contracts_service.events.event_publisher import ContractEventPublisher
from contracts_service.handlers.models.env_vars import ContractsHandlerEnvVars
from contracts_service.handlers.utils.observability import Observability, get_observability
from contracts_service.logic.contract_service import ContractService


def build_contract_service(
    env_vars: ContractsHandlerEnvVars,
    observability: Optional[Observability] = None,
) -> ContractService:
    """
    Wire the contract service from validated configuration.

    Args:
        env_vars: Validated handler environment variables
        observability: Logger, tracer and metrics bundle, the process-wide one by default

    Returns:
        Contract service bound to the configured table and event bus
    """
    observability = observability or get_observability()

    store = get_contract_store(
        table_name=env_vars.DYNAMODB_TABLE,
        endpoint_url=env_vars.DYNAMODB_ENDPOINT,
    )
    publisher = ContractEventPublisher(
        event_bus_name=env_vars.EVENT_BUS,
        source=env_vars.SERVICE_NAMESPACE,
        region_name=env_vars.AWS_REGION,
    )

    observability.logger.info("Contract service dependencies initialized", extra={
        "table_name": env_vars.DYNAMODB_TABLE,
        "event_bus_name": env_vars.EVENT_BUS,
        "service_namespace": env_vars.SERVICE_NAMESPACE,
    })

    return ContractService(store=store, publisher=publisher, observability=observability)
