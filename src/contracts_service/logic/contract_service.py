"""
Business Logic Layer for the contract lifecycle.

This module holds the contract state machine: it derives the next state of a
contract, issues the matching conditional write through the record store and
announces the transition on the event bus. The store decides atomically whether
the transition is allowed, so no client-side locking is needed.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from aws_lambda_powertools.metrics import MetricUnit

from contracts_service.dal import ContractStore
from contracts_service.dal.dynamodb_handler import ConditionalCheckFailedError
from contracts_service.events.event_publisher import ContractEventPublisher
from contracts_service.handlers.utils.errors import ConflictError, ContractNotFoundError, ErrorContext
from contracts_service.handlers.utils.observability import Observability
from contracts_service.logic.interceptors import InterceptorChain, default_interceptors
from contracts_service.models.contract import TERMINAL_STATUSES, Contract, ContractStatus, predecessors_of
from contracts_service.models.input import CreateContractRequest, UpdateContractRequest

CONTRACT_CREATED_EVENT = "Contract created"
CONTRACT_UPDATED_EVENT = "Contract updated"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ContractService:
    """Business logic service for contract creation and approval."""

    def __init__(
        self,
        store: ContractStore,
        publisher: ContractEventPublisher,
        observability: Observability,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
        interceptors: Optional[InterceptorChain] = None,
    ):
        """
        Initialize contract service.

        Args:
            store: Record store holding one contract per property
            publisher: Publisher for contract events
            observability: Logger, tracer and metrics used by this service
            clock: Returns the current UTC time, defaults to ``utc_now``
            id_factory: Returns a new contract id, defaults to a random UUID
            interceptors: Chain wrapped around every operation
        """
        self.store = store
        self.publisher = publisher
        self.logger = observability.logger
        self.tracer = observability.tracer
        self.metrics = observability.metrics
        self.clock = clock or utc_now
        self.id_factory = id_factory or (lambda: str(uuid4()))
        self.interceptors = interceptors or default_interceptors(self.logger, self.tracer, self.metrics)

    def _timestamp(self) -> str:
        return self.clock().isoformat(timespec='microseconds')

    def create_contract(self, request: CreateContractRequest, context: ErrorContext) -> Contract:
        """
        Create a DRAFT contract for a property.

        The write succeeds only if the property has no contract or its contract is
        in a terminal status.

        Raises:
            ConflictError: If an active contract exists for the property
            StoreError: If the store fails
            PublishError: If the event cannot be published after the write
        """
        return self.interceptors.run('create_contract', lambda: self._create_contract(request, context))

    def update_contract(self, request: UpdateContractRequest, context: ErrorContext) -> Contract:
        """
        Approve the DRAFT contract of a property.

        Raises:
            ConflictError: If the property has no contract or it is not in DRAFT
            StoreError: If the store fails
            PublishError: If the event cannot be published after the write
        """
        return self.interceptors.run('update_contract', lambda: self._update_contract(request, context))

    def get_contract(self, property_id: str, context: ErrorContext) -> Contract:
        """
        Get the contract of a property.

        Raises:
            ContractNotFoundError: If the property has no contract
            StoreError: If the store fails
        """
        return self.interceptors.run('get_contract', lambda: self._get_contract(property_id, context))

    def _create_contract(self, request: CreateContractRequest, context: ErrorContext) -> Contract:
        now = self._timestamp()
        contract = Contract(
            property_id=request.property_id,
            contract_id=self.id_factory(),
            address=request.address,
            seller_name=request.seller_name,
            contract_status=ContractStatus.DRAFT,
            contract_created=now,
            contract_last_modified_on=now,
        )
        item = contract.to_item()

        self.tracer.put_annotation(key="property_id", value=contract.property_id)

        try:
            self.store.put_if_absent_or_terminal(
                item=item,
                terminal_statuses=TERMINAL_STATUSES,
                context=context,
            )
        except ConditionalCheckFailedError as e:
            raise ConflictError(
                property_id=contract.property_id,
                message=f"An active contract already exists for property {contract.property_id}",
                context=context,
            ) from e

        self.metrics.add_metric(name="ContractCreated", unit=MetricUnit.Count, value=1)
        self.logger.info("Inserted record for contract", extra={"record": item})
        self.tracer.put_annotation(key="ContractStatus", value=contract.contract_status.value)

        self._publish(CONTRACT_CREATED_EVENT, item, context)
        return contract

    def _update_contract(self, request: UpdateContractRequest, context: ErrorContext) -> Contract:
        new_status = ContractStatus.APPROVED
        updates: Dict[str, Any] = {
            'contract_status': new_status.value,
            'contract_last_modified_on': self._timestamp(),
        }

        self.tracer.put_annotation(key="property_id", value=request.property_id)

        try:
            item = self.store.update_if_current_status(
                property_id=request.property_id,
                expected_statuses=predecessors_of(new_status),
                updates=updates,
                context=context,
            )
        except ConditionalCheckFailedError as e:
            raise ConflictError(
                property_id=request.property_id,
                message=f"No contract in DRAFT status found for property {request.property_id}",
                context=context,
            ) from e

        contract = Contract.from_item(item)

        self.metrics.add_metric(name="ContractUpdated", unit=MetricUnit.Count, value=1)
        self.logger.info("Updated record for contract", extra={
            "record": item,
            "contract_id": request.contract_id,
        })
        self.tracer.put_annotation(key="ContractStatus", value=contract.contract_status.value)

        self._publish(CONTRACT_UPDATED_EVENT, contract.to_item(), context)
        return contract

    def _get_contract(self, property_id: str, context: ErrorContext) -> Contract:
        item = self.store.get_contract(property_id=property_id, context=context)
        if not item:
            raise ContractNotFoundError(property_id=property_id, context=context)
        return Contract.from_item(item)

    def _publish(self, event_name: str, record: Dict[str, Any], context: ErrorContext) -> None:
        # The write has already committed; a publish failure is surfaced, not compensated
        result = self.publisher.publish(event_name, record, context=context)
        self.metrics.add_metric(name="ContractEvent", unit=MetricUnit.Count, value=1)
        self.logger.info(f"{event_name} event published", extra={
            "event_id": result.event_id,
            "property_id": record.get('property_id'),
        })
