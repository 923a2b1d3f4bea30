"""
Queue intake loop for contract change requests.

Messages of a batch are handled one at a time, in arrival order. A body that is
not a JSON object, or any failure of the state machine, propagates and aborts the
rest of the batch so the queue redrive policy applies. A message carrying an
unsupported operation is logged and skipped.
"""

import json
from typing import Any, Dict, Iterable, Optional

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import ValidationError as PydanticValidationError

from contracts_service.handlers.utils.errors import (
    ErrorContext,
    ParseError,
    create_error_context,
    validation_error_from_pydantic,
)
from contracts_service.handlers.utils.observability import Observability
from contracts_service.logic.contract_service import ContractService
from contracts_service.models.contract import Contract
from contracts_service.models.input import (
    ContractMessage,
    CreateContractRequest,
    OperationKind,
    UpdateContractRequest,
)
from contracts_service.models.output import BatchSummary


class ContractMessageProcessor:
    """Drives the contract state machine from a batch of queue messages."""

    def __init__(self, service: ContractService, observability: Observability):
        self.service = service
        self.logger = observability.logger
        self.tracer = observability.tracer
        self.metrics = observability.metrics

    def process_batch(self, messages: Iterable[ContractMessage], request_id: str) -> BatchSummary:
        """
        Process a batch of messages sequentially.

        Args:
            messages: Messages in arrival order
            request_id: Invocation request id used in error contexts

        Returns:
            BatchSummary of processed and skipped messages

        Raises:
            ParseError: If a message body is not a JSON object
            BaseServiceError: If a contract operation fails
        """
        summary = BatchSummary()

        for message in messages:
            contract = self.process_message(message, request_id)
            if contract is None:
                summary.skipped += 1
                continue
            summary.processed += 1
            summary.property_ids.append(contract.property_id)
            self.metrics.add_metric(name="MessagesProcessed", unit=MetricUnit.Count, value=1)

        self.logger.info("Batch processed", extra=summary.model_dump())
        return summary

    def process_message(self, message: ContractMessage, request_id: str) -> Optional[Contract]:
        """Dispatch one message, returning the resulting contract or None when skipped."""
        context = create_error_context(
            request_id=request_id,
            operation=f"message:{message.operation}",
            message_id=message.message_id,
        )

        # Parsing precedes dispatch, even for unsupported operations
        payload = self._parse_body(message, context)
        self.tracer.put_metadata(key="Contract", value=payload)

        kind = message.operation_kind()
        if kind is None:
            self.logger.error("Unsupported operation, skipping message", extra={
                "message_id": message.message_id,
                "operation": message.operation,
            })
            self.tracer.put_metadata(key="UnsupportedOperation", value={
                "message_id": message.message_id,
                "operation": message.operation,
            })
            self.metrics.add_metric(name="UnsupportedOperation", unit=MetricUnit.Count, value=1)
            return None

        context.resource_id = payload.get('property_id')

        if kind is OperationKind.CREATE:
            self.logger.info("Creating a contract", extra={"contract": payload})
            return self._create(payload, context)

        self.logger.info("Updating a contract", extra={"contract": payload})
        return self._update(payload, context)

    def _parse_body(self, message: ContractMessage, context: ErrorContext) -> Dict[str, Any]:
        try:
            payload = json.loads(message.body)
        except json.JSONDecodeError as e:
            self._record_parse_failure(message, str(e))
            raise ParseError(message="Error parsing SQS Record", context=context) from e

        if not isinstance(payload, dict):
            self._record_parse_failure(message, "body is not a JSON object")
            raise ParseError(message="Error parsing SQS Record", context=context)

        return payload

    def _record_parse_failure(self, message: ContractMessage, reason: str) -> None:
        self.logger.error("Error parsing SQS Record", extra={
            "message_id": message.message_id,
            "reason": reason,
        })
        self.tracer.put_metadata(key="ContractsParseError", value={
            "message_id": message.message_id,
            "reason": reason,
        })

    def _create(self, payload: Dict[str, Any], context: ErrorContext) -> Contract:
        try:
            request = CreateContractRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e, context) from e
        return self.service.create_contract(request, context)

    def _update(self, payload: Dict[str, Any], context: ErrorContext) -> Contract:
        try:
            request = UpdateContractRequest.model_validate(payload)
        except PydanticValidationError as e:
            raise validation_error_from_pydantic(e, context) from e
        return self.service.update_contract(request, context)
