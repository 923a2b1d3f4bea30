"""
Input models for request validation using Pydantic.

This module defines the payloads accepted by the contracts service, both from
the SQS queue and from the REST API, and the operation kinds a message carries.
"""

from enum import Enum
from typing import Annotated, Optional

from aws_lambda_powertools.utilities.data_classes.sqs_event import SQSRecord
from pydantic import BaseModel, Field, field_validator

OPERATION_ATTRIBUTE = 'HttpMethod'


class OperationKind(str, Enum):
    """Operation requested by an inbound message, keyed by its HttpMethod attribute."""

    CREATE = 'POST'
    UPDATE = 'PUT'


class CreateContractRequest(BaseModel):
    """Request model for creating a new contract."""

    property_id: Annotated[str, Field(
        min_length=1,
        description='Property the contract is drafted for',
        examples=['usa/anytown/main-street/111']
    )]

    address: Annotated[str, Field(
        min_length=1,
        description='Postal address of the property',
        examples=['1 Main St']
    )]

    seller_name: Annotated[str, Field(
        min_length=1,
        description='Name of the seller',
        examples=['Jane Doe']
    )]

    @field_validator('property_id', 'address', 'seller_name')
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Reject values made only of whitespace."""
        if not v.strip():
            raise ValueError('must not be blank')
        return v


class UpdateContractRequest(BaseModel):
    """Request model for approving an existing contract."""

    property_id: Annotated[str, Field(
        min_length=1,
        description='Property whose contract is approved',
        examples=['usa/anytown/main-street/111']
    )]

    contract_id: Annotated[Optional[str], Field(
        description='Contract identifier as known by the caller'
    )] = None


class ContractMessage(BaseModel):
    """A single inbound change request taken from the queue."""

    message_id: Annotated[str, Field(
        description='Queue message identifier'
    )]

    body: Annotated[str, Field(
        description='Raw message body, expected to be a JSON object'
    )]

    operation: Annotated[Optional[str], Field(
        description='Value of the HttpMethod message attribute'
    )] = None

    @classmethod
    def from_sqs_record(cls, record: SQSRecord) -> 'ContractMessage':
        """
        Build a message from an SQS record.

        Args:
            record: Powertools SQS record data class

        Returns:
            ContractMessage carrying the body and the operation attribute
        """
        # SQSMessageAttributes.__getitem__ returns None for a missing key
        attribute = record.message_attributes[OPERATION_ATTRIBUTE]
        operation = attribute.string_value if attribute else None
        return cls(message_id=record.message_id, body=record.body or '', operation=operation)

    def operation_kind(self) -> Optional[OperationKind]:
        """Return the operation kind, or None when it is missing or unsupported."""
        try:
            return OperationKind(self.operation)
        except ValueError:
            return None
