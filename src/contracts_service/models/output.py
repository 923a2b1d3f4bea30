"""
Output models for the contracts service.

This module defines the results returned by the message processor and the
bodies produced by the REST handler.
"""

from typing import Annotated, List

from pydantic import BaseModel, Field

from contracts_service.models.contract import Contract, ContractStatus


class BatchSummary(BaseModel):
    """Result of processing one queue batch."""

    processed: Annotated[int, Field(
        ge=0,
        description='Messages that led to a committed contract transition'
    )] = 0

    skipped: Annotated[int, Field(
        ge=0,
        description='Messages skipped because their operation is not supported'
    )] = 0

    property_ids: Annotated[List[str], Field(
        default_factory=list,
        description='Properties whose contract changed, in processing order'
    )]


class ContractOutput(BaseModel):
    """Response model for a contract returned by the REST API."""

    property_id: Annotated[str, Field(
        description='Property the contract belongs to'
    )]

    contract_id: Annotated[str, Field(
        description='Contract identifier'
    )]

    contract_status: Annotated[ContractStatus, Field(
        description='Current status of the contract'
    )]

    address: Annotated[str, Field(
        description='Postal address of the property'
    )]

    seller_name: Annotated[str, Field(
        description='Name of the seller'
    )]

    contract_created: Annotated[str, Field(
        description='ISO timestamp when the contract was created'
    )]

    contract_last_modified_on: Annotated[str, Field(
        description='ISO timestamp of the last successful transition'
    )]

    @classmethod
    def from_contract(cls, contract: Contract) -> 'ContractOutput':
        return cls(**contract.model_dump())
