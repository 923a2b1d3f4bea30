"""
Contract domain model for the business logic layer.

This module defines the Contract entity stored in the contracts table, its
closed set of statuses and the transition table the state machine enforces.
"""

from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, Mapping

from pydantic import BaseModel, Field


class ContractStatus(str, Enum):
    """Contract status enumeration."""

    DRAFT = 'DRAFT'
    APPROVED = 'APPROVED'
    CLOSED = 'CLOSED'
    CANCELLED = 'CANCELLED'
    EXPIRED = 'EXPIRED'


class StatusKind(str, Enum):
    """Whether a status holds the property's contract slot."""

    ACTIVE = 'ACTIVE'
    TERMINAL = 'TERMINAL'


# Every status must be classified here and in ALLOWED_TRANSITIONS.
STATUS_KINDS: Mapping[ContractStatus, StatusKind] = {
    ContractStatus.DRAFT: StatusKind.ACTIVE,
    ContractStatus.APPROVED: StatusKind.ACTIVE,
    ContractStatus.CLOSED: StatusKind.TERMINAL,
    ContractStatus.CANCELLED: StatusKind.TERMINAL,
    ContractStatus.EXPIRED: StatusKind.TERMINAL,
}

# Transitions reachable through this service. Terminal statuses are left only by creating a new contract.
ALLOWED_TRANSITIONS: Mapping[ContractStatus, FrozenSet[ContractStatus]] = {
    ContractStatus.DRAFT: frozenset({ContractStatus.APPROVED}),
    ContractStatus.APPROVED: frozenset(),
    ContractStatus.CLOSED: frozenset(),
    ContractStatus.CANCELLED: frozenset(),
    ContractStatus.EXPIRED: frozenset(),
}


def _check_exhaustive() -> None:
    for table_name, table in (('STATUS_KINDS', STATUS_KINDS), ('ALLOWED_TRANSITIONS', ALLOWED_TRANSITIONS)):
        missing = set(ContractStatus) - set(table)
        if missing:
            raise RuntimeError(
                f"{table_name} does not cover statuses: {sorted(status.value for status in missing)}"
            )


_check_exhaustive()

TERMINAL_STATUSES: FrozenSet[ContractStatus] = frozenset(
    status for status, kind in STATUS_KINDS.items() if kind is StatusKind.TERMINAL
)
ACTIVE_STATUSES: FrozenSet[ContractStatus] = frozenset(
    status for status, kind in STATUS_KINDS.items() if kind is StatusKind.ACTIVE
)


def is_terminal(status: ContractStatus) -> bool:
    """A terminal status frees the property for a new contract."""
    return STATUS_KINDS[status] is StatusKind.TERMINAL


def can_transition(current: ContractStatus, new: ContractStatus) -> bool:
    return new in ALLOWED_TRANSITIONS[current]


def predecessors_of(status: ContractStatus) -> FrozenSet[ContractStatus]:
    """Statuses from which ``status`` may be reached by an update."""
    return frozenset(current for current, targets in ALLOWED_TRANSITIONS.items() if status in targets)


class Contract(BaseModel):
    """Core Contract domain model, one per property."""

    property_id: Annotated[str, Field(
        min_length=1,
        description='Identifier of the property, partition key of the contracts table',
        examples=['usa/anytown/main-street/111']
    )]

    contract_id: Annotated[str, Field(
        min_length=1,
        description='Immutable identifier generated when the contract is created',
        examples=['4781231c-bc25-4f30-8b20-7145f4dd1adb']
    )]

    address: Annotated[str, Field(
        description='Postal address of the property',
        examples=['1 Main St']
    )]

    seller_name: Annotated[str, Field(
        description='Name of the seller',
        examples=['Jane Doe']
    )]

    contract_status: Annotated[ContractStatus, Field(
        description='Current status of the contract'
    )]

    contract_created: Annotated[str, Field(
        description='ISO timestamp when the contract was created'
    )]

    contract_last_modified_on: Annotated[str, Field(
        description='ISO timestamp of the last successful transition'
    )]

    def to_item(self) -> Dict[str, Any]:
        """
        Convert the contract to a DynamoDB item.

        Returns:
            Dictionary representation of the contract
        """
        return self.model_dump(mode='json')

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'Contract':
        """
        Create a Contract instance from a DynamoDB item.

        Items written before a field existed are tolerated with empty values.

        Args:
            item: Item returned by the contracts table

        Returns:
            Contract instance created from the item
        """
        return cls(
            property_id=item['property_id'],
            contract_id=item['contract_id'],
            address=item.get('address', ''),
            seller_name=item.get('seller_name', ''),
            contract_status=ContractStatus(item['contract_status']),
            contract_created=item.get('contract_created', ''),
            contract_last_modified_on=item.get('contract_last_modified_on', ''),
        )

    model_config = {
        'json_schema_extra': {
            'example': {
                'property_id': 'usa/anytown/main-street/111',
                'contract_id': '4781231c-bc25-4f30-8b20-7145f4dd1adb',
                'address': '1 Main St',
                'seller_name': 'Jane Doe',
                'contract_status': 'DRAFT',
                'contract_created': '2024-01-15T10:30:00+00:00',
                'contract_last_modified_on': '2024-01-15T10:30:00+00:00',
            }
        }
    }
