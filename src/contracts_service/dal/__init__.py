"""
Data Access Layer (DAL) for the contracts service.

This module provides the record store interface consumed by the contract state
machine and the factory building its DynamoDB implementation.
"""

from typing import Any, Dict, Iterable, Optional, Protocol, runtime_checkable

from contracts_service.handlers.utils.errors import ErrorContext
from contracts_service.models.contract import ContractStatus


@runtime_checkable
class ContractStore(Protocol):
    """Protocol defining the conditional-write contract of the contracts table."""

    def get_contract(
        self,
        property_id: str,
        context: Optional[ErrorContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """Retrieve the contract item stored for a property."""
        ...

    def put_if_absent_or_terminal(
        self,
        item: Dict[str, Any],
        terminal_statuses: Iterable[ContractStatus],
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """Insert the item unless an active contract already exists for its property."""
        ...

    def update_if_current_status(
        self,
        property_id: str,
        expected_statuses: Iterable[ContractStatus],
        updates: Dict[str, Any],
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """Apply the updates if the stored contract is in one of the expected statuses."""
        ...


def get_contract_store(table_name: str, endpoint_url: Optional[str] = None) -> ContractStore:
    """
    Factory function to get the contract store.

    Args:
        table_name: Name of the DynamoDB table
        endpoint_url: DynamoDB endpoint URL (for local testing)

    Returns:
        Contract store instance
    """
    # Import here to avoid circular imports
    from contracts_service.dal.dynamodb_handler import DynamoDBContractStore

    return DynamoDBContractStore(table_name=table_name, endpoint_url=endpoint_url)


__all__ = [
    'ContractStore',
    'get_contract_store',
]
