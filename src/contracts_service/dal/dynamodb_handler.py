"""
Data Access Layer (DAL) for the contracts DynamoDB table.

This module implements the record store used by the contract state machine:
compare-and-swap style puts and updates guarded by condition expressions on the
``contract_status`` attribute, with DynamoDB errors translated into service errors.
"""

import functools
import json
from typing import Any, Dict, Iterable, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr, ConditionBase
from botocore.exceptions import BotoCoreError, ClientError

from contracts_service.handlers.utils.errors import ErrorContext, ErrorSeverity, StoreError
from contracts_service.handlers.utils.observability import logger, tracer
from contracts_service.models.contract import ContractStatus

PARTITION_KEY = 'property_id'


class ConditionalCheckFailedError(Exception):
    """Raised when the condition guarding a write does not hold for the stored item."""

    def __init__(self, table_name: str, key: Dict[str, Any], condition: str):
        super().__init__(f"Conditional check failed: {condition}")
        self.table_name = table_name
        self.key = key
        self.condition = condition


def _status_condition(statuses: Iterable[ContractStatus]) -> ConditionBase:
    values: List[str] = sorted(status.value for status in statuses)
    if not values:
        raise ValueError("At least one status is required for a status condition")
    if len(values) == 1:
        return Attr('contract_status').eq(values[0])
    return Attr('contract_status').is_in(values)


class DynamoDBContractStore:
    """DynamoDB record store with condition-guarded writes."""

    def __init__(
        self,
        table_name: str,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
    ):
        """
        Initialize the contract store.

        Args:
            table_name: Name of the DynamoDB table
            region_name: AWS region name
            endpoint_url: DynamoDB endpoint URL (for local testing)
        """
        self.table_name = table_name

        session_config = {}
        if region_name:
            session_config['region_name'] = region_name
        if endpoint_url:
            session_config['endpoint_url'] = endpoint_url

        self.dynamodb = boto3.resource('dynamodb', **session_config)
        self.table = self.dynamodb.Table(table_name)

        logger.info("Contract store initialized", extra={
            "table_name": table_name,
            "region_name": region_name,
            "endpoint_url": endpoint_url,
        })

    def _handle_dynamodb_errors(self, operation: str, key: Dict[str, Any], context: Optional[ErrorContext] = None):
        """Decorator translating DynamoDB failures into service errors."""

        def decorator(func):
            @functools.wraps(func)
            def wrapper(*args, **kwargs):
                try:
                    return func(*args, **kwargs)

                except ClientError as e:
                    error_code = e.response['Error']['Code']
                    error_message = e.response['Error'].get('Message', '')

                    if error_code == 'ConditionalCheckFailedException':
                        logger.info(f"DynamoDB {operation} condition not met", extra={
                            "table_name": self.table_name,
                            "key": key,
                        })
                        raise ConditionalCheckFailedError(
                            table_name=self.table_name,
                            key=key,
                            condition=error_message or "Item condition check failed",
                        ) from e

                    logger.error(f"DynamoDB {operation} error", extra={
                        "error_code": error_code,
                        "error_message": error_message,
                        "table_name": self.table_name,
                        "operation": operation,
                    })

                    if error_code == 'ResourceNotFoundException':
                        raise StoreError(
                            message=f"Table {self.table_name} not found",
                            operation=operation,
                            table_name=self.table_name,
                            error_code="TABLE_NOT_FOUND",
                            severity=ErrorSeverity.CRITICAL,
                            context=context,
                        ) from e
                    if error_code in ('ProvisionedThroughputExceededException', 'ThrottlingException'):
                        raise StoreError(
                            message="DynamoDB throttling detected",
                            operation=operation,
                            table_name=self.table_name,
                            error_code="THROTTLING_ERROR",
                            context=context,
                            retry_after=30,
                        ) from e
                    raise StoreError(
                        message=f"DynamoDB error: {error_message}",
                        operation=operation,
                        table_name=self.table_name,
                        error_code=f"DYNAMODB_{error_code}",
                        context=context,
                    ) from e

                except BotoCoreError as e:
                    logger.error(f"DynamoDB connection error during {operation}", extra={
                        "error": str(e),
                        "table_name": self.table_name,
                    })
                    raise StoreError(
                        message=f"Database connection error: {str(e)}",
                        operation=operation,
                        table_name=self.table_name,
                        error_code="DATABASE_CONNECTION_ERROR",
                        context=context,
                    ) from e

            return wrapper
        return decorator

    @tracer.capture_method
    def get_contract(
        self,
        property_id: str,
        context: Optional[ErrorContext] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Get the contract item stored for a property.

        Args:
            property_id: Partition key of the item
            context: Error context for tracing

        Returns:
            Item data or None if not found

        Raises:
            StoreError: If DynamoDB operation fails
        """
        key = {PARTITION_KEY: property_id}

        @self._handle_dynamodb_errors("GetItem", key, context)
        def _get_item():
            response = self.table.get_item(Key=key, ConsistentRead=True)
            return response.get('Item')

        return _get_item()

    @tracer.capture_method
    def put_if_absent_or_terminal(
        self,
        item: Dict[str, Any],
        terminal_statuses: Iterable[ContractStatus],
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Insert a contract unless an active one already exists for its property.

        Args:
            item: Contract item to store
            terminal_statuses: Statuses of an existing item that may be overwritten
            context: Error context for tracing

        Returns:
            The stored item data

        Raises:
            ConditionalCheckFailedError: If an active contract exists for the property
            StoreError: If DynamoDB operation fails
        """
        key = {PARTITION_KEY: item[PARTITION_KEY]}
        condition = Attr(PARTITION_KEY).not_exists() | _status_condition(terminal_statuses)

        @self._handle_dynamodb_errors("PutItem", key, context)
        def _put_item():
            self.table.put_item(Item=item, ConditionExpression=condition)

            logger.info("Contract item stored", extra={
                "table_name": self.table_name,
                "key": key,
                "item_size": len(json.dumps(item, default=str)),
            })
            return item

        return _put_item()

    @tracer.capture_method
    def update_if_current_status(
        self,
        property_id: str,
        expected_statuses: Iterable[ContractStatus],
        updates: Dict[str, Any],
        context: Optional[ErrorContext] = None,
    ) -> Dict[str, Any]:
        """
        Update a contract if its stored status is one of the expected statuses.

        Args:
            property_id: Partition key of the item
            expected_statuses: Statuses the stored item must currently have
            updates: Attribute values to set
            context: Error context for tracing

        Returns:
            The full item after the update

        Raises:
            ConditionalCheckFailedError: If the item is absent or in another status
            StoreError: If DynamoDB operation fails
        """
        if not updates:
            raise ValueError("updates must not be empty")

        key = {PARTITION_KEY: property_id}
        condition = Attr(PARTITION_KEY).exists() & _status_condition(expected_statuses)

        # Placeholder prefixes must not collide with the #n/:v names boto3 generates for the condition
        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        assignments: List[str] = []
        for index, (attribute, value) in enumerate(updates.items()):
            names[f'#upd{index}'] = attribute
            values[f':upd{index}'] = value
            assignments.append(f'#upd{index} = :upd{index}')

        @self._handle_dynamodb_errors("UpdateItem", key, context)
        def _update_item():
            response = self.table.update_item(
                Key=key,
                UpdateExpression='SET ' + ', '.join(assignments),
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues='ALL_NEW',
            )
            updated_item = response.get('Attributes', {})

            logger.info("Contract item updated", extra={
                "table_name": self.table_name,
                "key": key,
                "updated_attributes": sorted(updates),
            })
            return updated_item

        return _update_item()
