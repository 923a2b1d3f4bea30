"""
Pytest configuration and shared fixtures for the contracts service.

This module provides common test fixtures and configuration used across
unit and integration tests.
"""

import json
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import Mock
from uuid import uuid4

# Handler modules validate configuration and build clients at import time
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "AWS_REGION": "us-east-1",
    "AWS_ACCESS_KEY_ID": "test",
    "AWS_SECRET_ACCESS_KEY": "test",
    "DYNAMODB_TABLE": "test-contracts-table",
    "EVENT_BUS": "test-contracts-bus",
    "SERVICE_NAMESPACE": "TestContractsService",
    "POWERTOOLS_SERVICE_NAME": "test-contracts-service",
    "LOG_LEVEL": "DEBUG",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
})

import boto3
import pytest
from moto import mock_aws

from contracts_service.dal.dynamodb_handler import DynamoDBContractStore
from contracts_service.events.event_publisher import ContractEventPublisher
from contracts_service.handlers.utils.observability import Observability, logger, tracer
from contracts_service.logic.contract_service import ContractService
from contracts_service.models.contract import Contract, ContractStatus

TABLE_NAME = os.environ["DYNAMODB_TABLE"]
EVENT_BUS_NAME = os.environ["EVENT_BUS"]
SERVICE_NAMESPACE = os.environ["SERVICE_NAMESPACE"]
REGION = "us-east-1"


class FakeClock:
    """Clock advancing one second on every reading."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


def make_contract(
    property_id: str = "usa/anytown/main-street/111",
    contract_status: ContractStatus = ContractStatus.DRAFT,
    contract_id: str = "C1",
) -> Contract:
    """Build a contract with fixed timestamps."""
    return Contract(
        property_id=property_id,
        contract_id=contract_id,
        address="1 Main St",
        seller_name="Jane",
        contract_status=contract_status,
        contract_created="2024-01-01T00:00:00.000000+00:00",
        contract_last_modified_on="2024-01-01T00:00:00.000000+00:00",
    )


# AWS fixtures
@pytest.fixture
def aws_mocks():
    """Mock every AWS service for the duration of a test."""
    with mock_aws():
        yield


@pytest.fixture
def contracts_table(aws_mocks):
    """Create a mock contracts table keyed by property_id."""
    dynamodb = boto3.resource("dynamodb", region_name=REGION)

    table = dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[{"AttributeName": "property_id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "property_id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )

    # Wait for table to be created
    table.wait_until_exists()
    yield table


@pytest.fixture
def events_client(aws_mocks):
    """EventBridge client on a mock bus, wrapped so published entries can be inspected."""
    client = boto3.client("events", region_name=REGION)
    client.create_event_bus(Name=EVENT_BUS_NAME)
    return Mock(wraps=client)


def published_entries(events_client: Mock) -> List[Dict[str, Any]]:
    """All entries sent through a wrapped EventBridge client, in order."""
    entries = []
    for call in events_client.put_events.call_args_list:
        entries.extend(call.kwargs["Entries"])
    return entries


@pytest.fixture
def contract_store(contracts_table) -> DynamoDBContractStore:
    return DynamoDBContractStore(table_name=TABLE_NAME, region_name=REGION)


@pytest.fixture
def event_publisher(events_client) -> ContractEventPublisher:
    return ContractEventPublisher(
        event_bus_name=EVENT_BUS_NAME,
        source=SERVICE_NAMESPACE,
        events_client=events_client,
    )


@pytest.fixture
def observability() -> Observability:
    """Real logger and tracer, recorded metrics."""
    return Observability(logger=logger, tracer=tracer, metrics=Mock())


@pytest.fixture
def contract_service(contract_store, event_publisher, observability) -> ContractService:
    return ContractService(
        store=contract_store,
        publisher=event_publisher,
        observability=observability,
        clock=FakeClock(),
    )


# Event fixtures
@pytest.fixture
def sqs_record() -> Callable[..., Dict[str, Any]]:
    """Factory building raw SQS records carrying an HttpMethod attribute."""

    def _make(body: Any, http_method: Optional[str] = "POST", message_id: Optional[str] = None) -> Dict[str, Any]:
        message_attributes = {}
        if http_method is not None:
            message_attributes["HttpMethod"] = {
                "stringValue": http_method,
                "stringListValues": [],
                "binaryListValues": [],
                "dataType": "String",
            }

        return {
            "messageId": message_id or str(uuid4()),
            "receiptHandle": "test-receipt-handle",
            "body": body if isinstance(body, str) else json.dumps(body),
            "attributes": {
                "ApproximateReceiveCount": "1",
                "SentTimestamp": "1704110400000",
                "SenderId": "123456789012",
                "ApproximateFirstReceiveTimestamp": "1704110400001",
            },
            "messageAttributes": message_attributes,
            "md5OfBody": "test-md5",
            "eventSource": "aws:sqs",
            "eventSourceARN": "arn:aws:sqs:us-east-1:123456789012:test-contracts-queue",
            "awsRegion": REGION,
        }

    return _make


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Factory building API Gateway REST proxy events."""

    def _make(method: str, path: str, body: Optional[Any] = None) -> Dict[str, Any]:
        return {
            "resource": path,
            "httpMethod": method,
            "path": path,
            "headers": {
                "Content-Type": "application/json",
                "User-Agent": "test-agent/1.0",
            },
            "multiValueHeaders": {},
            "body": body if body is None or isinstance(body, str) else json.dumps(body),
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "protocol": "HTTP/1.1",
                "requestTime": "01/Jan/2024:12:00:00 +0000",
                "requestTimeEpoch": 1704110400000,
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "pathParameters": None,
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "stageVariables": None,
            "isBase64Encoded": False,
        }

    return _make


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-contracts-function"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-contracts-function"
    context.memory_limit_in_mb = "512"
    context.remaining_time_in_millis = lambda: 30000
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-contracts-function"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    return context


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
