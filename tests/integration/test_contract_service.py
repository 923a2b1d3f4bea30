"""
Integration tests for the contract state machine.

The service runs against a moto-backed table and event bus; metrics are recorded
on a mock so emitted business metrics can be asserted.
"""

import json
from unittest.mock import Mock

import pytest
from aws_lambda_powertools.metrics import MetricUnit

from contracts_service.events.event_publisher import ContractEventPublisher
from contracts_service.handlers.utils.errors import (
    ConflictError,
    ContractNotFoundError,
    PublishError,
    create_error_context,
)
from contracts_service.logic.contract_service import (
    CONTRACT_CREATED_EVENT,
    CONTRACT_UPDATED_EVENT,
    ContractService,
)
from contracts_service.models.contract import TERMINAL_STATUSES, ContractStatus
from contracts_service.models.input import CreateContractRequest, UpdateContractRequest

from conftest import EVENT_BUS_NAME, SERVICE_NAMESPACE, FakeClock, make_contract, published_entries


@pytest.fixture
def context():
    return create_error_context(request_id="req-1", operation="test")


def create_request(property_id="P1"):
    return CreateContractRequest(property_id=property_id, address="1 Main St", seller_name="Jane")


def stored(table, property_id="P1"):
    return table.get_item(Key={"property_id": property_id}).get("Item")


class TestCreateContract:
    """Test cases for contract creation."""

    def test_create_for_new_property(self, contract_service, contracts_table, events_client, observability, context):
        contract = contract_service.create_contract(create_request(), context)

        item = stored(contracts_table)
        assert item["contract_status"] == "DRAFT"
        assert item["contract_id"] == contract.contract_id
        assert item["address"] == "1 Main St"
        assert item["seller_name"] == "Jane"
        assert item["contract_created"] == item["contract_last_modified_on"]

        observability.metrics.add_metric.assert_any_call(name="ContractCreated", unit=MetricUnit.Count, value=1)
        observability.metrics.add_metric.assert_any_call(name="ContractEvent", unit=MetricUnit.Count, value=1)

        entries = published_entries(events_client)
        assert len(entries) == 1
        assert entries[0]["DetailType"] == CONTRACT_CREATED_EVENT
        assert entries[0]["Source"] == SERVICE_NAMESPACE
        assert entries[0]["EventBusName"] == EVENT_BUS_NAME
        assert json.loads(entries[0]["Detail"]) == item

    def test_contract_ids_are_fresh(self, contract_service, context):
        first = contract_service.create_contract(create_request("P1"), context)
        second = contract_service.create_contract(create_request("P2"), context)

        assert first.contract_id != second.contract_id
        assert len(first.contract_id) == 36

    @pytest.mark.parametrize("status", sorted(TERMINAL_STATUSES))
    def test_create_over_terminal_contract(self, contract_service, contracts_table, context, status):
        contracts_table.put_item(Item=make_contract(property_id="P1", contract_status=status, contract_id="C-old").to_item())

        contract = contract_service.create_contract(create_request(), context)

        assert contract.contract_status == ContractStatus.DRAFT
        assert contract.contract_id != "C-old"
        assert stored(contracts_table)["contract_id"] == contract.contract_id

    @pytest.mark.parametrize("status", [ContractStatus.DRAFT, ContractStatus.APPROVED])
    def test_create_over_active_contract_conflicts(
        self, contract_service, contracts_table, events_client, observability, context, status
    ):
        existing = make_contract(property_id="P1", contract_status=status, contract_id="C-old").to_item()
        contracts_table.put_item(Item=existing)

        with pytest.raises(ConflictError) as exc_info:
            contract_service.create_contract(create_request(), context)

        assert exc_info.value.property_id == "P1"
        assert stored(contracts_table) == existing
        assert published_entries(events_client) == []
        observability.metrics.add_metric.assert_any_call(name="ContractConflict", unit=MetricUnit.Count, value=1)


class TestUpdateContract:
    """Test cases for contract approval."""

    def test_approve_draft(self, contract_service, contracts_table, events_client, observability, context):
        created = contract_service.create_contract(create_request(), context)

        updated = contract_service.update_contract(
            UpdateContractRequest(property_id="P1", contract_id=created.contract_id),
            context,
        )

        item = stored(contracts_table)
        assert item["contract_status"] == "APPROVED"
        assert updated.contract_status == ContractStatus.APPROVED
        assert updated.contract_id == created.contract_id
        assert updated.contract_last_modified_on > created.contract_last_modified_on
        assert updated.contract_last_modified_on >= updated.contract_created

        observability.metrics.add_metric.assert_any_call(name="ContractUpdated", unit=MetricUnit.Count, value=1)

        entries = published_entries(events_client)
        assert [entry["DetailType"] for entry in entries] == [CONTRACT_CREATED_EVENT, CONTRACT_UPDATED_EVENT]
        assert json.loads(entries[1]["Detail"]) == item

    @pytest.mark.parametrize("status", [
        ContractStatus.APPROVED,
        ContractStatus.CLOSED,
        ContractStatus.CANCELLED,
        ContractStatus.EXPIRED,
    ])
    def test_approve_non_draft_conflicts(self, contract_service, contracts_table, events_client, context, status):
        existing = make_contract(property_id="P1", contract_status=status).to_item()
        contracts_table.put_item(Item=existing)

        with pytest.raises(ConflictError):
            contract_service.update_contract(UpdateContractRequest(property_id="P1", contract_id="C1"), context)

        assert stored(contracts_table) == existing
        assert published_entries(events_client) == []

    def test_approve_missing_contract_conflicts(self, contract_service, contracts_table, context):
        with pytest.raises(ConflictError):
            contract_service.update_contract(UpdateContractRequest(property_id="P1"), context)

        assert stored(contracts_table) is None


class TestGetContract:
    """Test cases for reading a contract."""

    def test_get_existing(self, contract_service, context):
        created = contract_service.create_contract(create_request(), context)

        assert contract_service.get_contract("P1", context) == created

    def test_get_missing(self, contract_service, context):
        with pytest.raises(ContractNotFoundError) as exc_info:
            contract_service.get_contract("P-unknown", context)

        assert exc_info.value.error_code == "RESOURCE_NOT_FOUND"


class TestPublishFailure:
    """A publish failure after a committed write is surfaced, not compensated."""

    def test_write_committed_when_publish_fails(self, contract_store, contracts_table, observability, context):
        events_client = Mock()
        events_client.put_events.return_value = {
            "FailedEntryCount": 1,
            "Entries": [{"ErrorCode": "InternalFailure", "ErrorMessage": "unavailable"}],
        }
        service = ContractService(
            store=contract_store,
            publisher=ContractEventPublisher(
                event_bus_name=EVENT_BUS_NAME,
                source=SERVICE_NAMESPACE,
                events_client=events_client,
            ),
            observability=observability,
            clock=FakeClock(),
        )

        with pytest.raises(PublishError):
            service.create_contract(create_request(), context)

        assert stored(contracts_table)["contract_status"] == "DRAFT"
        names = [call.kwargs["name"] for call in observability.metrics.add_metric.call_args_list]
        assert "ContractCreated" in names
        assert "ContractEvent" not in names
        assert "ErrorEXTERNAL_SERVICECount" in names


def test_injected_id_factory_and_clock(contract_store, event_publisher, observability, context):
    clock = FakeClock()
    service = ContractService(
        store=contract_store,
        publisher=event_publisher,
        observability=observability,
        clock=clock,
        id_factory=lambda: "C-fixed",
    )

    contract = service.create_contract(create_request(), context)

    assert contract.contract_id == "C-fixed"
    assert contract.contract_created == clock.current.isoformat(timespec="microseconds")
