"""
EventBridge publisher for contract status events.

Each successful contract transition is announced on the service event bus as a
single entry whose detail is the full contract record.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import boto3
from aws_lambda_powertools.metrics import MetricUnit
from botocore.exceptions import BotoCoreError, ClientError

from contracts_service.handlers.utils.errors import ErrorContext, PublishError
from contracts_service.handlers.utils.observability import logger, metrics, tracer


@dataclass
class PublishResult:
    """Result of event publishing operation."""

    success: bool
    event_id: Optional[str] = None
    duration_ms: float = 0.0


class ContractEventPublisher:
    """Publishes contract events to an EventBridge bus."""

    def __init__(
        self,
        event_bus_name: str,
        source: str,
        region_name: Optional[str] = None,
        events_client: Any = None,
    ):
        """
        Initialize EventBridge publisher.

        Args:
            event_bus_name: Name of the EventBridge bus
            source: Source attribute of every published entry
            region_name: AWS region
            events_client: Pre-built EventBridge client, created from boto3 when omitted
        """
        self.event_bus_name = event_bus_name
        self.source = source

        if events_client is None:
            client_config = {'region_name': region_name} if region_name else {}
            events_client = boto3.client('events', **client_config)
        self.eventbridge = events_client

        logger.info("ContractEventPublisher initialized", extra={
            "event_bus_name": event_bus_name,
            "source": source,
        })

    def to_entry(self, event_name: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert an event into an EventBridge PutEvents entry."""
        return {
            'Source': self.source,
            'DetailType': event_name,
            'Detail': json.dumps(payload, default=str),
            'EventBusName': self.event_bus_name,
        }

    @tracer.capture_method
    def publish(
        self,
        event_name: str,
        payload: Dict[str, Any],
        context: Optional[ErrorContext] = None,
    ) -> PublishResult:
        """
        Publish a single contract event.

        Args:
            event_name: Detail type of the event
            payload: Event detail
            context: Error context for tracing

        Returns:
            PublishResult with the event id and duration

        Raises:
            PublishError: If EventBridge rejects the entry or cannot be reached
        """
        start_time = time.time()
        entry = self.to_entry(event_name, payload)

        try:
            response = self.eventbridge.put_events(Entries=[entry])
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to publish contract event", extra={
                "event_name": event_name,
                "event_bus_name": self.event_bus_name,
                "error": str(e),
            })
            metrics.add_metric(name="EventPublishError", unit=MetricUnit.Count, value=1)
            raise PublishError(
                message=f"Failed to publish event: {str(e)}",
                event_name=event_name,
                event_bus_name=self.event_bus_name,
                context=context,
            ) from e

        duration_ms = (time.time() - start_time) * 1000

        if response.get('FailedEntryCount', 0) > 0:
            failed_entry = (response.get('Entries') or [{}])[0]
            error_message = failed_entry.get('ErrorMessage', 'Unknown error')
            logger.error("EventBridge rejected contract event", extra={
                "event_name": event_name,
                "event_bus_name": self.event_bus_name,
                "error_code": failed_entry.get('ErrorCode'),
                "error_message": error_message,
            })
            metrics.add_metric(name="EventPublishFailed", unit=MetricUnit.Count, value=1)
            raise PublishError(
                message=f"Event rejected by EventBridge: {error_message}",
                event_name=event_name,
                event_bus_name=self.event_bus_name,
                context=context,
            )

        event_id = (response.get('Entries') or [{}])[0].get('EventId')
        logger.info("Contract event published", extra={
            "event_name": event_name,
            "event_id": event_id,
            "duration_ms": duration_ms,
        })

        return PublishResult(success=True, event_id=event_id, duration_ms=duration_ms)
