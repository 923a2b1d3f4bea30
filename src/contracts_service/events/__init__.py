"""
Event publishing for the contracts service.

This package announces contract status changes on EventBridge.
"""

from .event_publisher import ContractEventPublisher, PublishResult

__all__ = [
    'ContractEventPublisher',
    'PublishResult',
]
