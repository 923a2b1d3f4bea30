"""
Business Logic Layer Module.

This package contains the contract state machine, the queue intake loop that
drives it and the interceptor chain wrapped around every operation.
"""

from contracts_service.logic.contract_service import (
    CONTRACT_CREATED_EVENT,
    CONTRACT_UPDATED_EVENT,
    ContractService,
)
from contracts_service.logic.interceptors import InterceptorChain, compose, default_interceptors
from contracts_service.logic.message_processor import ContractMessageProcessor

__all__ = [
    "CONTRACT_CREATED_EVENT",
    "CONTRACT_UPDATED_EVENT",
    "ContractMessageProcessor",
    "ContractService",
    "InterceptorChain",
    "compose",
    "default_interceptors",
]
