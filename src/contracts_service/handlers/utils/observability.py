"""
Centralized observability utilities for the contracts service.

This module provides the configured AWS Lambda Powertools instances for logging,
tracing, and metrics collection, plus the ``Observability`` bundle that is handed
to the business logic layer instead of reaching for module globals.
"""

import os
from dataclasses import dataclass

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

# Metrics namespace for business KPIs
METRICS_NAMESPACE = os.environ.get('SERVICE_NAMESPACE', 'ContractsService')

# JSON output format, service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
logger: Logger = Logger()

# Service name can be set by environment variable "POWERTOOLS_SERVICE_NAME"
# Disabled by setting POWERTOOLS_TRACE_DISABLED to "True"
tracer: Tracer = Tracer()

# Namespace and service name can be set by environment variables:
# - POWERTOOLS_METRICS_NAMESPACE
# - POWERTOOLS_SERVICE_NAME
metrics = Metrics(namespace=METRICS_NAMESPACE)


@dataclass(frozen=True)
class Observability:
    """Logger, tracer and metrics used by one service instance."""

    logger: Logger
    tracer: Tracer
    metrics: Metrics


def get_observability() -> Observability:
    """Bundle the process-wide Powertools instances."""
    return Observability(logger=logger, tracer=tracer, metrics=metrics)
