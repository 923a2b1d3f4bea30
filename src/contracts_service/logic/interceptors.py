"""
Interceptor chain wrapped around contract state machine operations.

An interceptor is a plain callable ``(operation, proceed) -> result`` that may run
code before and after calling ``proceed()``. The chain composes interceptors in
order, so the first interceptor is the outermost one:

    chain = InterceptorChain([tracing_interceptor(tracer), logging_interceptor(logger)])
    chain.run("create_contract", lambda: store.put(...))
"""

import functools
import time
from typing import Any, Callable, Sequence, TypeVar

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics, MetricUnit
from aws_lambda_powertools.tracing import Tracer

from contracts_service.handlers.utils.errors import BaseServiceError, ConflictError

T = TypeVar('T')

Interceptor = Callable[[str, Callable[[], Any]], Any]


def compose(interceptors: Sequence[Interceptor], operation: str, call: Callable[[], T]) -> T:
    """Run ``call`` inside ``interceptors``, the first one outermost."""
    proceed: Callable[[], Any] = call
    for interceptor in reversed(interceptors):
        proceed = functools.partial(interceptor, operation, proceed)
    return proceed()


class InterceptorChain:
    """Ordered list of interceptors applied to every operation run through it."""

    def __init__(self, interceptors: Sequence[Interceptor]):
        self.interceptors = tuple(interceptors)

    def run(self, operation: str, call: Callable[[], T]) -> T:
        return compose(self.interceptors, operation, call)


def tracing_interceptor(tracer: Tracer) -> Interceptor:
    """Open an X-Ray subsegment per operation and record failures as metadata."""

    def intercept(operation: str, proceed: Callable[[], Any]) -> Any:
        with tracer.provider.in_subsegment(name=f"## {operation}"):
            tracer.put_annotation(key="operation", value=operation)
            try:
                return proceed()
            except BaseServiceError as e:
                tracer.put_metadata(key=f"{operation} error", value=e.to_dict())
                raise

    return intercept


def logging_interceptor(logger: Logger) -> Interceptor:
    """Log the start and completion of each operation."""

    def intercept(operation: str, proceed: Callable[[], Any]) -> Any:
        logger.debug(f"Starting {operation}", extra={"operation": operation})
        start_time = time.time()
        result = proceed()
        logger.info(f"Completed {operation}", extra={
            "operation": operation,
            "duration_ms": (time.time() - start_time) * 1000,
        })
        return result

    return intercept


def error_metrics_interceptor(metrics: Metrics, tracer: Tracer, logger: Logger) -> Interceptor:
    """Count conflicts and service errors separately, then re-raise them."""

    def intercept(operation: str, proceed: Callable[[], Any]) -> Any:
        try:
            return proceed()
        except ConflictError as e:
            metrics.add_metric(name="ContractConflict", unit=MetricUnit.Count, value=1)
            logger.warning("Contract conflict", extra={
                "operation": operation,
                "property_id": e.property_id,
                "error_message": e.message,
            })
            raise
        except BaseServiceError as e:
            metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
            metrics.add_metric(name=f"Error{e.category.value}Count", unit=MetricUnit.Count, value=1)
            metrics.add_metric(name=f"Error{e.severity.value}Count", unit=MetricUnit.Count, value=1)

            tracer.put_annotation(key="error_code", value=e.error_code)

            logger.error("Service error occurred", extra={
                "operation": operation,
                "error_id": e.error_id,
                "error_code": e.error_code,
                "error_severity": e.severity.value,
                "error_category": e.category.value,
                "error_message": e.message,
                "context": e.context.model_dump(mode="json") if e.context else None,
            })
            raise

    return intercept


def default_interceptors(logger: Logger, tracer: Tracer, metrics: Metrics) -> InterceptorChain:
    """Tracing span, then structured log, then error metrics around the operation."""
    return InterceptorChain([
        tracing_interceptor(tracer),
        logging_interceptor(logger),
        error_metrics_interceptor(metrics, tracer, logger),
    ])
