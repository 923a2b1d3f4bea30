"""
Contracts API Handler - Lambda function for the contracts REST API.

Request/response variant of the contract state machine:

    POST /contracts                  create a DRAFT contract
    PUT  /contracts                  approve the DRAFT contract of a property
    GET  /contracts/<property_id>    read the contract of a property

Client errors (parse, validation, conflict, not found) map to 400, store and
publish failures to 500, each with a JSON body carrying a readable message.
"""

import functools
import json
from typing import Any, Dict, Optional
from urllib.parse import unquote

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError as PydanticValidationError

from contracts_service.handlers.models.env_vars import get_handler_env_vars
from contracts_service.handlers.utils.dependencies import build_contract_service
from contracts_service.handlers.utils.errors import (
    BaseServiceError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    ParseError,
    create_api_response,
    create_error_context,
    format_error_response,
    get_http_status_code,
    validation_error_from_pydantic,
)
from contracts_service.handlers.utils.observability import get_observability, logger, metrics, tracer
from contracts_service.models.input import CreateContractRequest, UpdateContractRequest
from contracts_service.models.output import ContractOutput

app = APIGatewayRestResolver()

# Initialize service dependencies once per execution environment
env_vars = get_handler_env_vars()
contract_service = build_contract_service(env_vars, get_observability())


def handle_service_errors(func):
    """Decorator to handle service errors and convert to HTTP responses."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except BaseServiceError as e:
            status_code = get_http_status_code(e)
            if status_code < 500:
                logger.warning("Request rejected", extra={
                    "error_code": e.error_code,
                    "error_message": e.message,
                })
            return create_api_response(
                status_code=status_code,
                body=format_error_response(e),
                headers={"Retry-After": str(e.retry_after)} if e.retry_after else None,
            )

        except Exception as e:
            logger.exception("Unexpected error in handler", extra={
                "error": str(e),
                "function_name": func.__name__,
            })

            metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)

            unexpected_error = BaseServiceError(
                message="An unexpected error occurred",
                error_code="INTERNAL_SERVER_ERROR",
                severity=ErrorSeverity.CRITICAL,
                category=ErrorCategory.INFRASTRUCTURE,
            )
            return create_api_response(status_code=500, body=format_error_response(unexpected_error))

    return wrapper


def _request_context(operation: str, resource_id: Optional[str] = None) -> ErrorContext:
    return create_error_context(
        request_id=app.lambda_context.aws_request_id,
        operation=operation,
        resource_id=resource_id,
    )


def _parse_json_body(context: ErrorContext) -> Dict[str, Any]:
    body = app.current_event.body
    try:
        payload = json.loads(body) if body else None
    except json.JSONDecodeError as e:
        raise ParseError(message="Request body is not valid JSON", context=context) from e

    if not isinstance(payload, dict):
        raise ParseError(message="Request body must be a JSON object", context=context)
    return payload


def _contract_response(contract) -> Response:
    return create_api_response(
        status_code=200,
        body=ContractOutput.from_contract(contract).model_dump(mode='json'),
    )


@app.post("/contracts")
@handle_service_errors
def create_contract() -> Response:
    """Create a DRAFT contract for a property."""
    context = _request_context("create_contract")
    payload = _parse_json_body(context)

    try:
        request = CreateContractRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise validation_error_from_pydantic(e, context) from e

    context.resource_id = request.property_id
    contract = contract_service.create_contract(request, context)
    return _contract_response(contract)


@app.put("/contracts")
@handle_service_errors
def update_contract() -> Response:
    """Approve the DRAFT contract of a property."""
    context = _request_context("update_contract")
    payload = _parse_json_body(context)

    try:
        request = UpdateContractRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise validation_error_from_pydantic(e, context) from e

    context.resource_id = request.property_id
    contract = contract_service.update_contract(request, context)
    return _contract_response(contract)


@app.get("/contracts/<property_id>")
@handle_service_errors
def get_contract(property_id: str) -> Response:
    """Read the contract of a property, the id may be URL-encoded."""
    property_id = unquote(property_id)
    context = _request_context("get_contract", resource_id=property_id)
    contract = contract_service.get_contract(property_id, context)
    return _contract_response(contract)


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: API Gateway REST event
        context: Lambda context object

    Returns:
        API Gateway response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)
    return app.resolve(event, context)
