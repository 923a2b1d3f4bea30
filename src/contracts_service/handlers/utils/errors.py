"""
Error taxonomy and error-to-response utilities for the contracts service.

Every failure the service can surface derives from ``BaseServiceError`` so that
handlers, logs and metrics can classify it by code, severity and category.
"""

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from aws_lambda_powertools.event_handler import Response, content_types
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class ErrorContext(BaseModel):
    """Context information for errors."""

    request_id: str = Field(description="Unique request or message identifier")
    operation: str = Field(description="Operation being performed")
    resource_id: Optional[str] = Field(default=None, description="Resource identifier")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    additional_data: Dict[str, Any] = Field(default_factory=dict)


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.BUSINESS_LOGIC,
        context: Optional[ErrorContext] = None,
        retry_after: Optional[int] = None,
        user_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.context = context
        self.retry_after = retry_after
        self.user_message = user_message or "An error occurred while processing your request."
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging and response."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "category": self.category.value,
            "retry_after": self.retry_after,
            "context": self.context.model_dump(mode="json") if self.context else None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class ParseError(BaseServiceError):
    """Raised when an inbound message body is not a JSON object."""

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(
            message=message,
            error_code="PARSE_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
            user_message="Must specify contract details as a JSON object",
        )


class ValidationError(BaseServiceError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field_errors: Optional[List[Dict[str, str]]] = None,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            context=context,
            user_message=message,
        )
        self.field_errors = field_errors or []


class ConflictError(BaseServiceError):
    """Raised when a conditional write is rejected by the current contract state."""

    def __init__(
        self,
        property_id: str,
        message: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="CONTRACT_CONFLICT",
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.BUSINESS_LOGIC,
            context=context,
            user_message=message,
        )
        self.property_id = property_id


class ResourceNotFoundError(BaseServiceError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        context: Optional[ErrorContext] = None,
    ):
        message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(
            message=message,
            error_code="RESOURCE_NOT_FOUND",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.BUSINESS_LOGIC,
            context=context,
            user_message=f"No {resource_type.lower()} found for specified Property ID",
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ContractNotFoundError(ResourceNotFoundError):
    """Raised when no contract exists for a property."""

    def __init__(self, property_id: str, context: Optional[ErrorContext] = None):
        super().__init__(resource_type="Contract", resource_id=property_id, context=context)
        self.property_id = property_id


class StoreError(BaseServiceError):
    """Raised when the contracts table fails for a reason other than a condition check."""

    def __init__(
        self,
        message: str,
        operation: str,
        table_name: str,
        error_code: str = "STORE_ERROR",
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        context: Optional[ErrorContext] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            category=ErrorCategory.INFRASTRUCTURE,
            context=context,
            retry_after=retry_after,
            user_message="A database error occurred. Please try again later.",
        )
        self.operation = operation
        self.table_name = table_name


class PublishError(BaseServiceError):
    """Raised when a contract event could not be delivered to the event bus."""

    def __init__(
        self,
        message: str,
        event_name: str,
        event_bus_name: str,
        context: Optional[ErrorContext] = None,
    ):
        super().__init__(
            message=message,
            error_code="PUBLISH_ERROR",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.EXTERNAL_SERVICE,
            context=context,
            user_message=f"Unable to fire '{event_name}' event",
        )
        self.event_name = event_name
        self.event_bus_name = event_bus_name


def create_error_context(
    request_id: str,
    operation: str,
    resource_id: Optional[str] = None,
    **additional_data: Any,
) -> ErrorContext:
    """Create an error context for consistent error handling."""
    return ErrorContext(
        request_id=request_id,
        operation=operation,
        resource_id=resource_id,
        additional_data=additional_data,
    )


def validation_error_from_pydantic(
    error: PydanticValidationError,
    context: Optional[ErrorContext] = None,
) -> ValidationError:
    """Translate a Pydantic validation failure into a service ValidationError."""
    field_errors = [
        {"field": str(item["loc"][-1]) if item["loc"] else "", "message": item["msg"]}
        for item in error.errors()
    ]
    missing = [entry["field"] for entry in field_errors]
    return ValidationError(
        message=f"Must specify contract details: {', '.join(missing)}",
        field_errors=field_errors,
        context=context,
    )


def format_error_response(
    error: BaseServiceError,
    include_details: bool = False,
) -> Dict[str, Any]:
    """Format error for API response."""

    response = {
        "message": error.user_message,
        "error": {
            "code": error.error_code,
            "message": error.user_message,
            "error_id": error.error_id,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }

    if error.retry_after:
        response["retry_after"] = error.retry_after

    if include_details and error.context:
        response["error"]["details"] = {
            "operation": error.context.operation,
            "resource_id": error.context.resource_id,
        }

    if isinstance(error, ValidationError) and error.field_errors:
        response["error"]["field_errors"] = error.field_errors

    return response


def get_http_status_code(error: BaseServiceError) -> int:
    """Get appropriate HTTP status code for error."""

    status_mapping = {
        "PARSE_ERROR": 400,
        "VALIDATION_ERROR": 400,
        "CONTRACT_CONFLICT": 400,
        "RESOURCE_NOT_FOUND": 400,
    }

    return status_mapping.get(error.error_code, 500)


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Create a standardized API Gateway response."""

    default_headers = {
        "X-Request-ID": str(uuid.uuid4()),
    }

    if headers:
        default_headers.update(headers)

    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=body if isinstance(body, str) else json.dumps(body, default=str),
        headers=default_headers,
    )
