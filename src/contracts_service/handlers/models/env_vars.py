"""
Environment variable models for type-safe configuration.

This module defines the Pydantic model for the environment variables consumed by
the contracts Lambda handlers. Variables are validated once at cold start.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import BaseModel as BaseEnvModel, get_environment_variables
from pydantic import Field


class ContractsHandlerEnvVars(BaseEnvModel):
    """Environment variables for the contracts handlers."""

    # DynamoDB table holding one contract per property
    DYNAMODB_TABLE: Annotated[str, Field(
        description='DynamoDB table name for contract storage',
        min_length=1
    )]

    # EventBridge bus receiving contract status events
    EVENT_BUS: Annotated[str, Field(
        description='EventBridge bus name for contract events',
        min_length=1
    )]

    # Event source and metrics namespace
    SERVICE_NAMESPACE: Annotated[str, Field(
        description='Event source and CloudWatch metrics namespace',
        min_length=1
    )] = 'ContractsService'

    AWS_REGION: Annotated[str, Field(
        description='AWS region for service deployment'
    )] = 'us-east-1'

    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        description='Service name for AWS Powertools'
    )] = 'contracts-service'

    LOG_LEVEL: Annotated[str, Field(
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    # For local testing against DynamoDB Local
    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(
        description='DynamoDB endpoint URL override'
    )] = None


def get_handler_env_vars() -> ContractsHandlerEnvVars:
    """
    Get typed environment variables for the contracts handlers.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=ContractsHandlerEnvVars)
