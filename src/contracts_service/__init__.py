"""
Contracts service.

Owns the lifecycle of property sale contracts: condition-guarded writes to a
DynamoDB table, an SQS intake loop and EventBridge notifications.
"""

__version__ = "1.0.0"
