"""
Handler Layer Module.

Lambda entry points of the contracts service:

- ``contract_events_handler``: consumes the contracts SQS queue
- ``contracts_api_handler``: serves the contracts REST API

Handler modules build their dependencies at import, so they are not imported here.
"""
