"""
Contract Events Handler - Lambda function consuming the contracts SQS queue.

Each record asks for a contract to be created (``HttpMethod`` = POST) or
approved (``HttpMethod`` = PUT). Failures propagate so that the queue redrive
policy retries the batch.
"""

from typing import Any, Dict

from aws_lambda_powertools.utilities.data_classes import SQSEvent
from aws_lambda_powertools.utilities.typing import LambdaContext

from contracts_service.handlers.models.env_vars import get_handler_env_vars
from contracts_service.handlers.utils.dependencies import build_contract_service
from contracts_service.handlers.utils.observability import get_observability, logger, metrics, tracer
from contracts_service.logic.message_processor import ContractMessageProcessor
from contracts_service.models.input import ContractMessage

# Initialize service dependencies once per execution environment
env_vars = get_handler_env_vars()
observability = get_observability()
contract_service = build_contract_service(env_vars, observability)
message_processor = ContractMessageProcessor(service=contract_service, observability=observability)


@tracer.capture_lambda_handler
@metrics.log_metrics(capture_cold_start_metric=True)
@logger.inject_lambda_context(log_event=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: SQS batch event
        context: Lambda context object

    Returns:
        Summary of processed and skipped messages
    """
    sqs_event = SQSEvent(event)
    messages = [ContractMessage.from_sqs_record(record) for record in sqs_event.records]

    logger.info("Processing contract messages", extra={"message_count": len(messages)})

    summary = message_processor.process_batch(messages, request_id=context.aws_request_id)
    return summary.model_dump()
