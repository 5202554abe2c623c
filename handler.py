"""
Lambda handler functions for the Marketplace Metering connector.

Each invocation builds a connector from the standard AWS environment
variables, runs one operation, and closes the connector again.
"""
from typing import Any, Dict, Union

from config import ConnectionConfig
from logger_config import get_logger
from services.metering_service import MeteringService
from utils.decorators import lambda_handler
from utils.exceptions import MeteringError

logger = get_logger(__name__)


def _connect() -> Union[MeteringService, MeteringError]:
    return MeteringService.connect(ConnectionConfig.from_env())


@lambda_handler
def resolve_customer(event, context):
    """Resolve a marketplace registration token to the customer's account."""
    registration_token = event.get('registrationToken')
    # Event shape check only; MeteringService.resolve_customer passes any
    # token through to the service unvalidated
    if not registration_token:
        raise ValueError('registrationToken is required')

    service = _connect()
    if isinstance(service, MeteringError):
        return service

    with service:
        return service.resolve_customer(registration_token).result()


@lambda_handler
def batch_meter_usage(event, context) -> Union[Dict[str, Any], MeteringError]:
    """
    Meter a batch of usage records.

    The event is a BatchMeterUsageRequest:
    ``{"productCode": "...", "usageRecords": [...]}``. Timestamps may be
    ISO-8601 strings since Lambda events arrive as JSON.
    """
    service = _connect()
    if isinstance(service, MeteringError):
        return service

    with service:
        result = service.batch_meter_usage(event).result()

    if not isinstance(result, MeteringError) and result['unprocessedRecords']:
        logger.warning(
            f"{len(result['unprocessedRecords'])} usage records were not processed"
        )
    return result
