"""
Conversions between connector records and boto3 Marketplace Metering shapes.

Connector records are plain dicts keyed in camelCase; boto3 takes and
returns PascalCase dicts. Optional fields follow one rule in both
directions: absent on the source means absent on the target, present
means present, and an empty list stays an empty list.
"""
import datetime
from numbers import Real
from typing import Any, Dict, List, Mapping, Sequence

from dateutil.parser import parse

from logger_config import get_logger

logger = get_logger(__name__)

UTC = datetime.timezone.utc


def _required(source: Mapping[str, Any], key: str, kind: str) -> Any:
    if key not in source or source[key] is None:
        raise ValueError(f"{kind}.{key} is required")
    return source[key]


def _required_str(source: Mapping[str, Any], key: str, kind: str) -> str:
    value = _required(source, key, kind)
    if not isinstance(value, str):
        raise ValueError(f"{kind}.{key} must be a string, got {type(value).__name__}")
    return value


def _int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer, got {type(value).__name__}")
    return value


def _sequence(value: Any, field: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValueError(f"{field} must be a list")
    return value


def _present(source: Mapping[str, Any], key: str) -> bool:
    return source.get(key) is not None


# Timestamps

def to_sdk_timestamp(value: Any) -> datetime.datetime:
    """
    Convert a connector timestamp to an aware UTC datetime.

    Accepts a datetime (naive means UTC), an ISO-8601 string, epoch seconds,
    or a ``(seconds, fraction)`` pair.
    """
    if isinstance(value, datetime.datetime):
        moment = value
    elif isinstance(value, str):
        moment = parse(value)
    elif isinstance(value, bool):
        raise ValueError("timestamp must not be a boolean")
    elif isinstance(value, Real):
        moment = datetime.datetime.fromtimestamp(float(value), tz=UTC)
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        seconds, fraction = value
        moment = datetime.datetime.fromtimestamp(int(seconds), tz=UTC)
        moment += datetime.timedelta(seconds=float(fraction))
    else:
        raise ValueError(f"unsupported timestamp value: {value!r}")

    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def from_sdk_timestamp(value: datetime.datetime) -> datetime.datetime:
    """Normalize a boto3 timestamp (often tzlocal) to aware UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


# Connector -> SDK

def to_sdk_tag(tag: Mapping[str, Any]) -> Dict[str, str]:
    return {
        'Key': _required_str(tag, 'key', 'Tag'),
        'Value': _required_str(tag, 'value', 'Tag'),
    }


def to_sdk_usage_allocation(allocation: Mapping[str, Any]) -> Dict[str, Any]:
    sdk_allocation: Dict[str, Any] = {
        'AllocatedUsageQuantity': _int(
            _required(allocation, 'allocatedQuantity', 'UsageAllocation'),
            'UsageAllocation.allocatedQuantity'
        ),
    }
    if _present(allocation, 'tags'):
        tags = _sequence(allocation['tags'], 'UsageAllocation.tags')
        sdk_allocation['Tags'] = [to_sdk_tag(tag) for tag in tags]
    return sdk_allocation


def to_sdk_usage_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert one connector usage record to the boto3 UsageRecord shape."""
    sdk_record: Dict[str, Any] = {
        'CustomerIdentifier': _required_str(record, 'customerIdentifier', 'UsageRecord'),
        'Dimension': _required_str(record, 'dimension', 'UsageRecord'),
        'Timestamp': to_sdk_timestamp(_required(record, 'timestamp', 'UsageRecord')),
    }
    if _present(record, 'quantity'):
        sdk_record['Quantity'] = _int(record['quantity'], 'UsageRecord.quantity')
    if _present(record, 'usageAllocations'):
        allocations = _sequence(record['usageAllocations'], 'UsageRecord.usageAllocations')
        sdk_record['UsageAllocations'] = [
            to_sdk_usage_allocation(allocation) for allocation in allocations
        ]
    return sdk_record


def to_sdk_batch_meter_usage_request(request: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build boto3 batch_meter_usage keyword arguments from a connector request.

    Raises:
        ValueError: If a required field is missing or has the wrong type.
    """
    if not isinstance(request, Mapping):
        raise ValueError("BatchMeterUsageRequest must be a mapping")

    records = _sequence(
        _required(request, 'usageRecords', 'BatchMeterUsageRequest'),
        'BatchMeterUsageRequest.usageRecords'
    )
    sdk_request = {
        'ProductCode': _required_str(request, 'productCode', 'BatchMeterUsageRequest'),
        'UsageRecords': [to_sdk_usage_record(record) for record in records],
    }
    logger.debug(
        f"Converted batch meter usage request with {len(sdk_request['UsageRecords'])} records"
    )
    return sdk_request


# SDK -> connector

def from_sdk_tag(tag: Mapping[str, Any]) -> Dict[str, str]:
    return {'key': tag['Key'], 'value': tag['Value']}


def from_sdk_usage_allocation(allocation: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        'allocatedQuantity': allocation['AllocatedUsageQuantity'],
    }
    if 'Tags' in allocation:
        result['tags'] = [from_sdk_tag(tag) for tag in allocation['Tags']]
    return result


def from_sdk_usage_record(record: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a boto3 UsageRecord back to a connector usage record."""
    result: Dict[str, Any] = {
        'customerIdentifier': record['CustomerIdentifier'],
        'dimension': record['Dimension'],
        'timestamp': from_sdk_timestamp(record['Timestamp']),
    }
    if 'Quantity' in record:
        result['quantity'] = record['Quantity']
    if 'UsageAllocations' in record:
        result['usageAllocations'] = [
            from_sdk_usage_allocation(allocation)
            for allocation in record['UsageAllocations']
        ]
    return result


def from_sdk_usage_record_result(record_result: Mapping[str, Any]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    if 'MeteringRecordId' in record_result:
        result['meteringRecordId'] = record_result['MeteringRecordId']
    if 'Status' in record_result:
        result['status'] = record_result['Status']
    if 'UsageRecord' in record_result:
        result['usageRecord'] = from_sdk_usage_record(record_result['UsageRecord'])
    return result


def from_sdk_batch_meter_usage_response(response: Mapping[str, Any]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Convert a boto3 batch_meter_usage response.

    Both sequences keep the service's order; a missing sequence becomes an
    empty list so callers always see both keys.
    """
    return {
        'results': [
            from_sdk_usage_record_result(item) for item in response.get('Results', [])
        ],
        'unprocessedRecords': [
            from_sdk_usage_record(item) for item in response.get('UnprocessedRecords', [])
        ],
    }


def from_sdk_resolve_customer_response(response: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert a boto3 resolve_customer response."""
    result: Dict[str, Any] = {}
    for sdk_key, key in (
        ('CustomerAWSAccountId', 'customerAWSAccountId'),
        ('CustomerIdentifier', 'customerIdentifier'),
        ('ProductCode', 'productCode'),
    ):
        if sdk_key in response:
            result[key] = response[sdk_key]
    return result
