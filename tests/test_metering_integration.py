"""
Integration tests for metering against moto's Marketplace Metering backend.
"""
import datetime
import pytest
from moto import mock_aws
from services.metering_service import MeteringService
from services.worker_pool import WorkerPool
from utils.exceptions import MeteringError

CONFIGURATIONS = {
    'region': 'us-east-1',
    'auth': {'accessKeyId': 'testing', 'secretAccessKey': 'testing'},
}

STATUSES = {'Success', 'CustomerNotSubscribed', 'DuplicateRecord'}


@pytest.mark.integration
@mock_aws()
def test_batch_meter_usage_end_to_end():
    """Test a batch is metered through a real boto3 client."""
    noon = datetime.datetime(2024, 5, 1, 12, 0, tzinfo=datetime.timezone.utc)
    request = {
        'productCode': 'prod-1',
        'usageRecords': [
            {'customerIdentifier': 'cust-1', 'dimension': 'requests', 'timestamp': noon, 'quantity': 3},
            {'customerIdentifier': 'cust-2', 'dimension': 'requests', 'timestamp': noon, 'quantity': 5},
        ],
    }

    with WorkerPool(max_workers=2) as pool:
        service = MeteringService.connect(CONFIGURATIONS, pool)
        assert isinstance(service, MeteringService)

        with service:
            result = service.batch_meter_usage(request).result(timeout=30)

    assert not isinstance(result, MeteringError)
    assert len(result['results']) + len(result['unprocessedRecords']) == 2
    for record_result in result['results']:
        assert record_result['status'] in STATUSES
