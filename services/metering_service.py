"""
Marketplace Metering operations: resolve customers and meter usage.
"""
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Optional, Union

from config import ConnectionConfig
from logger_config import get_logger
from services.client_handle import ClientHandle
from services.worker_pool import WorkerPool, get_worker_pool
from transforms import (
    from_sdk_batch_meter_usage_response,
    from_sdk_resolve_customer_response,
    to_sdk_batch_meter_usage_request,
)
from utils.decorators import returns_metering_error
from utils.exceptions import ClientClosedError, MeteringError, create_error

logger = get_logger(__name__)

INIT_ERROR = 'Error occurred while initializing the marketplace metering client'
RESOLVE_CUSTOMER_ERROR = 'Error occurred while executing resolve customer operation'
BATCH_METER_USAGE_ERROR = 'Error occurred while executing batch-meter-usage operation'
CLOSE_ERROR = 'Error occurred while closing the marketplace metering client'


@returns_metering_error(INIT_ERROR)
def _open_handle(configurations: Union[ConnectionConfig, Mapping[str, Any]]) -> ClientHandle:
    if not isinstance(configurations, ConnectionConfig):
        configurations = ConnectionConfig.from_mapping(configurations)
    return ClientHandle.open(configurations)


def _completed(value: Any) -> Future:
    future: Future = Future()
    future.set_result(value)
    return future


class MeteringService:
    """
    Connector for the AWS Marketplace Metering service.

    Network operations return a Future that always resolves to either the
    converted response or a MeteringError; it never completes with an
    exception.
    """

    def __init__(
        self,
        handle: ClientHandle,
        worker_pool: Optional[WorkerPool] = None
    ) -> None:
        """
        Initialize metering service.

        Args:
            handle: Client handle owned by this service
            worker_pool: Pool for network calls (defaults to the process pool)
        """
        self.handle = handle
        self._worker_pool = worker_pool

    @property
    def worker_pool(self) -> WorkerPool:
        if self._worker_pool is None:
            self._worker_pool = get_worker_pool()
        return self._worker_pool

    @classmethod
    def connect(
        cls,
        configurations: Union[ConnectionConfig, Mapping[str, Any]],
        worker_pool: Optional[WorkerPool] = None
    ) -> Union['MeteringService', MeteringError]:
        """
        Create a connector from a host configuration.

        Runs on the caller's thread.

        Args:
            configurations: ``{"region", "auth": {...}}`` mapping or a
                ConnectionConfig
            worker_pool: Pool for network calls

        Returns:
            MeteringService, or MeteringError if the configuration is
            invalid or the client could not be built
        """
        handle = _open_handle(configurations)
        if isinstance(handle, MeteringError):
            return handle
        return cls(handle, worker_pool)

    def _dispatch(
        self,
        error_message: str,
        call: Callable[[Any], Dict[str, Any]]
    ) -> Future:
        """
        Run call(client) on the worker pool, holding a handle reference.

        The reference is released exactly once: by run() when it executes,
        or by the done callback when the Future is cancelled before it starts.
        """
        try:
            worker_pool = self.worker_pool
        except Exception as e:
            logger.error(f'Could not obtain worker pool: {str(e)}')
            return _completed(create_error(f'{error_message}: {str(e)}', e))

        try:
            client = self.handle.acquire()
        except ClientClosedError as e:
            return _completed(create_error(f'{error_message}: {str(e)}', e))

        @returns_metering_error(error_message)
        def run() -> Dict[str, Any]:
            try:
                return call(client)
            finally:
                self.handle.release()

        try:
            future = worker_pool.submit(run)
        except RuntimeError as e:
            self.handle.release()
            return _completed(create_error(f'{error_message}: {str(e)}', e))

        future.add_done_callback(self._release_if_cancelled)
        return future

    def _release_if_cancelled(self, future: Future) -> None:
        # A cancelled Future never reaches run(), so its reference is dropped here
        if future.cancelled():
            logger.debug('Call cancelled before it started, releasing client reference')
            self.handle.release()

    def resolve_customer(self, registration_token: str) -> Future:
        """
        Resolve a registration token to the customer's identifiers.

        Args:
            registration_token: Token presented by the marketplace customer

        Returns:
            Future resolving to ``{"customerAWSAccountId", "customerIdentifier",
            "productCode"}`` or a MeteringError
        """
        def call(client) -> Dict[str, Any]:
            response = client.resolve_customer(RegistrationToken=registration_token)
            logger.info('Resolved marketplace customer')
            return from_sdk_resolve_customer_response(response)

        logger.debug('Dispatching resolve_customer')
        return self._dispatch(RESOLVE_CUSTOMER_ERROR, call)

    def batch_meter_usage(self, request: Mapping[str, Any]) -> Future:
        """
        Submit usage records for metering.

        The request is converted on the caller's thread; a malformed request
        yields an already-completed Future holding the MeteringError.

        Args:
            request: ``{"productCode", "usageRecords": [...]}``

        Returns:
            Future resolving to ``{"results", "unprocessedRecords"}`` or a
            MeteringError
        """
        sdk_request = returns_metering_error(BATCH_METER_USAGE_ERROR)(
            to_sdk_batch_meter_usage_request
        )(request)
        if isinstance(sdk_request, MeteringError):
            return _completed(sdk_request)

        def call(client) -> Dict[str, Any]:
            response = client.batch_meter_usage(**sdk_request)
            result = from_sdk_batch_meter_usage_response(response)
            logger.info(
                f"Metered {len(result['results'])} records, "
                f"{len(result['unprocessedRecords'])} unprocessed"
            )
            return result

        logger.debug(f"Dispatching batch_meter_usage with {len(sdk_request['UsageRecords'])} records")
        return self._dispatch(BATCH_METER_USAGE_ERROR, call)

    @returns_metering_error(CLOSE_ERROR)
    def close(self) -> None:
        """
        Release the client's resources.

        Returns:
            None, or a MeteringError if teardown failed. The service is
            unusable afterwards either way.
        """
        self.handle.close()

    def __enter__(self) -> 'MeteringService':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        error = self.close()
        if isinstance(error, MeteringError):
            logger.warning(error.message)
