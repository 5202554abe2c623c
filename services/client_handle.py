"""
Owned handle around a boto3 Marketplace Metering client.
"""
import threading
from typing import Any, Optional, TYPE_CHECKING

import boto3

from config import ConnectionConfig
from logger_config import get_logger
from services.credentials import get_credentials
from utils.exceptions import ClientClosedError

if TYPE_CHECKING:
    from mypy_boto3_meteringmarketplace import MarketplaceMeteringClient
else:
    MarketplaceMeteringClient = Any

logger = get_logger(__name__)

SERVICE_NAME = 'meteringmarketplace'


class ClientHandle:
    """
    Exclusive owner of one metering client.

    In-flight calls hold a reference through acquire()/release(). Once
    close() is called no new reference can be taken, and the client is torn
    down as soon as the last in-flight call releases it.
    """

    def __init__(self, client: MarketplaceMeteringClient) -> None:
        self._client = client
        self._lock = threading.Lock()
        self._in_flight = 0
        self._closing = False
        self._closed = False

    @classmethod
    def open(cls, config: ConnectionConfig) -> 'ClientHandle':
        """
        Build a client bound to the config's region and credentials.

        Raises:
            Exception: Whatever boto3 raises for a malformed region or
                client construction failure.
        """
        credentials = get_credentials(config)
        session = boto3.session.Session(
            region_name=config.region_name,
            **credentials.as_session_kwargs()
        )
        client = session.client(SERVICE_NAME)
        logger.info(
            f'Opened marketplace metering client for region {config.region_name}'
        )
        return cls(client)

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closing

    def acquire(self) -> MarketplaceMeteringClient:
        """
        Take a reference to the client for one call.

        Raises:
            ClientClosedError: If close() has already been called.
        """
        with self._lock:
            if self._closing:
                raise ClientClosedError('marketplace metering client is closed')
            self._in_flight += 1
            return self._client

    def release(self) -> None:
        """Drop a reference taken with acquire()."""
        with self._lock:
            self._in_flight -= 1
            teardown = self._closing and self._in_flight == 0 and not self._closed
            if teardown:
                self._closed = True
        if teardown:
            logger.debug('Last in-flight call finished, closing deferred client')
            try:
                self._close_client()
            except Exception as e:
                # Nobody is left to receive the error; close() already returned
                logger.warning(f'Deferred client close failed: {str(e)}')

    def close(self) -> None:
        """
        Mark the handle closed and release the client's connections.

        With calls still in flight the teardown is deferred to the last
        release(). Closing twice is a no-op.

        Raises:
            Exception: Whatever the client raises while closing.
        """
        with self._lock:
            if self._closing:
                return
            self._closing = True
            teardown = self._in_flight == 0
            if teardown:
                self._closed = True
        if teardown:
            self._close_client()
        else:
            logger.info('Client close deferred until in-flight calls finish')

    def _close_client(self) -> None:
        self._client.close()
        logger.info('Closed marketplace metering client')

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

