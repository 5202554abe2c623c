"""
Credential factory for the metering client.
"""
from dataclasses import dataclass
from typing import Dict, Union

from config import ConnectionConfig


@dataclass(frozen=True)
class BasicCredentials:
    """Long-term access key credentials."""

    access_key_id: str
    secret_access_key: str

    def as_session_kwargs(self) -> Dict[str, str]:
        return {
            'aws_access_key_id': self.access_key_id,
            'aws_secret_access_key': self.secret_access_key,
        }

    def __repr__(self) -> str:
        return f'BasicCredentials(access_key_id={self.access_key_id!r})'


@dataclass(frozen=True)
class SessionCredentials(BasicCredentials):
    """Temporary credentials issued with a session token."""

    session_token: str = ''

    def as_session_kwargs(self) -> Dict[str, str]:
        kwargs = super().as_session_kwargs()
        kwargs['aws_session_token'] = self.session_token
        return kwargs

    def __repr__(self) -> str:
        return f'SessionCredentials(access_key_id={self.access_key_id!r})'


Credentials = Union[BasicCredentials, SessionCredentials]


def get_credentials(config: ConnectionConfig) -> Credentials:
    """
    Choose session or basic credentials for a connection config.

    A session token, when present, selects session credentials.
    """
    if config.session_token is not None:
        return SessionCredentials(
            access_key_id=config.access_key_id,
            secret_access_key=config.secret_access_key,
            session_token=config.session_token,
        )
    return BasicCredentials(
        access_key_id=config.access_key_id,
        secret_access_key=config.secret_access_key,
    )
