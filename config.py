"""
Configuration module for the marketplace metering connector.

Parses the host-supplied connection configuration into a region and a
credential triple, and exposes process-level settings read from the
environment.
"""
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union


class GlobalRegion(str, Enum):
    """Partition-wide region aliases that are not geographic regions."""

    AWS_GLOBAL = "aws-global"
    AWS_CN_GLOBAL = "aws-cn-global"
    AWS_US_GOV_GLOBAL = "aws-us-gov-global"
    AWS_ISO_GLOBAL = "aws-iso-global"
    AWS_ISO_B_GLOBAL = "aws-iso-b-global"


def resolve_region(region: str) -> Union[GlobalRegion, str]:
    """
    Resolve a region identifier against the global region aliases.

    Matching is exact; anything that is not an alias is returned untouched
    and left for the SDK to validate.
    """
    for global_region in GlobalRegion:
        if global_region.value == region:
            return global_region
    return region


def _require_str(source: Mapping[str, Any], key: str, path: str) -> str:
    value = source.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{path} is required and must be a non-empty string")
    return value


@dataclass(frozen=True)
class ConnectionConfig:
    """Connection settings for a single metering client."""

    region: Union[GlobalRegion, str]
    access_key_id: str
    secret_access_key: str
    session_token: Optional[str] = None

    @property
    def region_name(self) -> str:
        """Region identifier as the SDK expects it."""
        if isinstance(self.region, GlobalRegion):
            return self.region.value
        return self.region

    @classmethod
    def from_mapping(cls, configurations: Mapping[str, Any]) -> "ConnectionConfig":
        """
        Create a ConnectionConfig from the host configuration structure.

        Expected shape::

            {"region": "us-east-1",
             "auth": {"accessKeyId": "...", "secretAccessKey": "...",
                      "sessionToken": "..."}}

        Raises:
            ValueError: If a required field is missing or not a string.
        """
        if not isinstance(configurations, Mapping):
            raise ValueError("connection configuration must be a mapping")

        region = _require_str(configurations, "region", "region")

        auth = configurations.get("auth")
        if not isinstance(auth, Mapping):
            raise ValueError("auth is required and must be a mapping")

        access_key_id = _require_str(auth, "accessKeyId", "auth.accessKeyId")
        secret_access_key = _require_str(
            auth, "secretAccessKey", "auth.secretAccessKey"
        )

        session_token = auth.get("sessionToken")
        if session_token is not None and not isinstance(session_token, str):
            raise ValueError("auth.sessionToken must be a string")

        return cls(
            region=resolve_region(region),
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
        )

    @classmethod
    def from_env(cls) -> "ConnectionConfig":
        """
        Create a ConnectionConfig from the standard AWS environment variables.

        Raises:
            ValueError: If AWS_ACCESS_KEY_ID or AWS_SECRET_ACCESS_KEY is missing.
        """
        access_key_id = os.environ.get("AWS_ACCESS_KEY_ID")
        if not access_key_id:
            raise ValueError("AWS_ACCESS_KEY_ID environment variable is required")

        secret_access_key = os.environ.get("AWS_SECRET_ACCESS_KEY")
        if not secret_access_key:
            raise ValueError(
                "AWS_SECRET_ACCESS_KEY environment variable is required"
            )

        return cls(
            region=resolve_region(os.environ.get("AWS_REGION", "us-east-1")),
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=os.environ.get("AWS_SESSION_TOKEN") or None,
        )

    def __repr__(self) -> str:
        return (
            f"ConnectionConfig(region={self.region_name!r}, "
            f"access_key_id={self.access_key_id!r}, "
            f"session_token={'set' if self.session_token else 'unset'})"
        )


@dataclass
class Config:
    """Process-level settings with validated environment variables."""

    log_level: str = "INFO"
    max_workers: int = 8

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create Config instance from environment variables.

        Raises:
            ValueError: If an environment variable holds an invalid value.
        """
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

        valid_log_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if log_level not in valid_log_levels:
            raise ValueError(
                f"LOG_LEVEL must be one of {valid_log_levels}, got: {log_level}"
            )

        raw_max_workers = os.environ.get("METERING_MAX_WORKERS", "8")
        try:
            max_workers = int(raw_max_workers)
        except ValueError:
            raise ValueError(
                f"METERING_MAX_WORKERS must be an integer, got: {raw_max_workers}"
            ) from None
        if max_workers < 1:
            raise ValueError(
                f"METERING_MAX_WORKERS must be at least 1, got: {max_workers}"
            )

        return cls(log_level=log_level, max_workers=max_workers)


_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get the global configuration instance.

    Raises:
        ValueError: If environment variables are invalid.
    """
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config
