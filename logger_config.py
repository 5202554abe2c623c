"""
Logging configuration for the marketplace metering connector.

Loggers write to stdout so the output lands in CloudWatch Logs when the
connector runs inside AWS Lambda, and in the console otherwise.
"""
import logging
import os
import sys
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# boto3's own loggers; their INFO/DEBUG output includes request bodies with
# customer identifiers and registration tokens
SDK_LOGGERS = ('boto3', 'botocore', 'urllib3')


def quiet_sdk_loggers(log_level: str) -> None:
    """Hold the SDK loggers at WARNING unless DEBUG logging was asked for."""
    if log_level == 'DEBUG':
        return
    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to this module's name)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or __name__)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))
    quiet_sdk_loggers(log_level)

    # Lambda sends stdout to CloudWatch
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    return logger
