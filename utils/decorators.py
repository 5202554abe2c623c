"""
Decorators for error wrapping, logging, and Lambda response formatting.
"""
import functools
import traceback
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, TypeVar

from logger_config import get_logger
from utils.exceptions import MeteringError, create_error

logger = get_logger(__name__)

T = TypeVar('T')


def returns_metering_error(message: str) -> Callable[[Callable[..., T]], Callable[..., Any]]:
    """
    Decorator that converts any exception into a returned MeteringError.

    The envelope message is ``"<message>: <exception text>"`` and the
    exception is kept as its cause.

    Args:
        message: Prefix describing the failed operation
    """
    def decorator(func: Callable[..., T]) -> Callable[..., Any]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.error(f'{func.__name__} failed: {str(e)}')
                return create_error(f'{message}: {str(e)}', e)
        return wrapper
    return decorator


def _json_safe(value: Any) -> Any:
    """Render datetimes as ISO-8601 strings for JSON responses."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_json_safe(item) for item in value]
    return value


def lambda_handler(
    func: Callable[[Any, Any], Any]
) -> Callable[[Any, Any], Dict[str, Any]]:
    """
    Decorator for Lambda handler functions.

    Provides:
    - Request correlation IDs for logging
    - MeteringError results rendered as structured error responses
    - Unexpected exceptions rendered as error responses
    - JSON-safe response bodies

    Args:
        func: The handler function to decorate

    Returns:
        Decorated handler function
    """
    @functools.wraps(func)
    def wrapper(event: Any, context: Any) -> Dict[str, Any]:
        correlation_id = str(uuid.uuid4())
        metadata = {
            "correlation_id": correlation_id,
            "handler": func.__name__
        }

        logger.info(
            f"Handler {func.__name__} invoked",
            extra={
                "correlation_id": correlation_id,
                "request_id": getattr(context, "aws_request_id", None) if context else None
            }
        )

        try:
            result = func(event, context)
        except ValueError as e:
            logger.warning(
                f"Handler {func.__name__} validation error: {str(e)}",
                extra={"correlation_id": correlation_id}
            )
            return {
                "error": {
                    "type": "ValidationError",
                    "message": str(e),
                    "details": {},
                },
                "metadata": metadata
            }
        except Exception as e:
            logger.error(
                f"Handler {func.__name__} failed: {str(e)}",
                extra={
                    "correlation_id": correlation_id,
                    "traceback": traceback.format_exc()
                },
                exc_info=True
            )
            return {
                "error": {
                    "type": type(e).__name__,
                    "message": str(e),
                    "details": {},
                },
                "metadata": metadata
            }

        if isinstance(result, MeteringError):
            logger.error(
                f"Handler {func.__name__} returned error: {result.message}",
                extra={"correlation_id": correlation_id}
            )
            error = {"type": type(result).__name__}
            error.update(result.to_dict())
            return {"error": error, "metadata": metadata}

        response = _json_safe(result)
        response["metadata"] = metadata

        logger.info(
            f"Handler {func.__name__} completed successfully",
            extra={"correlation_id": correlation_id}
        )
        return response

    return wrapper
