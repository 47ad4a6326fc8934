"""Route Response Utilities
===========================

Shared helpers so every API route answers with the same envelope.

json_success(data=None, message=None, **meta) -> (Response, int)
json_error(message, status=400, *, error_type=None, **details) -> (Response, int)
handle_exceptions(default_status=500, logger_override=None, reraise=False)
    Wraps a route function; pipeline errors map to their own status/code,
    anything else becomes a 500 envelope.

Response Envelope:
{
  "ok": true/false,
  "message": str | null,
  "data": {...} | list | null,
  "error": {"type": str, "details": any} | null,
  "meta": {...} | null
}
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional, TypeVar, Dict
import logging
from flask import jsonify

from screencraft.utils.errors import GenerationError, build_error_payload

F = TypeVar("F", bound=Callable[..., Any])

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# JSON Builders
# ---------------------------------------------------------------------------

def json_success(data: Any = None, message: Optional[str] = None, status: int = 200, **meta):
    """Build a standardized success JSON response.

    Additional keyword args become part of meta.
    """
    payload: Dict[str, Any] = {
        "ok": True,
        "message": message,
        "data": data,
        "error": None,
        "meta": meta or None,
    }
    return jsonify(payload), status


def json_error(message: str, status: int = 400, *, error_type: Optional[str] = None, **details):
    """Build a standardized error JSON response."""
    payload: Dict[str, Any] = {
        "ok": False,
        "message": message,
        "data": None,
        "error": {
            "type": error_type or "ApplicationError",
            "details": details or None,
        },
        "meta": None,
    }
    return jsonify(payload), status


def error_response(exc: GenerationError):
    """Envelope for a pipeline error, using its own status and code."""
    payload = build_error_payload(exc)
    details = payload['details'] or {}
    return json_error(payload['message'], status=exc.http_status, error_type=payload['code'], **details)

# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------

def handle_exceptions(_func: Optional[F] = None, *, default_status: int = 500, logger_override: Optional[logging.Logger] = None, reraise: bool = False):
    """Decorator to standardize exception handling for route functions.

    Parameters:
        default_status: HTTP status for exceptions outside the pipeline hierarchy
        logger_override: custom logger; falls back to module logger
        reraise: if True, re-raise unexpected exceptions after logging
    """
    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args, **kwargs):  # type: ignore
            active_logger = logger_override or logger
            try:
                return func(*args, **kwargs)
            except GenerationError as exc:
                if exc.http_status >= 500:
                    active_logger.error(f"{func.__name__} failed [{exc.code}]: {exc.message}")
                else:
                    active_logger.info(f"{func.__name__} rejected [{exc.code}]: {exc.message}")
                return error_response(exc)
            except Exception as exc:  # pylint: disable=broad-except
                active_logger.exception("Unhandled exception in %s", func.__name__)
                if reraise:
                    raise
                return json_error("Internal server error", status=default_status, error_type=exc.__class__.__name__, detail=str(exc))
        return wrapper  # type: ignore
    # Support decorator w/ or w/out parentheses
    if _func is not None:
        return decorator(_func)
    return decorator

__all__ = [
    "json_success",
    "json_error",
    "error_response",
    "handle_exceptions",
]
