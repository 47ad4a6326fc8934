"""Exception hierarchy for the generation pipeline and its HTTP mapping.

Every error that can reach a caller carries an HTTP status and a stable
machine-readable code so the route layer can map it uniformly.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(eq=False)
class GenerationError(Exception):
    message: str
    http_status: int = 500
    code: Optional[str] = 'generation_failed'
    details: Optional[Dict[str, Any]] = None

    def __str__(self):  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class InputError(GenerationError):
    """Rejected request: no visual inputs, missing or invalid platform."""
    http_status: int = 400
    code: Optional[str] = 'invalid_input'


@dataclass(eq=False)
class InferenceError(GenerationError):
    """Permanent inference backend failure; never retried."""
    http_status: int = 502
    code: Optional[str] = 'inference_failed'
    status_code: Optional[int] = None


@dataclass(eq=False)
class TransientInferenceError(InferenceError):
    """Backend signalled temporary overload (HTTP 429/503)."""
    http_status: int = 503
    code: Optional[str] = 'backend_overloaded'


class SchemaError(ValueError):
    """Parsed reply does not match the shape the caller asked for."""


def build_error_payload(exc: Exception) -> Dict[str, Any]:
    """Flatten an exception into ``{message, code, details}``."""
    if isinstance(exc, GenerationError):
        return {
            'message': exc.message,
            'code': exc.code,
            'details': exc.details,
        }
    return {
        'message': str(exc) or exc.__class__.__name__,
        'code': 'internal_error',
        'details': None,
    }


def http_status_for(exc: Exception) -> int:
    return exc.http_status if isinstance(exc, GenerationError) else 500
