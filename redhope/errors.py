"""Domain error taxonomy.

Every error carries the HTTP status the boundary should answer with; 4xx
codes mean the caller sent something wrong, 5xx codes mean a dependency
(store or payment provider) failed and the call is safe to retry.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class RedHopeError(Exception):
    status_code = 500
    error_type = "internal_error"

    def __init__(self, message: str = "", *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message or self.error_type)
        self.message = message or self.error_type
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"code": self.status_code, "type": self.error_type, "message": self.message}
        if self.details:
            out.update(self.details)
        return out


class ValidationError(RedHopeError):
    status_code = 400
    error_type = "validation_error"


class InvalidAmount(ValidationError):
    error_type = "invalid_amount"


class Unauthorized(RedHopeError):
    status_code = 401
    error_type = "unauthorized"


class NotFound(RedHopeError):
    status_code = 404
    error_type = "not_found"


class IllegalTransition(RedHopeError):
    status_code = 409
    error_type = "illegal_transition"


class StoreError(RedHopeError):
    status_code = 500
    error_type = "store_error"


class AggregationError(RedHopeError):
    status_code = 500
    error_type = "aggregation_error"


class ProviderError(RedHopeError):
    status_code = 502
    error_type = "provider_error"


class DuplicateTransaction(StoreError):
    """Raised by the funding store when the transaction id is already recorded."""

    error_type = "duplicate_transaction"


__all__ = [
    "RedHopeError",
    "ValidationError",
    "InvalidAmount",
    "Unauthorized",
    "NotFound",
    "IllegalTransition",
    "StoreError",
    "AggregationError",
    "ProviderError",
    "DuplicateTransaction",
]
