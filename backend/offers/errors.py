"""
Error types raised by the offer evaluation engine.

``InvalidInput`` always names the field (and offer, when one is involved) that
caused the rejection so the client can highlight the exact input to fix.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class OfferEngineError(Exception):
    """Base class for offer engine errors."""


class InvalidInput(OfferEngineError):
    """Raised when comparison or projection inputs cannot be used."""

    def __init__(self, message: str, *, field: str, job_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.job_id = job_id

    def as_dict(self) -> Dict[str, Any]:
        return {
            'message': self.message,
            'field': self.field,
            'job_id': self.job_id,
        }

    def __repr__(self):
        return f"InvalidInput(field={self.field!r}, job_id={self.job_id!r}, message={self.message!r})"


class UpstreamUnavailable(OfferEngineError):
    """Raised when the narrative generator cannot return text."""
