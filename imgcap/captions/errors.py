"""
Purpose:
- Error taxonomy for a caption batch.

Notes:
- ConfigurationError and TransportError abort a whole run.
- BackendError is scoped to one image and becomes an error event.
"""

from __future__ import annotations
from enum import Enum


class ConfigurationError(ValueError):
    """Batch cannot start: bad or missing settings, or no images."""


class TransportError(RuntimeError):
    """Progress channel can no longer deliver events."""


class BackendErrorKind(str, Enum):
    AUTH_MISSING = "auth_missing"
    NO_MODEL_SELECTED = "no_model_selected"
    PROVIDER_ERROR = "provider_error"


class BackendError(Exception):
    def __init__(self, kind: BackendErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __repr__(self) -> str:
        return f"BackendError(kind={self.kind.value!r}, message={self.message!r})"
