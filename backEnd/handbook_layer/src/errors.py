"""
Error types for the handbook layer.

Each error carries a `kind` so callers can map failures to
user-facing messages without parsing exception text.
"""

from enum import Enum
from typing import Optional


class IngestErrorKind(str, Enum):
    """Why a PDF could not be turned into a corpus."""

    NOT_FOUND = "not_found"
    PARSE_FAILURE = "parse_failure"


class StoreErrorKind(str, Enum):
    """Why the store could not serve a handbook."""

    UNKNOWN_DOCUMENT = "unknown_document"
    UNAVAILABLE = "unavailable"


class HandbookError(Exception):
    """Base exception for handbook layer errors."""

    def __init__(self, message: str, document_id: Optional[str] = None):
        super().__init__(message)
        self.document_id = document_id


class IngestError(HandbookError):
    """Raised when a handbook PDF is missing or cannot be parsed."""

    def __init__(
        self,
        kind: IngestErrorKind,
        message: str,
        document_id: Optional[str] = None,
    ):
        super().__init__(message, document_id=document_id)
        self.kind = kind


class SnapshotError(HandbookError):
    """Raised when a snapshot file is unreadable or not in snapshot format."""


class StoreError(HandbookError):
    """Raised when a handbook cannot be resolved or loaded."""

    def __init__(
        self,
        kind: StoreErrorKind,
        message: str,
        document_id: Optional[str] = None,
    ):
        super().__init__(message, document_id=document_id)
        self.kind = kind
