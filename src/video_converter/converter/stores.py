"""Storage interfaces used by the worker."""

from __future__ import annotations

from typing import Any, Protocol

from video_converter.converter.models import MarkResult


class IdempotencyStore(Protocol):
    """Durable record of videos converted successfully."""

    def is_processed(self, video_id: int) -> bool:
        """Return whether a success record exists. Raises StoreError on lookup failure."""

    def mark_processed(self, video_id: int) -> MarkResult:
        """Insert a success record. Raises StoreError on storage failure."""


class ErrorLogStore(Protocol):
    """Append-only structured error log."""

    def record_error(self, details: dict[str, Any]) -> None:
        """Persist one error payload. Raises ReportingFailure on storage failure."""
