"""In-process store with the same contract as the SQLite repository."""

from __future__ import annotations

import copy
import threading
from typing import Any

from video_converter.converter.errors import ReportingFailure, StoreError
from video_converter.converter.models import ErrorLogEntry, MarkResult, ProcessedVideoView
from video_converter.storage.common import utc_now


class InMemoryConverterStore:
    """Idempotency store and error log kept in memory.

    The ``fail_*`` switches make the next calls raise the storage errors the
    worker has to cope with.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._processed: dict[int, ProcessedVideoView] = {}
        self._errors: list[ErrorLogEntry] = []
        self.fail_lookup = False
        self.fail_mark = False
        self.fail_record = False
        self.mark_calls = 0

    def is_processed(self, video_id: int) -> bool:
        if self.fail_lookup:
            raise StoreError("processed-state lookup failed: store unavailable")
        with self._lock:
            return video_id in self._processed

    def mark_processed(self, video_id: int) -> MarkResult:
        if self.fail_mark:
            raise StoreError(f"failed to mark video {video_id} as processed: store unavailable")
        with self._lock:
            self.mark_calls += 1
            if video_id in self._processed:
                return MarkResult.ALREADY_MARKED
            self._processed[video_id] = ProcessedVideoView(
                video_id=video_id,
                status="success",
                processed_at=utc_now(),
            )
            return MarkResult.MARKED

    def list_processed(self, *, limit: int = 50) -> list[ProcessedVideoView]:
        with self._lock:
            rows = list(self._processed.values())
        return list(reversed(rows))[:limit]

    def record_error(self, details: dict[str, Any]) -> None:
        if self.fail_record:
            raise ReportingFailure("failed to store error log: store unavailable")
        with self._lock:
            self._errors.append(
                ErrorLogEntry(
                    error_id=len(self._errors) + 1,
                    details=copy.deepcopy(details),
                    created_at=utc_now(),
                ),
            )

    def list_errors(self, *, limit: int = 50) -> list[ErrorLogEntry]:
        with self._lock:
            rows = list(self._errors)
        return list(reversed(rows))[:limit]
