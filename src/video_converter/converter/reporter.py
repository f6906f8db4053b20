"""Structured failure reporting: operator log line plus durable error record."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from video_converter.converter.errors import ConverterError, ReportingFailure
from video_converter.converter.stores import ErrorLogStore
from video_converter.storage.common import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ErrorReport:
    """Payload that was logged, and whether it reached storage."""

    payload: dict[str, Any]
    persisted: bool


class ErrorReporter:
    """Log and persist pipeline failures. Never raises."""

    def __init__(self, *, store: ErrorLogStore, logger: logging.Logger = logger) -> None:
        self.store = store
        self.logger = logger

    def report(
        self,
        *,
        video_id: int | None,
        message: str,
        error: BaseException,
        level: int = logging.ERROR,
    ) -> ErrorReport:
        payload = build_error_payload(video_id=video_id, message=message, error=error)
        self.logger.log(
            level,
            "Processing error: %s",
            json.dumps(payload, default=str),
            extra={"error_details": payload, "video_id": video_id},
        )

        try:
            self.store.record_error(payload)
        except ReportingFailure as failure:
            self._log_reporting_failure(failure, video_id=video_id)
            return ErrorReport(payload=payload, persisted=False)
        except Exception as failure:  # noqa: BLE001
            self._log_reporting_failure(
                ReportingFailure(f"failed to store error log: {failure}"),
                video_id=video_id,
            )
            return ErrorReport(payload=payload, persisted=False)

        self.logger.info(
            "Error log stored successfully (video_id=%s): %s",
            video_id,
            error,
            extra={"video_id": video_id},
        )
        return ErrorReport(payload=payload, persisted=True)

    def _log_reporting_failure(self, failure: ReportingFailure, *, video_id: int | None) -> None:
        self.logger.error(
            "Error storing error log in database (video_id=%s): %s",
            video_id,
            failure,
            extra={"video_id": video_id},
        )


def build_error_payload(
    *,
    video_id: int | None,
    message: str,
    error: BaseException,
) -> dict[str, Any]:
    """Flatten a failure into the JSON document stored in the error log."""

    payload: dict[str, Any] = {
        "video_id": video_id,
        "error": message,
        "details": str(error),
        "error_type": type(error).__name__,
        "time": utc_now().isoformat(),
    }
    if isinstance(error, ConverterError):
        for key, value in error.context().items():
            payload.setdefault(key, value)
    return payload
