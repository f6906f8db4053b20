"""Domain models for chunk merge and conversion tasks."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from video_converter.converter.errors import CleanupError, ConverterError


class PipelineState(str, Enum):
    """Per-message processing states."""

    RECEIVED = "received"
    DECODED = "decoded"
    IDEMPOTENCY_CHECKED = "idempotency_checked"
    MERGED = "merged"
    TRANSCODED = "transcoded"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class MarkResult(str, Enum):
    """Outcome of recording a success record."""

    MARKED = "marked"
    ALREADY_MARKED = "already_marked"


@dataclass(frozen=True, slots=True)
class VideoTask:
    """One logical video and the directory holding its chunks."""

    video_id: int
    path: Path


@dataclass(frozen=True, slots=True)
class ChunkFile:
    """Discovered chunk with its ordering key."""

    path: Path
    sequence: int
    numbered: bool


@dataclass(slots=True)
class MergeResult:
    """Merged artifact produced from one chunk set."""

    merged_path: Path
    chunk_count: int
    bytes_written: int
    degraded: bool = False


@dataclass(slots=True)
class TranscodeResult:
    """Successful encoder run."""

    manifest_path: Path
    output_dir: Path
    exit_code: int
    output: str


@dataclass(slots=True)
class ProcessOutput:
    """Exit status and combined stdout/stderr of one external process run."""

    exit_code: int
    output: str


@dataclass(slots=True)
class ErrorLogEntry:
    """Persisted error record read back from storage."""

    error_id: int
    details: dict[str, Any]
    created_at: datetime


@dataclass(slots=True)
class ProcessedVideoView:
    """Persisted success record."""

    video_id: int
    status: str
    processed_at: datetime


@dataclass(slots=True)
class TaskOutcome:
    """What happened to one inbound message."""

    state: PipelineState
    video_id: int | None = None
    error: ConverterError | None = None
    merge: MergeResult | None = None
    transcode: TranscodeResult | None = None
    cleanup_error: CleanupError | None = None
    already_marked: bool = False
    history: list[PipelineState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state == PipelineState.COMPLETED


@dataclass(slots=True)
class WorkerRunSummary:
    """Aggregate worker counters for CLI reporting."""

    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0
    cleanup_warnings: int = 0

    def add(self, outcome: TaskOutcome) -> None:
        self.processed += 1
        if outcome.state == PipelineState.COMPLETED:
            self.succeeded += 1
        elif outcome.state == PipelineState.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1
        if outcome.cleanup_error is not None:
            self.cleanup_warnings += 1
