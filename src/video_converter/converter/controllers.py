"""Controllers for converter CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from video_converter.config import Settings
from video_converter.converter.merger import ChunkMerger
from video_converter.converter.models import WorkerRunSummary
from video_converter.converter.repository import ConverterRepository
from video_converter.converter.reporter import ErrorReporter
from video_converter.converter.transcoder import FfmpegTranscoder, Transcoder
from video_converter.converter.worker import VideoConverterWorker


@dataclass(slots=True)
class InitDbCommand:
    """CLI input for schema migration."""

    db_path: Path | None


@dataclass(slots=True)
class HandleCommand:
    """CLI input for processing task messages."""

    db_path: Path | None
    messages: tuple[str, ...]


@dataclass(slots=True)
class HandleResult:
    lines: list[str]
    success: bool


@dataclass(slots=True)
class StatusCommand:
    """CLI input for a processed-state lookup."""

    db_path: Path | None
    video_id: int


@dataclass(slots=True)
class ListCommand:
    """CLI input for error-log and processed-record listings."""

    db_path: Path | None
    limit: int


class ConverterCliController:
    """Coordinates worker runs and inspection CLI operations."""

    def __init__(self, *, transcoder: Transcoder | None = None) -> None:
        self.transcoder = transcoder

    def init_db(self, command: InitDbCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings):
            pass
        return [f"Schema ready: {settings.db_path}"]

    def handle(self, command: HandleCommand) -> HandleResult:
        settings = Settings.from_env(db_path=command.db_path)
        settings.validate()
        with _repository(settings) as repository:
            worker = build_worker(
                settings=settings,
                repository=repository,
                transcoder=self.transcoder,
            )
            summary = worker.run_messages(
                message for message in command.messages if message.strip()
            )
        return HandleResult(
            lines=[_summary_line(summary)],
            success=summary.failed == 0,
        )

    def status(self, command: StatusCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            processed = repository.is_processed(command.video_id)
        state = "processed" if processed else "not processed"
        return [f"Video {command.video_id}: {state}"]

    def errors(self, command: ListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            entries = repository.list_errors(limit=command.limit)
        if not entries:
            return ["No errors recorded."]
        return [
            f"{entry.created_at.isoformat()} id={entry.error_id} "
            f"{json.dumps(entry.details, sort_keys=True)}"
            for entry in entries
        ]

    def processed(self, command: ListCommand) -> list[str]:
        settings = Settings.from_env(db_path=command.db_path)
        with _repository(settings) as repository:
            rows = repository.list_processed(limit=command.limit)
        if not rows:
            return ["No processed videos."]
        return [
            f"{row.processed_at.isoformat()} video_id={row.video_id} status={row.status}"
            for row in rows
        ]


def build_worker(
    *,
    settings: Settings,
    repository: ConverterRepository,
    transcoder: Transcoder | None = None,
) -> VideoConverterWorker:
    """Wire the worker from settings and a repository."""

    return VideoConverterWorker(
        store=repository,
        reporter=ErrorReporter(store=repository),
        merger=ChunkMerger(
            chunk_glob=settings.merge.chunk_glob,
            merged_name=settings.merge.merged_name,
            reject_unnumbered=settings.merge.reject_unnumbered_chunks,
        ),
        transcoder=transcoder
        or FfmpegTranscoder(
            binary=settings.transcode.ffmpeg_binary,
            output_format=settings.transcode.output_format,
            manifest_name=settings.transcode.manifest_name,
            timeout_seconds=settings.transcode.timeout_seconds,
            max_output_chars=settings.transcode.max_output_chars,
        ),
        output_dir_name=settings.transcode.output_dir_name,
        source_root=settings.worker.source_root,
        reprocess_on_lookup_failure=settings.worker.reprocess_on_lookup_failure,
    )


def _summary_line(summary: WorkerRunSummary) -> str:
    return (
        "Worker summary: "
        f"processed={summary.processed} succeeded={summary.succeeded} "
        f"skipped={summary.skipped} failed={summary.failed} "
        f"cleanup_warnings={summary.cleanup_warnings}"
    )


@contextmanager
def _repository(settings: Settings) -> Iterator[ConverterRepository]:
    repository = ConverterRepository(
        db_path=settings.db_path,
        sqlite_busy_timeout_ms=settings.sqlite_busy_timeout_ms,
    )
    repository.init_schema()
    try:
        yield repository
    finally:
        repository.close()
