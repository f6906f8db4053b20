"""Per-message pipeline: decode, check, merge, convert, mark, clean up."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from video_converter.converter.decoder import decode_task
from video_converter.converter.errors import (
    CleanupError,
    ConverterError,
    DecodeError,
    StoreError,
)
from video_converter.converter.merger import ChunkMerger
from video_converter.converter.models import (
    MarkResult,
    PipelineState,
    TaskOutcome,
    VideoTask,
    WorkerRunSummary,
)
from video_converter.converter.reporter import ErrorReporter
from video_converter.converter.stores import IdempotencyStore
from video_converter.converter.transcoder import Transcoder

logger = logging.getLogger(__name__)


class VideoConverterWorker:
    """Runs one task at a time through the conversion pipeline.

    A failure in any phase is reported and ends the attempt; nothing is
    retried here. The video is marked processed right after a successful
    conversion, before the merged file is removed, so a failed removal is
    reported as a warning without losing the success record.
    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        store: IdempotencyStore,
        reporter: ErrorReporter,
        merger: ChunkMerger,
        transcoder: Transcoder,
        output_dir_name: str = "mpeg-dash",
        source_root: Path | None = None,
        reprocess_on_lookup_failure: bool = False,
        logger: logging.Logger = logger,
    ) -> None:
        self.store = store
        self.reporter = reporter
        self.merger = merger
        self.transcoder = transcoder
        self.output_dir_name = output_dir_name
        self.source_root = source_root
        self.reprocess_on_lookup_failure = reprocess_on_lookup_failure
        self.logger = logger

    def handle(self, message: bytes | str) -> TaskOutcome:
        """Process one raw message. Pipeline failures are reported, not raised."""

        outcome = TaskOutcome(state=PipelineState.RECEIVED, history=[PipelineState.RECEIVED])
        try:
            return self._process(message, outcome)
        except Exception as error:  # noqa: BLE001
            return self._fail(
                outcome,
                message=f"unexpected failure after state {outcome.state.value}",
                error=error,
            )

    def run_messages(self, messages: Iterable[bytes | str]) -> WorkerRunSummary:
        """Handle messages sequentially and aggregate outcomes."""

        summary = WorkerRunSummary()
        for message in messages:
            summary.add(self.handle(message))
        return summary

    def _process(self, message: bytes | str, outcome: TaskOutcome) -> TaskOutcome:
        try:
            task = decode_task(message, source_root=self.source_root)
        except DecodeError as error:
            outcome.video_id = error.video_id
            return self._fail(outcome, message="failed to unmarshal task", error=error)
        outcome.video_id = task.video_id
        self._advance(outcome, PipelineState.DECODED, task=task)

        try:
            already_processed = self._is_processed(task)
        except StoreError as error:
            return self._fail(outcome, message="failed to check processed state", error=error)
        self._advance(outcome, PipelineState.IDEMPOTENCY_CHECKED, task=task)
        if already_processed:
            self.logger.info(
                "Video already processed, skipping (video_id=%s).",
                task.video_id,
                extra={"video_id": task.video_id, "path": str(task.path)},
            )
            self._advance(outcome, PipelineState.SKIPPED, task=task)
            return outcome

        self.logger.info("Merging chunks (path=%s).", task.path, extra=_task_extra(task))
        try:
            outcome.merge = self.merger.merge(task.path)
        except ConverterError as error:
            return self._fail(outcome, message="failed to merge chunks", error=error)
        self._advance(outcome, PipelineState.MERGED, task=task)

        output_dir = task.path / self.output_dir_name
        self.logger.info(
            "Converting video to mpeg-dash (path=%s).",
            task.path,
            extra=_task_extra(task),
        )
        try:
            outcome.transcode = self.transcoder.encode(outcome.merge.merged_path, output_dir)
        except ConverterError as error:
            return self._fail(
                outcome,
                message="failed to convert video to mpeg-dash",
                error=error,
            )
        self.logger.info(
            "Video converted to mpeg-dash (path=%s).",
            output_dir,
            extra=_task_extra(task),
        )
        self._advance(outcome, PipelineState.TRANSCODED, task=task)

        try:
            marked = self.store.mark_processed(task.video_id)
        except StoreError as error:
            return self._fail(outcome, message="failed to mark video as processed", error=error)
        if marked == MarkResult.ALREADY_MARKED:
            outcome.already_marked = True
            self.logger.info(
                "Video was marked processed by another worker (video_id=%s).",
                task.video_id,
                extra=_task_extra(task),
            )

        outcome.cleanup_error = self._remove_merged_file(task, outcome.merge.merged_path)
        self._advance(outcome, PipelineState.COMPLETED, task=task)
        return outcome

    def _is_processed(self, task: VideoTask) -> bool:
        try:
            return self.store.is_processed(task.video_id)
        except StoreError as error:
            if not self.reprocess_on_lookup_failure:
                raise
            self.logger.warning(
                "Processed-state lookup failed, reprocessing (video_id=%s): %s",
                task.video_id,
                error,
                extra=_task_extra(task),
            )
            return False

    def _remove_merged_file(self, task: VideoTask, merged_path: Path) -> CleanupError | None:
        self.logger.info("Removing merged file (path=%s).", merged_path, extra=_task_extra(task))
        try:
            merged_path.unlink()
        except OSError as error:
            cleanup_error = CleanupError(
                f"failed to remove merged file {merged_path}: {error}",
                path=merged_path,
            )
            self.reporter.report(
                video_id=task.video_id,
                message="failed to remove merged file",
                error=cleanup_error,
                level=logging.WARNING,
            )
            return cleanup_error
        return None

    def _advance(self, outcome: TaskOutcome, state: PipelineState, *, task: VideoTask) -> None:
        outcome.state = state
        outcome.history.append(state)
        self.logger.info(
            "Task state -> %s (video_id=%s).",
            state.value,
            task.video_id,
            extra={**_task_extra(task), "state": state.value},
        )

    def _fail(self, outcome: TaskOutcome, *, message: str, error: BaseException) -> TaskOutcome:
        self.reporter.report(video_id=outcome.video_id, message=message, error=error)
        outcome.state = PipelineState.FAILED
        outcome.history.append(PipelineState.FAILED)
        if isinstance(error, ConverterError):
            outcome.error = error
        else:
            wrapped = ConverterError(f"{message}: {error}")
            wrapped.__cause__ = error
            outcome.error = wrapped
        return outcome


def _task_extra(task: VideoTask) -> dict[str, object]:
    return {"video_id": task.video_id, "path": str(task.path)}
