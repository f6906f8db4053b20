"""Failure taxonomy for the conversion pipeline."""

from __future__ import annotations

from pathlib import Path


class ConverterError(RuntimeError):
    """Base class for every pipeline failure."""

    def context(self) -> dict[str, object]:
        """Structured fields merged into the persisted error payload."""

        return {}


class DecodeError(ConverterError):
    """Inbound message is malformed or misses required fields."""

    def __init__(self, message: str, *, video_id: int | None = None) -> None:
        super().__init__(message)
        self.video_id = video_id


class MergeError(ConverterError):
    """Chunk merge could not produce the merged artifact."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path

    def context(self) -> dict[str, object]:
        return {"path": str(self.path)}


class NoChunksFound(MergeError):
    """Source directory holds no chunk files."""


class MergeIOError(MergeError):
    """Read or write failure while concatenating chunks."""


class ChunkNumberingError(MergeError):
    """Chunk file names carry no sequence number and strict numbering is on."""

    def __init__(self, message: str, *, path: Path, unnumbered: tuple[str, ...]) -> None:
        super().__init__(message, path=path)
        self.unnumbered = unnumbered

    def context(self) -> dict[str, object]:
        return {"path": str(self.path), "unnumbered_chunks": list(self.unnumbered)}


class TranscodeError(ConverterError):
    """External encoder failed to launch, exited non-zero, or timed out."""

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None,
        output: str = "",
        timed_out: bool = False,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output
        self.timed_out = timed_out

    def context(self) -> dict[str, object]:
        return {
            "exit_code": self.exit_code,
            "timed_out": self.timed_out,
            "output": self.output,
        }


class CleanupError(ConverterError):
    """Merged artifact could not be removed after a successful conversion."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path

    def context(self) -> dict[str, object]:
        return {"path": str(self.path)}


class StoreError(ConverterError):
    """Idempotency lookup or success mark failed in durable storage."""


class ReportingFailure(ConverterError):
    """Error record could not be persisted. Logged, never escalated."""
