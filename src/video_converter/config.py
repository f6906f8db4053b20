"""Runtime configuration for the chunk merge and conversion worker."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class MergeSettings:
    """Chunk discovery and merge settings."""

    chunk_glob: str = "*.chunk"
    merged_name: str = "merged.mp4"
    reject_unnumbered_chunks: bool = False


@dataclass(slots=True)
class TranscodeSettings:
    """External encoder invocation settings."""

    ffmpeg_binary: str = "ffmpeg"
    output_format: str = "dash"
    output_dir_name: str = "mpeg-dash"
    manifest_name: str = "output.mpd"
    timeout_seconds: float = 3_600.0
    max_output_chars: int = 8_000


@dataclass(slots=True)
class WorkerSettings:
    """Task orchestration policy."""

    source_root: Path | None = None
    reprocess_on_lookup_failure: bool = False


@dataclass(slots=True)
class Settings:
    """Application settings grouped by domain concerns."""

    db_path: Path = Path(".video_converter.db")
    sqlite_busy_timeout_ms: int = 5_000
    merge: MergeSettings = field(default_factory=MergeSettings)
    transcode: TranscodeSettings = field(default_factory=TranscodeSettings)
    worker: WorkerSettings = field(default_factory=WorkerSettings)

    @classmethod
    def from_env(cls, db_path: Path | None = None) -> Settings:
        """Load settings from environment with sane defaults for local development."""

        source_root = os.getenv("VIDEO_CONVERTER_SOURCE_ROOT", "").strip()
        return cls(
            db_path=db_path or Path(os.getenv("VIDEO_CONVERTER_DB_PATH", ".video_converter.db")),
            sqlite_busy_timeout_ms=int(
                os.getenv("VIDEO_CONVERTER_SQLITE_BUSY_TIMEOUT_MS", "5000"),
            ),
            merge=MergeSettings(
                chunk_glob=os.getenv("VIDEO_CONVERTER_CHUNK_GLOB", "*.chunk"),
                merged_name=os.getenv("VIDEO_CONVERTER_MERGED_NAME", "merged.mp4"),
                reject_unnumbered_chunks=_env_bool(
                    "VIDEO_CONVERTER_REJECT_UNNUMBERED_CHUNKS",
                    default=False,
                ),
            ),
            transcode=TranscodeSettings(
                ffmpeg_binary=os.getenv("VIDEO_CONVERTER_FFMPEG_BINARY", "ffmpeg"),
                output_format=os.getenv("VIDEO_CONVERTER_OUTPUT_FORMAT", "dash"),
                output_dir_name=os.getenv("VIDEO_CONVERTER_OUTPUT_DIR_NAME", "mpeg-dash"),
                manifest_name=os.getenv("VIDEO_CONVERTER_MANIFEST_NAME", "output.mpd"),
                timeout_seconds=float(
                    os.getenv("VIDEO_CONVERTER_TRANSCODE_TIMEOUT_SECONDS", "3600"),
                ),
                max_output_chars=int(os.getenv("VIDEO_CONVERTER_MAX_OUTPUT_CHARS", "8000")),
            ),
            worker=WorkerSettings(
                source_root=Path(source_root) if source_root else None,
                reprocess_on_lookup_failure=_env_bool(
                    "VIDEO_CONVERTER_REPROCESS_ON_LOOKUP_FAILURE",
                    default=False,
                ),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error for values the worker cannot run with."""

        if self.sqlite_busy_timeout_ms <= 0:
            raise ValueError("VIDEO_CONVERTER_SQLITE_BUSY_TIMEOUT_MS must be > 0.")
        if not self.merge.chunk_glob.strip():
            raise ValueError("VIDEO_CONVERTER_CHUNK_GLOB must not be empty.")
        _validate_file_name("VIDEO_CONVERTER_MERGED_NAME", self.merge.merged_name)
        _validate_file_name("VIDEO_CONVERTER_OUTPUT_DIR_NAME", self.transcode.output_dir_name)
        _validate_file_name("VIDEO_CONVERTER_MANIFEST_NAME", self.transcode.manifest_name)
        if not self.transcode.ffmpeg_binary.strip():
            raise ValueError("VIDEO_CONVERTER_FFMPEG_BINARY must not be empty.")
        if self.transcode.timeout_seconds <= 0:
            raise ValueError("VIDEO_CONVERTER_TRANSCODE_TIMEOUT_SECONDS must be > 0.")
        if self.transcode.max_output_chars <= 0:
            raise ValueError("VIDEO_CONVERTER_MAX_OUTPUT_CHARS must be > 0.")


def _validate_file_name(name: str, value: str) -> None:
    stripped = value.strip()
    if not stripped or stripped in {".", ".."}:
        raise ValueError(f"{name} must be a plain file name, got {value!r}.")
    if "/" in stripped or "\\" in stripped:
        raise ValueError(f"{name} must not contain path separators, got {value!r}.")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid boolean value for {name}: {value!r}")
