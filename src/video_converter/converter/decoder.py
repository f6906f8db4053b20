"""Inbound message decoding."""

from __future__ import annotations

import json
from pathlib import Path

from video_converter.converter.errors import DecodeError
from video_converter.converter.models import VideoTask

# Largest value an SQLite INTEGER column holds.
MAX_VIDEO_ID = 2**63 - 1


def decode_task(raw: bytes | str, *, source_root: Path | None = None) -> VideoTask:
    """Parse ``{"video_id": int, "path": str}`` into a task.

    When ``source_root`` is given, the task path must resolve inside it.
    """

    try:
        payload = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as error:
        raise DecodeError(f"Invalid task JSON: {error}") from error
    if not isinstance(payload, dict):
        raise DecodeError(f"Task message must be a JSON object, got {type(payload).__name__}.")

    video_id = payload.get("video_id")
    if isinstance(video_id, bool) or not isinstance(video_id, int):
        raise DecodeError(f"Task field 'video_id' must be an integer, got {video_id!r}.")
    if video_id < 0:
        raise DecodeError(f"Task field 'video_id' must be >= 0, got {video_id}.", video_id=video_id)
    if video_id > MAX_VIDEO_ID:
        raise DecodeError(
            f"Task field 'video_id' must fit a 64-bit integer, got {video_id}.",
        )

    path = payload.get("path")
    if not isinstance(path, str) or not path.strip():
        raise DecodeError(
            f"Task field 'path' must be a non-empty string, got {path!r}.",
            video_id=video_id,
        )

    task_path = Path(path)
    if source_root is not None:
        _ensure_inside_root(task_path, source_root=source_root, video_id=video_id)
    return VideoTask(video_id=video_id, path=task_path)


def _ensure_inside_root(path: Path, *, source_root: Path, video_id: int) -> None:
    resolved_root = source_root.resolve()
    resolved = path.resolve()
    if not resolved.is_relative_to(resolved_root):
        raise DecodeError(
            f"Task path {str(path)!r} is outside the source root {str(resolved_root)!r}.",
            video_id=video_id,
        )
