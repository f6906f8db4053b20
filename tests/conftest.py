"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from video_converter.converter.memory import InMemoryConverterStore
from video_converter.converter.merger import ChunkMerger
from video_converter.converter.models import TranscodeResult
from video_converter.converter.reporter import ErrorReporter
from video_converter.converter.worker import VideoConverterWorker


class FakeTranscoder:
    """Records calls and writes a stub manifest instead of running ffmpeg."""

    def __init__(self) -> None:
        self.calls: list[tuple[Path, Path]] = []
        self.inputs: list[bytes] = []
        self.error: Exception | None = None
        self.remove_input = False

    def encode(self, input_path: Path, output_dir: Path) -> TranscodeResult:
        self.calls.append((input_path, output_dir))
        self.inputs.append(input_path.read_bytes())
        if self.error is not None:
            raise self.error
        output_dir.mkdir(parents=True, exist_ok=True)
        manifest_path = output_dir / "output.mpd"
        manifest_path.write_text("<MPD/>", "utf-8")
        (output_dir / "chunk-stream0-00001.m4s").write_bytes(b"segment")
        if self.remove_input:
            input_path.unlink()
        return TranscodeResult(
            manifest_path=manifest_path,
            output_dir=output_dir,
            exit_code=0,
            output="",
        )


@pytest.fixture()
def write_chunks() -> Callable[[Path, dict[str, bytes]], Path]:
    def _write(directory: Path, chunks: dict[str, bytes]) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        for name, content in chunks.items():
            (directory / name).write_bytes(content)
        return directory

    return _write


@pytest.fixture()
def store() -> InMemoryConverterStore:
    return InMemoryConverterStore()


@pytest.fixture()
def transcoder() -> FakeTranscoder:
    return FakeTranscoder()


@pytest.fixture()
def worker(store: InMemoryConverterStore, transcoder: FakeTranscoder) -> VideoConverterWorker:
    return VideoConverterWorker(
        store=store,
        reporter=ErrorReporter(store=store),
        merger=ChunkMerger(),
        transcoder=transcoder,
    )

