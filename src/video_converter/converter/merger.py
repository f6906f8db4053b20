"""Chunk discovery, ordering and concatenation."""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

from video_converter.converter.errors import (
    ChunkNumberingError,
    MergeIOError,
    NoChunksFound,
)
from video_converter.converter.models import ChunkFile, MergeResult

logger = logging.getLogger(__name__)

UNNUMBERED_SEQUENCE = -1

_SEQUENCE_PATTERN = re.compile(r"\d+")
_COPY_BUFFER_BYTES = 1024 * 1024


def extract_sequence_number(file_name: str) -> int | None:
    """First run of decimal digits in the base name, or None."""

    match = _SEQUENCE_PATTERN.search(Path(file_name).name)
    if match is None:
        return None
    return int(match.group(0))


def order_chunks(paths: list[Path]) -> list[ChunkFile]:
    """Sort by embedded sequence number, then by file name.

    Unnumbered files get the sentinel key and sort first, keeping their
    name order among themselves.
    """

    chunks: list[ChunkFile] = []
    for path in sorted(paths, key=lambda item: item.name):
        sequence = extract_sequence_number(path.name)
        chunks.append(
            ChunkFile(
                path=path,
                sequence=UNNUMBERED_SEQUENCE if sequence is None else sequence,
                numbered=sequence is not None,
            ),
        )
    chunks.sort(key=lambda chunk: chunk.sequence)
    return chunks


class ChunkMerger:
    """Concatenate a directory of chunk files into one artifact."""

    def __init__(
        self,
        *,
        chunk_glob: str = "*.chunk",
        merged_name: str = "merged.mp4",
        reject_unnumbered: bool = False,
        logger: logging.Logger = logger,
    ) -> None:
        self.chunk_glob = chunk_glob
        self.merged_name = merged_name
        self.reject_unnumbered = reject_unnumbered
        self.logger = logger

    def merged_path(self, source_dir: Path) -> Path:
        return source_dir / self.merged_name

    def discover(self, source_dir: Path) -> list[ChunkFile]:
        """List chunk files under ``source_dir`` in merge order."""

        if not source_dir.is_dir():
            raise MergeIOError(
                f"failed to find chunks: {source_dir} is not a directory",
                path=source_dir,
            )
        merged_path = self.merged_path(source_dir)
        try:
            paths = [
                path
                for path in source_dir.glob(self.chunk_glob)
                if path.is_file() and path != merged_path
            ]
        except OSError as error:
            raise MergeIOError(
                f"failed to find chunks: {error}",
                path=source_dir,
            ) from error
        return order_chunks(paths)

    def merge(self, source_dir: Path) -> MergeResult:
        """Write the merged artifact; never leaves a partial file behind."""

        chunks = self.discover(source_dir)
        if not chunks:
            raise NoChunksFound(
                f"no chunk files matching {self.chunk_glob!r} in {source_dir}",
                path=source_dir,
            )

        unnumbered = tuple(chunk.path.name for chunk in chunks if not chunk.numbered)
        if unnumbered:
            if self.reject_unnumbered:
                raise ChunkNumberingError(
                    f"{len(unnumbered)} chunk file(s) carry no sequence number",
                    path=source_dir,
                    unnumbered=unnumbered,
                )
            self.logger.warning(
                "Chunk files without sequence number are merged first (path=%s files=%s).",
                source_dir,
                ", ".join(unnumbered),
                extra={"path": str(source_dir), "unnumbered_chunks": list(unnumbered)},
            )

        merged_path = self.merged_path(source_dir)
        try:
            bytes_written = self._write_merged(chunks, merged_path)
        except OSError as error:
            self._discard_partial(merged_path)
            raise MergeIOError(
                f"failed to write merged file {merged_path}: {error}",
                path=merged_path,
            ) from error

        self.logger.info(
            "Merged %d chunks into %s (%d bytes).",
            len(chunks),
            merged_path,
            bytes_written,
            extra={"path": str(source_dir), "chunk_count": len(chunks)},
        )
        return MergeResult(
            merged_path=merged_path,
            chunk_count=len(chunks),
            bytes_written=bytes_written,
            degraded=bool(unnumbered),
        )

    def _discard_partial(self, merged_path: Path) -> None:
        try:
            merged_path.unlink(missing_ok=True)
        except OSError as error:
            self.logger.warning(
                "Failed to remove partial merged file %s: %s",
                merged_path,
                error,
                extra={"path": str(merged_path)},
            )

    def _write_merged(self, chunks: list[ChunkFile], merged_path: Path) -> int:
        with merged_path.open("wb") as output:
            for chunk in chunks:
                with chunk.path.open("rb") as source:
                    shutil.copyfileobj(source, output, _COPY_BUFFER_BYTES)
            return output.tell()
