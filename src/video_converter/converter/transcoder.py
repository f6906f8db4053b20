"""External encoder invocation producing MPEG-DASH output."""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from video_converter.converter.errors import TranscodeError
from video_converter.converter.models import ProcessOutput, TranscodeResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_CHARS = 8_000
TRUNCATION_MARKER = "[... output truncated ...]\n"

ProcessRunner = Callable[[list[str], float | None], ProcessOutput]


class Transcoder(Protocol):
    """Protocol implemented by encoder bindings."""

    def encode(self, input_path: Path, output_dir: Path) -> TranscodeResult:
        """Convert ``input_path`` into streaming output under ``output_dir``."""


def run_process(args: list[str], timeout_seconds: float | None) -> ProcessOutput:
    """Run ``args`` to completion, capturing stdout and stderr as one stream."""

    completed = subprocess.run(  # noqa: S603
        args,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        timeout=timeout_seconds,
        check=False,
    )
    return ProcessOutput(
        exit_code=completed.returncode,
        output=_decode_output(completed.stdout),
    )


def clamp_output(text: str, *, max_chars: int = DEFAULT_MAX_OUTPUT_CHARS) -> str:
    """Bound captured output, keeping the tail where encoders print fatal errors."""

    if len(text) <= max_chars:
        return text
    return TRUNCATION_MARKER + text[-max_chars:]


class FfmpegTranscoder:
    """Run ``ffmpeg -i <input> -f <format> <manifest>``."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        binary: str = "ffmpeg",
        output_format: str = "dash",
        manifest_name: str = "output.mpd",
        timeout_seconds: float | None = None,
        max_output_chars: int = DEFAULT_MAX_OUTPUT_CHARS,
        runner: ProcessRunner = run_process,
        logger: logging.Logger = logger,
    ) -> None:
        self.binary = binary
        self.output_format = output_format
        self.manifest_name = manifest_name
        self.timeout_seconds = timeout_seconds
        self.max_output_chars = max_output_chars
        self.runner = runner
        self.logger = logger

    def build_command(self, input_path: Path, manifest_path: Path) -> list[str]:
        return [
            self.binary,
            "-i",
            str(input_path),
            "-f",
            self.output_format,
            str(manifest_path),
        ]

    def encode(self, input_path: Path, output_dir: Path) -> TranscodeResult:
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise TranscodeError(
                f"failed to create output directory {output_dir}: {error}",
                exit_code=None,
            ) from error

        manifest_path = output_dir / self.manifest_name
        args = self.build_command(input_path, manifest_path)
        self.logger.info(
            "Running encoder: %s",
            " ".join(args),
            extra={"path": str(input_path), "output_dir": str(output_dir)},
        )
        try:
            completed = self.runner(args, self.timeout_seconds)
        except subprocess.TimeoutExpired as error:
            raise TranscodeError(
                f"encoder timed out after {error.timeout} seconds",
                exit_code=None,
                output=self._clamp(_decode_output(error.output)),
                timed_out=True,
            ) from error
        except FileNotFoundError as error:
            raise TranscodeError(
                f"encoder command not found: {self.binary}",
                exit_code=None,
            ) from error
        except OSError as error:
            raise TranscodeError(
                f"encoder failed to start: {error}",
                exit_code=None,
            ) from error

        output = self._clamp(completed.output)
        if completed.exit_code != 0:
            raise TranscodeError(
                f"encoder exited with code {completed.exit_code}",
                exit_code=completed.exit_code,
                output=output,
            )
        return TranscodeResult(
            manifest_path=manifest_path,
            output_dir=output_dir,
            exit_code=completed.exit_code,
            output=output,
        )

    def _clamp(self, text: str) -> str:
        return clamp_output(text, max_chars=self.max_output_chars)


def _decode_output(raw: bytes | str | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw.decode("utf-8", errors="replace")
