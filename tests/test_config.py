from pathlib import Path

import allure
import pytest

from video_converter.config import Settings

pytestmark = [
    allure.epic("Configuration"),
    allure.feature("Settings"),
]

_ENV_NAMES = (
    "VIDEO_CONVERTER_DB_PATH",
    "VIDEO_CONVERTER_SQLITE_BUSY_TIMEOUT_MS",
    "VIDEO_CONVERTER_CHUNK_GLOB",
    "VIDEO_CONVERTER_MERGED_NAME",
    "VIDEO_CONVERTER_REJECT_UNNUMBERED_CHUNKS",
    "VIDEO_CONVERTER_FFMPEG_BINARY",
    "VIDEO_CONVERTER_OUTPUT_FORMAT",
    "VIDEO_CONVERTER_OUTPUT_DIR_NAME",
    "VIDEO_CONVERTER_MANIFEST_NAME",
    "VIDEO_CONVERTER_TRANSCODE_TIMEOUT_SECONDS",
    "VIDEO_CONVERTER_MAX_OUTPUT_CHARS",
    "VIDEO_CONVERTER_SOURCE_ROOT",
    "VIDEO_CONVERTER_REPROCESS_ON_LOOKUP_FAILURE",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_worker_conventions() -> None:
    settings = Settings.from_env()

    assert settings.db_path == Path(".video_converter.db")
    assert settings.merge.chunk_glob == "*.chunk"
    assert settings.merge.merged_name == "merged.mp4"
    assert settings.merge.reject_unnumbered_chunks is False
    assert settings.transcode.ffmpeg_binary == "ffmpeg"
    assert settings.transcode.output_format == "dash"
    assert settings.transcode.output_dir_name == "mpeg-dash"
    assert settings.transcode.manifest_name == "output.mpd"
    assert settings.worker.source_root is None
    assert settings.worker.reprocess_on_lookup_failure is False
    settings.validate()


def test_from_env_reads_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VIDEO_CONVERTER_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("VIDEO_CONVERTER_SQLITE_BUSY_TIMEOUT_MS", "250")
    monkeypatch.setenv("VIDEO_CONVERTER_CHUNK_GLOB", "*.part")
    monkeypatch.setenv("VIDEO_CONVERTER_MERGED_NAME", "full.mp4")
    monkeypatch.setenv("VIDEO_CONVERTER_REJECT_UNNUMBERED_CHUNKS", "yes")
    monkeypatch.setenv("VIDEO_CONVERTER_FFMPEG_BINARY", "/usr/local/bin/ffmpeg")
    monkeypatch.setenv("VIDEO_CONVERTER_TRANSCODE_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("VIDEO_CONVERTER_MAX_OUTPUT_CHARS", "100")
    monkeypatch.setenv("VIDEO_CONVERTER_SOURCE_ROOT", str(tmp_path))
    monkeypatch.setenv("VIDEO_CONVERTER_REPROCESS_ON_LOOKUP_FAILURE", "on")

    settings = Settings.from_env()

    assert settings.db_path == tmp_path / "env.db"
    assert settings.sqlite_busy_timeout_ms == 250
    assert settings.merge.chunk_glob == "*.part"
    assert settings.merge.merged_name == "full.mp4"
    assert settings.merge.reject_unnumbered_chunks is True
    assert settings.transcode.ffmpeg_binary == "/usr/local/bin/ffmpeg"
    assert settings.transcode.timeout_seconds == 12.5
    assert settings.transcode.max_output_chars == 100
    assert settings.worker.source_root == tmp_path
    assert settings.worker.reprocess_on_lookup_failure is True


def test_explicit_db_path_wins_over_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VIDEO_CONVERTER_DB_PATH", str(tmp_path / "env.db"))

    assert Settings.from_env(db_path=tmp_path / "cli.db").db_path == tmp_path / "cli.db"


def test_invalid_boolean_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VIDEO_CONVERTER_REJECT_UNNUMBERED_CHUNKS", "maybe")

    with pytest.raises(ValueError, match="Invalid boolean value"):
        Settings.from_env()


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("VIDEO_CONVERTER_SQLITE_BUSY_TIMEOUT_MS", "0", "must be > 0"),
        ("VIDEO_CONVERTER_CHUNK_GLOB", "  ", "must not be empty"),
        ("VIDEO_CONVERTER_MERGED_NAME", "out/merged.mp4", "path separators"),
        ("VIDEO_CONVERTER_OUTPUT_DIR_NAME", "..", "plain file name"),
        ("VIDEO_CONVERTER_FFMPEG_BINARY", " ", "must not be empty"),
        ("VIDEO_CONVERTER_TRANSCODE_TIMEOUT_SECONDS", "-1", "must be > 0"),
        ("VIDEO_CONVERTER_MAX_OUTPUT_CHARS", "0", "must be > 0"),
    ],
)
def test_validate_rejects_unusable_values(
    monkeypatch: pytest.MonkeyPatch,
    name: str,
    value: str,
    message: str,
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValueError, match=message):
        Settings.from_env().validate()
