"""CLI entrypoint for video-converter."""

import logging
from pathlib import Path

import rich_click as click

from video_converter import __version__
from video_converter.converter.controllers import (
    ConverterCliController,
    HandleCommand,
    InitDbCommand,
    ListCommand,
    StatusCommand,
)

click.rich_click.USE_MARKDOWN = True
CONVERTER_CONTROLLER = ConverterCliController()


@click.group()
@click.version_option(version=__version__, prog_name="video-converter")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    show_default=True,
    help="Logging level for worker output.",
)
def video_converter(log_level: str) -> None:
    """Merge uploaded video chunks and convert them to MPEG-DASH."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@video_converter.command("init-db")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
def init_db(db_path: Path | None) -> None:
    """Apply database migrations."""

    _emit_lines(CONVERTER_CONTROLLER.init_db(InitDbCommand(db_path=db_path)))


@video_converter.command("handle")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--message",
    "messages",
    multiple=True,
    help='Task message JSON, for example `{"video_id": 1, "path": "/data/1"}`. Can be repeated.',
)
@click.option(
    "--messages-file",
    type=click.File("r", encoding="utf-8"),
    default=None,
    help="JSON-lines file with one task message per line. Use `-` for stdin.",
)
def handle(db_path: Path | None, messages: tuple[str, ...], messages_file) -> None:
    """Process task messages one after another."""

    collected = list(messages)
    if messages_file is not None:
        collected.extend(line.strip() for line in messages_file)
    if not collected:
        raise click.UsageError("Provide at least one --message or --messages-file.")

    result = CONVERTER_CONTROLLER.handle(
        HandleCommand(db_path=db_path, messages=tuple(collected)),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("One or more tasks failed; see the error log.")


@video_converter.command("status")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.argument("video_id", type=click.IntRange(min=0))
def status(db_path: Path | None, video_id: int) -> None:
    """Show whether a video has been processed."""

    _emit_lines(CONVERTER_CONTROLLER.status(StatusCommand(db_path=db_path, video_id=video_id)))


@video_converter.command("errors")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=20,
    show_default=True,
    help="Maximum number of error records to show.",
)
def errors(db_path: Path | None, limit: int) -> None:
    """Show recent error-log records, newest first."""

    _emit_lines(CONVERTER_CONTROLLER.errors(ListCommand(db_path=db_path, limit=limit)))


@video_converter.command("processed")
@click.option("--db-path", type=click.Path(path_type=Path), default=None, help="SQLite DB path.")
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=20,
    show_default=True,
    help="Maximum number of records to show.",
)
def processed(db_path: Path | None, limit: int) -> None:
    """Show recent processed-video records, newest first."""

    _emit_lines(CONVERTER_CONTROLLER.processed(ListCommand(db_path=db_path, limit=limit)))


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    video_converter()
