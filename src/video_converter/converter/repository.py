"""Processed-video and error-log persistence backed by SQLModel + SQLite."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from sqlalchemy import exists
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from video_converter.converter.errors import ReportingFailure, StoreError
from video_converter.converter.models import ErrorLogEntry, MarkResult, ProcessedVideoView
from video_converter.storage.alembic_runner import upgrade_head
from video_converter.storage.common import (
    build_sqlite_engine,
    connect_sqlite_with_policy,
    from_db_datetime,
    to_db_datetime,
    utc_now,
)
from video_converter.storage.sqlmodel_models import (
    PROCESSED_STATUS_SUCCESS,
    ProcessedVideo,
    ProcessErrorLog,
)

logger = logging.getLogger(__name__)


class ConverterRepository:
    """Durable idempotency store and error log."""

    def __init__(self, db_path: Path, *, sqlite_busy_timeout_ms: int = 5_000) -> None:
        self.db_path = db_path
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=sqlite_busy_timeout_ms)

        # Keep low-level connection for tests and ad-hoc debugging queries.
        self._connection = connect_sqlite_with_policy(
            db_path=db_path,
            busy_timeout_ms=sqlite_busy_timeout_ms,
        )

    def close(self) -> None:
        """Close underlying DB resources."""

        self._connection.close()
        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def is_processed(self, video_id: int) -> bool:
        try:
            with Session(self.engine) as session:
                found = session.exec(
                    select(
                        exists().where(
                            col(ProcessedVideo.video_id) == video_id,
                            col(ProcessedVideo.status) == PROCESSED_STATUS_SUCCESS,
                        ),
                    ),
                ).one()
        except SQLAlchemyError as error:
            logger.error("Error checking if video is processed (video_id=%s).", video_id)
            raise StoreError(f"processed-state lookup failed: {error}") from error
        return bool(found)

    def mark_processed(self, video_id: int) -> MarkResult:
        try:
            with Session(self.engine) as session:
                session.add(
                    ProcessedVideo(
                        video_id=video_id,
                        status=PROCESSED_STATUS_SUCCESS,
                        processed_at=to_db_datetime(utc_now()),
                    ),
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    return MarkResult.ALREADY_MARKED
        except SQLAlchemyError as error:
            logger.error("Error marking video as processed (video_id=%s).", video_id)
            raise StoreError(f"failed to mark video {video_id} as processed: {error}") from error
        return MarkResult.MARKED

    def list_processed(self, *, limit: int = 50) -> list[ProcessedVideoView]:
        with Session(self.engine) as session:
            rows = session.exec(
                select(ProcessedVideo)
                .order_by(col(ProcessedVideo.processed_at).desc(), col(ProcessedVideo.id).desc())
                .limit(limit),
            ).all()
        return [
            ProcessedVideoView(
                video_id=row.video_id,
                status=row.status,
                processed_at=from_db_datetime(row.processed_at),
            )
            for row in rows
        ]

    def record_error(self, details: dict[str, Any]) -> None:
        try:
            serialized = json.dumps(details, default=str)
        except (TypeError, ValueError) as error:
            raise ReportingFailure(f"error payload is not serializable: {error}") from error
        try:
            with Session(self.engine) as session:
                session.add(
                    ProcessErrorLog(
                        error_details=serialized,
                        created_at=to_db_datetime(utc_now()),
                    ),
                )
                session.commit()
        except SQLAlchemyError as error:
            raise ReportingFailure(f"failed to store error log: {error}") from error

    def list_errors(self, *, limit: int = 50) -> list[ErrorLogEntry]:
        """Newest error records first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(ProcessErrorLog)
                .order_by(col(ProcessErrorLog.created_at).desc(), col(ProcessErrorLog.id).desc())
                .limit(limit),
            ).all()
        return [
            ErrorLogEntry(
                error_id=row.id or 0,
                details=json.loads(row.error_details),
                created_at=from_db_datetime(row.created_at),
            )
            for row in rows
        ]
