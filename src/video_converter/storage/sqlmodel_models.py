"""SQLModel ORM tables for conversion bookkeeping."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, Text, text
from sqlmodel import Field, SQLModel

PROCESSED_STATUS_SUCCESS = "success"


class ProcessedVideo(SQLModel, table=True):
    __tablename__ = "processed_videos"  # type: ignore[bad-override]
    __table_args__ = (
        Index(
            "uq_processed_videos_video_success",
            "video_id",
            unique=True,
            sqlite_where=text("status = 'success'"),
        ),
    )

    id: int | None = Field(default=None, primary_key=True)
    video_id: int = Field(index=True)
    status: str = Field(index=True)
    processed_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class ProcessErrorLog(SQLModel, table=True):
    __tablename__ = "process_errors_log"  # type: ignore[bad-override]

    id: int | None = Field(default=None, primary_key=True)
    error_details: str = Field(sa_column=Column(Text(), nullable=False))
    created_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
