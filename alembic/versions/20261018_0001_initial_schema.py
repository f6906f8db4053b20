"""Processed-video success records and append-only error log."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "processed_videos",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("video_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processed_videos_video_id", "processed_videos", ["video_id"])
    op.create_index("ix_processed_videos_status", "processed_videos", ["status"])
    op.create_index(
        "uq_processed_videos_video_success",
        "processed_videos",
        ["video_id"],
        unique=True,
        sqlite_where=sa.text("status = 'success'"),
    )

    op.create_table(
        "process_errors_log",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("error_details", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_process_errors_log_created_at", "process_errors_log", ["created_at"])


def downgrade() -> None:
    op.drop_index("ix_process_errors_log_created_at", table_name="process_errors_log")
    op.drop_table("process_errors_log")
    op.drop_index("uq_processed_videos_video_success", table_name="processed_videos")
    op.drop_index("ix_processed_videos_status", table_name="processed_videos")
    op.drop_index("ix_processed_videos_video_id", table_name="processed_videos")
    op.drop_table("processed_videos")
