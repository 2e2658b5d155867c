"""Create audio_jobs table

Revision ID: 002
Revises: 001
Create Date: 2025-01-12 00:00:00.000000+00:00

What:  Creates `audio_jobs`, one row per uploaded recording.
How:   `note_id` is indexed but deliberately not a foreign key: deleting a
       note leaves its jobs (and blobs) in place.

Rollback: downgrade() drops the table (job history lost, blobs untouched).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "audio_jobs",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "note_id",
            sa.Uuid(as_uuid=True),
            nullable=False,
            comment="Owning note (not a foreign key; jobs outlive deleted notes)",
        ),
        sa.Column(
            "status",
            sa.String(16),
            nullable=False,
            server_default=sa.text("'pending'"),
            comment="pending, processing, done, failed",
        ),
        sa.Column(
            "audio_path",
            sa.String(512),
            nullable=False,
            comment="Blob key: {note_id}/{timestamp}.{ext}",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('pending', 'processing', 'done', 'failed')",
            name="ck_audio_jobs_status",
        ),
    )

    # Latest job for a note: WHERE note_id = :id ORDER BY created_at DESC LIMIT 1
    op.create_index(
        "idx_audio_jobs_note_created",
        "audio_jobs",
        ["note_id", sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_audio_jobs_note_created", table_name="audio_jobs")
    op.drop_table("audio_jobs")
