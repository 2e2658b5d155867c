"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2025-01-10 00:00:00.000000+00:00

What:  Creates the `notes` table for text and voice notes.
How:   Portable column types (sa.Uuid, timezone-aware DateTime) so the same
       migration runs on PostgreSQL and SQLite. IDs and timestamps are
       generated by the application, not by server defaults.

Rollback: downgrade() drops the table (all notes lost).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(as_uuid=True), nullable=False),
        sa.Column(
            "type",
            sa.String(16),
            nullable=False,
            comment="text or voice; fixed at creation",
        ),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column(
            "content",
            sa.Text(),
            nullable=True,
            comment="Body text; transcript for processed voice notes",
        ),
        sa.Column(
            "summary",
            sa.Text(),
            nullable=True,
            comment="Bullet-point summary written by audio processing",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            comment="When this note was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("type IN ('text', 'voice')", name="ck_notes_type"),
    )

    # Listing is always newest first
    op.create_index(
        "idx_notes_created_at",
        "notes",
        [sa.text("created_at DESC")],
    )


def downgrade() -> None:
    op.drop_index("idx_notes_created_at", table_name="notes")
    op.drop_table("notes")
