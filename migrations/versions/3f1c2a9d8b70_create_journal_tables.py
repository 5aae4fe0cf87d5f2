"""create journal tables

Revision ID: 3f1c2a9d8b70
Revises:
Create Date: 2026-10-12 09:41:27.512093

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from pgvector.sqlalchemy import Vector
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d8b70"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("now()"),
    )


def upgrade() -> None:
    """Create notes, enrichment, mood, profile and session tables."""
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # -- notes --
    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])

    # -- note_embeddings (one row per note) --
    op.create_table(
        "note_embeddings",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("embedding", JSONB(), nullable=False),
        sa.Column("embedding_vec", Vector(768), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("note_id", name="uq_note_embeddings_note_id"),
    )
    op.create_index("ix_note_embeddings_user_id", "note_embeddings", ["user_id"])

    # -- note_ai_metrics (append-only) --
    op.create_table(
        "note_ai_metrics",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("ai_mood_score", sa.Integer(), nullable=True),
        sa.Column("ai_productivity_score", sa.Integer(), nullable=True),
        sa.Column("sentiment_polarity", sa.String(16), nullable=True),
        sa.Column("sentiment_emotion", sa.String(16), nullable=True),
        sa.Column("sentiment_confidence", sa.Float(), nullable=True),
        sa.Column("tags", ARRAY(sa.Text()), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_note_ai_metrics_note_id", "note_ai_metrics", ["note_id"])
    op.create_index("ix_note_ai_metrics_user_id", "note_ai_metrics", ["user_id"])

    # -- summaries --
    op.create_table(
        "summaries",
        sa.Column("id", sa.BigInteger(), nullable=False),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("ai_summary", sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_summaries_note_id", "summaries", ["note_id"])

    # -- moods --
    op.create_table(
        "moods",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("mood_score", sa.Integer(), nullable=False),
        sa.Column("productivity_score", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_moods_date", "moods", ["date"])
    op.create_index("ix_moods_user_id", "moods", ["user_id"])

    # -- user_profiles --
    op.create_table(
        "user_profiles",
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "preferences",
            JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )

    # -- sessions --
    op.create_table(
        "sessions",
        sa.Column("token", sa.String(128), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("token"),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])


def downgrade() -> None:
    """Drop all journal tables."""
    op.drop_table("sessions")
    op.drop_table("user_profiles")
    op.drop_table("moods")
    op.drop_table("summaries")
    op.drop_table("note_ai_metrics")
    op.drop_table("note_embeddings")
    op.drop_table("notes")
