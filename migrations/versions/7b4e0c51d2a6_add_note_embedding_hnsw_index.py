"""add note embedding hnsw index

Revision ID: 7b4e0c51d2a6
Revises: 3f1c2a9d8b70
Create Date: 2026-10-12 10:02:54.208817

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "7b4e0c51d2a6"
down_revision: str | Sequence[str] | None = "3f1c2a9d8b70"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """HNSW index for cosine nearest-neighbour search over note embeddings."""
    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_note_embeddings_vec_hnsw
        ON note_embeddings
        USING hnsw (embedding_vec vector_cosine_ops)
        WITH (m = 16, ef_construction = 64);
    """
    )


def downgrade() -> None:
    """Drop the HNSW index."""
    op.execute("DROP INDEX IF EXISTS ix_note_embeddings_vec_hnsw;")
