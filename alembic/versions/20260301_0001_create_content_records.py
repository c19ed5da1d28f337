# mypy: ignore-errors
"""
Migration Alembic pour créer la table content_records.

Cette migration crée la table des contenus analysés: métadonnées du fichier, transcription et
champs de l'analyse (listes et agrégats en JSON), indexée par date de création.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée la table content_records et son index de tri."""
    op.create_table(
        "content_records",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("source_type", sa.String(length=32), nullable=False),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("video_title", sa.String(length=512), nullable=True),
        sa.Column("file_name", sa.String(length=512), nullable=True),
        sa.Column("transcription", sa.Text(), nullable=True),
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("captions", sa.JSON(), nullable=False),
        sa.Column("hashtags", sa.JSON(), nullable=False),
        sa.Column("story", sa.Text(), nullable=False),
        sa.Column("scriptures", sa.JSON(), nullable=False),
        sa.Column("deep_analysis", sa.JSON(), nullable=True),
        sa.Column("social_media_hooks", sa.JSON(), nullable=True),
        sa.Column("extensions", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_content_records_created_at", "content_records", ["created_at"])


def downgrade() -> None:
    """Supprime la table content_records."""
    op.drop_index("ix_content_records_created_at", table_name="content_records")
    op.drop_table("content_records")
