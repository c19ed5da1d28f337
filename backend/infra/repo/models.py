"""SQLAlchemy models for persistence layer (ContentRecord)."""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    MetaData,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ContentRecordORM(Base):
    """Modèle ORM pour les contenus analysés (une ligne par fichier accepté)."""

    __tablename__ = "content_records"

    id = Column(String(32), primary_key=True)
    source_type = Column(String(32), nullable=False, default="upload")
    source_url = Column(Text, nullable=True)
    video_title = Column(String(512), nullable=True)
    file_name = Column(String(512), nullable=True)
    transcription = Column(Text, nullable=True)
    summary = Column(Text, nullable=False, default="")
    captions = Column(JSON, nullable=False, default=list)
    hashtags = Column(JSON, nullable=False, default=list)
    story = Column(Text, nullable=False, default="")
    scriptures = Column(JSON, nullable=False, default=list)
    deep_analysis = Column(JSON, nullable=True)
    social_media_hooks = Column(JSON, nullable=True)
    extensions = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)
