# ============================================================
# Module : backend/infra/repo/content_record_repo.py
# Objet  : Accès SQL aux ContentRecord (création, lecture, pagination).
# Notes  : les erreurs SQLAlchemy sont converties en DatabaseError.
# ============================================================

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import func, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...domain.entities import ContentRecord
from ...domain.errors import DatabaseError
from ..repositories import ContentStore
from .db import get_session_factory, session_scope
from .models import Base, ContentRecordORM


def _aware(value: datetime | None) -> datetime | None:
    # SQLite ne conserve pas le fuseau
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_row(record: ContentRecord) -> ContentRecordORM:
    wire = record.model_dump(mode="json", by_alias=True)
    return ContentRecordORM(
        id=record.id,
        source_type=record.source_type,
        source_url=record.source_url,
        video_title=record.video_title,
        file_name=record.file_name,
        transcription=record.transcription,
        summary=record.summary,
        captions=wire["captions"],
        hashtags=wire["hashtags"],
        story=record.story,
        scriptures=wire["scriptures"],
        deep_analysis=wire.get("deepAnalysis"),
        social_media_hooks=wire.get("socialMediaHooks"),
        extensions=wire.get("extensions") or {},
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _from_row(row: ContentRecordORM) -> ContentRecord:
    return ContentRecord.model_validate(
        {
            "id": row.id,
            "sourceType": row.source_type,
            "sourceUrl": row.source_url,
            "videoTitle": row.video_title,
            "fileName": row.file_name,
            "transcription": row.transcription,
            "summary": row.summary or "",
            "captions": row.captions or [],
            "hashtags": row.hashtags or [],
            "story": row.story or "",
            "scriptures": row.scriptures or [],
            "deepAnalysis": row.deep_analysis,
            "socialMediaHooks": row.social_media_hooks,
            "extensions": row.extensions or {},
            "createdAt": _aware(row.created_at),
            "updatedAt": _aware(row.updated_at),
        }
    )


class ContentRecordRepo:
    """CRUD minimal pour ContentRecord, sur une session fournie."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def create(self, record: ContentRecord) -> None:
        self._session.add(_to_row(record))
        self._session.flush()

    def get(self, content_id: str) -> ContentRecord | None:
        row = self._session.get(ContentRecordORM, content_id)
        return _from_row(row) if row else None

    def count(self) -> int:
        return int(self._session.execute(select(func.count(ContentRecordORM.id))).scalar_one())

    def list_newest(self, offset: int, limit: int) -> list[ContentRecord]:
        """Retourne les enregistrements par created_at desc."""
        stmt = (
            select(ContentRecordORM)
            .order_by(ContentRecordORM.created_at.desc(), ContentRecordORM.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [_from_row(r) for r in self._session.execute(stmt).scalars().all()]


class SqlContentStore(ContentStore):
    """`ContentStore` SQLAlchemy; une session par opération."""

    backend_name = "sql"

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = get_session_factory(engine)

    def save(self, record: ContentRecord) -> ContentRecord:
        saved = self.stamp(record)
        try:
            with session_scope(self._sessions) as session:
                ContentRecordRepo(session).create(saved)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to save content: {exc}") from exc
        return saved

    def get(self, content_id: str) -> ContentRecord | None:
        try:
            with session_scope(self._sessions) as session:
                return ContentRecordRepo(session).get(content_id)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to fetch content: {exc}") from exc

    def list_page(self, page: int, limit: int) -> tuple[list[ContentRecord], int]:
        try:
            with session_scope(self._sessions) as session:
                repo = ContentRecordRepo(session)
                return repo.list_newest((page - 1) * limit, limit), repo.count()
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to list contents: {exc}") from exc

    def ping(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Database unreachable: {exc}") from exc

    def ensure_schema(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise DatabaseError(f"Failed to create tables: {exc}") from exc
