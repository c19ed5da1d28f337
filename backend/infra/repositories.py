"""
Repositories pour la gestion des contenus analysés.

Ce module fournit l'interface `ContentStore` et ses implémentations en mémoire et Redis.
L'implémentation SQLAlchemy se trouve dans `backend.infra.repo.content_record_repo`.

Les stores sont synchrones; les appelants asynchrones passent par `asyncio.to_thread`.
Toute défaillance du backend est convertie en `DatabaseError`.
"""

from __future__ import annotations

import json
import re
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime

import redis

from backend.domain.entities import ContentRecord
from backend.domain.errors import DatabaseError

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def new_content_id() -> str:
    return uuid.uuid4().hex


class ContentStore(ABC):
    """Persistance clé-valeur des `ContentRecord`, ordonnée par date de création."""

    backend_name = "unknown"

    @staticmethod
    def is_valid_id(content_id: str) -> bool:
        """Format des identifiants attribués par les stores (uuid4 hexadécimal)."""
        return bool(_ID_RE.match(content_id or ""))

    @staticmethod
    def stamp(record: ContentRecord) -> ContentRecord:
        """Attribue identifiant et horodatages à un enregistrement neuf."""
        now = datetime.now(UTC)
        return record.model_copy(
            update={"id": new_content_id(), "created_at": now, "updated_at": now}
        )

    @abstractmethod
    def save(self, record: ContentRecord) -> ContentRecord:
        """Crée l'enregistrement et le retourne avec son identifiant."""

    @abstractmethod
    def get(self, content_id: str) -> ContentRecord | None:
        """Retourne l'enregistrement, ou None s'il est absent."""

    @abstractmethod
    def list_page(self, page: int, limit: int) -> tuple[list[ContentRecord], int]:
        """Page `page` (1-indexée) du plus récent au plus ancien, et le total."""

    def recent(self, limit: int) -> list[ContentRecord]:
        records, _ = self.list_page(1, limit)
        return records

    @abstractmethod
    def ping(self) -> None:
        """Vérifie la connexion; lève `DatabaseError` sinon."""

    def ensure_schema(self) -> None:
        """Crée tables/index si nécessaire (no-op par défaut)."""
        return None


class InMemoryContentStore(ContentStore):
    """
    Store de contenus en mémoire (utilisé pour dev/tests).

    Stocke les enregistrements dans un dict local, non persistant.
    """

    backend_name = "memory"

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, ContentRecord] = {}
        self._lock = threading.Lock()

    def save(self, record: ContentRecord) -> ContentRecord:
        saved = self.stamp(record)
        with self._lock:
            self._db[saved.id] = saved
        return saved

    def get(self, content_id: str) -> ContentRecord | None:
        return self._db.get(content_id)

    def list_page(self, page: int, limit: int) -> tuple[list[ContentRecord], int]:
        with self._lock:
            newest_first = list(reversed(self._db.values()))
        start = (page - 1) * limit
        return newest_first[start : start + limit], len(newest_first)

    def ping(self) -> None:
        return None


class RedisContentStore(ContentStore):
    """Store adossé à Redis (clé: `content:{id}`, index trié `content:by_created`)."""

    backend_name = "redis"
    index_key = "content:by_created"

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)

    @staticmethod
    def _key(content_id: str) -> str:
        return f"content:{content_id}"

    def save(self, record: ContentRecord) -> ContentRecord:
        """Sérialise en JSON et met à jour l'index de tri."""
        saved = self.stamp(record)
        payload = saved.model_dump(mode="json", by_alias=True)
        try:
            pipe = self.client.pipeline()
            pipe.set(self._key(saved.id), json.dumps(payload))
            pipe.zadd(self.index_key, {saved.id: saved.created_at.timestamp()})
            pipe.execute()
        except redis.RedisError as exc:
            raise DatabaseError(f"Failed to save content: {exc}") from exc
        return saved

    def get(self, content_id: str) -> ContentRecord | None:
        try:
            raw = self.client.get(self._key(content_id))
        except redis.RedisError as exc:
            raise DatabaseError(f"Failed to fetch content: {exc}") from exc
        return ContentRecord.model_validate(json.loads(raw)) if raw else None

    def list_page(self, page: int, limit: int) -> tuple[list[ContentRecord], int]:
        start = (page - 1) * limit
        try:
            total = int(self.client.zcard(self.index_key))
            ids = self.client.zrevrange(self.index_key, start, start + limit - 1)
            raws = self.client.mget([self._key(i) for i in ids]) if ids else []
        except redis.RedisError as exc:
            raise DatabaseError(f"Failed to list contents: {exc}") from exc
        records = [ContentRecord.model_validate(json.loads(r)) for r in raws if r]
        return records, total

    def ping(self) -> None:
        try:
            self.client.ping()
        except redis.RedisError as exc:
            raise DatabaseError(f"Redis unreachable: {exc}") from exc
