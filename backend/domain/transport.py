"""Stratégies de transport d'un artefact vers les adaptateurs de transcription.

Un même pipeline, trois façons d'amener les octets jusqu'au fournisseur:

- `InMemoryTransport`: octets déjà en mémoire, envoyés tels quels;
- `TemporaryFileTransport`: fichier local (spoolé par la route ou écrit ici), avec extraction
  d'une piste audio compressée pour l'audio/vidéo trop volumineux;
- `ObjectStoreRelayTransport`: blob déposé hors bande dans l'object store, récupéré puis
  supprimé en fin de requête.

Chaque stratégie possède les ressources temporaires qu'elle crée et les libère dans `release()`,
qui ne lève jamais.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Protocol

import structlog

from backend.app.metrics import CLEANUP_FAILURES
from backend.domain.errors import PayloadTooLargeError, ValidationError
from backend.domain.media import MediaInfo
from backend.infra.objectstore.base import ObjectStore

log = structlog.get_logger(__name__, component="transport")

EXTRACTED_AUDIO_MIME = "audio/mp4"
MIB = 1024 * 1024


def size_limit_error(size: int, limit: int) -> PayloadTooLargeError:
    return PayloadTooLargeError(
        f"File size exceeds {limit // MIB}MB limit",
        {"size": size, "limit": limit},
    )


@dataclass(frozen=True)
class InMemoryArtifact:
    data: bytes
    mime_type: str | None = None
    file_name: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SpooledFileArtifact:
    """Fichier déjà écrit sur disque pour cette requête (supprimé en fin de pipeline)."""

    path: Path
    size: int
    mime_type: str | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class BlobArtifact:
    """Référence vers un objet déposé dans l'object store."""

    url: str
    mime_type: str | None = None
    file_name: str | None = None
    size: int | None = None


Artifact = InMemoryArtifact | SpooledFileArtifact | BlobArtifact


class TransportKind(StrEnum):
    IN_MEMORY = "in_memory"
    TEMPORARY_FILE = "temporary_file"
    OBJECT_STORE_RELAY = "object_store_relay"


@dataclass
class MediaPayload:
    """Contenu prêt à être envoyé à l'adaptateur (octets ou chemin local)."""

    mime_type: str
    file_name: str
    data: bytes | None = None
    path: Path | None = None

    async def read(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError("media payload has neither data nor path")
        return await asyncio.to_thread(self.path.read_bytes)


class AudioExtractor(Protocol):
    async def extract(self, source: Path, dest_dir: Path) -> Path: ...


def _unlink(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        CLEANUP_FAILURES.labels(kind="temp_file").inc()
        log.warning("temp file cleanup failed", path=str(path), error=str(exc))


class TransportStrategy(ABC):
    """Interface commune des trois stratégies."""

    kind: TransportKind

    @abstractmethod
    async def open(self, media: MediaInfo) -> MediaPayload:
        """Matérialise le contenu pour l'adaptateur (peut lever)."""

    @abstractmethod
    async def release(self) -> None:
        """Libère les ressources créées pour la requête; journalise et avale les erreurs."""


class InMemoryTransport(TransportStrategy):
    kind = TransportKind.IN_MEMORY

    def __init__(self, artifact: InMemoryArtifact, file_name: str) -> None:
        self.artifact = artifact
        self.file_name = file_name

    async def open(self, media: MediaInfo) -> MediaPayload:
        return MediaPayload(
            mime_type=media.mime_type, file_name=self.file_name, data=self.artifact.data
        )

    async def release(self) -> None:
        return None


class TemporaryFileTransport(TransportStrategy):
    """Passage par le disque local; extrait l'audio des médias au-delà de `max_inline_bytes`."""

    kind = TransportKind.TEMPORARY_FILE

    def __init__(
        self,
        artifact: InMemoryArtifact | SpooledFileArtifact,
        file_name: str,
        *,
        temp_dir: Path,
        extractor: AudioExtractor,
        max_inline_bytes: int,
    ) -> None:
        self.artifact = artifact
        self.file_name = file_name
        self.temp_dir = temp_dir
        self.extractor = extractor
        self.max_inline_bytes = max_inline_bytes
        # Le fichier spoolé appartient à la requête dès la sélection du transport
        self._owned: list[Path] = (
            [artifact.path] if isinstance(artifact, SpooledFileArtifact) else []
        )

    async def _source_path(self) -> Path:
        if isinstance(self.artifact, SpooledFileArtifact):
            return self.artifact.path
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        _, ext = os.path.splitext(self.file_name)
        path = self.temp_dir / f"upload-{uuid.uuid4().hex}{ext.lower()}"
        self._owned.append(path)
        await asyncio.to_thread(path.write_bytes, self.artifact.data)
        return path

    async def open(self, media: MediaInfo) -> MediaPayload:
        source = await self._source_path()
        if media.is_image or self.artifact.size <= self.max_inline_bytes:
            return MediaPayload(mime_type=media.mime_type, file_name=self.file_name, path=source)
        self.temp_dir.mkdir(parents=True, exist_ok=True)
        log.info("extracting audio track", file_name=self.file_name, size=self.artifact.size)
        audio = await self.extractor.extract(source, self.temp_dir)
        self._owned.append(audio)
        return MediaPayload(mime_type=EXTRACTED_AUDIO_MIME, file_name=audio.name, path=audio)

    async def release(self) -> None:
        while self._owned:
            await asyncio.to_thread(_unlink, self._owned.pop())


class ObjectStoreRelayTransport(TransportStrategy):
    """Récupère un blob déposé hors bande; le blob est supprimé en fin de requête."""

    kind = TransportKind.OBJECT_STORE_RELAY

    def __init__(
        self,
        artifact: BlobArtifact,
        file_name: str,
        *,
        object_store: ObjectStore,
        temp_dir: Path,
        extractor: AudioExtractor,
        max_inline_bytes: int,
        max_bytes: int | None = None,
    ) -> None:
        self.artifact = artifact
        self.file_name = file_name
        self.object_store = object_store
        self.temp_dir = temp_dir
        self.extractor = extractor
        self.max_inline_bytes = max_inline_bytes
        self.max_bytes = max_bytes
        self._local: TemporaryFileTransport | None = None

    async def open(self, media: MediaInfo) -> MediaPayload:
        data = await self.object_store.fetch(self.artifact.url)
        log.info("blob fetched", url=self.artifact.url, size=len(data))
        # Taille inconnue avant récupération: contrôle a posteriori
        if self.max_bytes is not None and len(data) > self.max_bytes:
            raise size_limit_error(len(data), self.max_bytes)
        if not data:
            raise ValidationError("File is empty")
        if media.is_image or len(data) <= self.max_inline_bytes:
            return MediaPayload(mime_type=media.mime_type, file_name=self.file_name, data=data)
        self._local = TemporaryFileTransport(
            InMemoryArtifact(data=data, mime_type=media.mime_type, file_name=self.file_name),
            self.file_name,
            temp_dir=self.temp_dir,
            extractor=self.extractor,
            max_inline_bytes=self.max_inline_bytes,
        )
        return await self._local.open(media)

    async def release(self) -> None:
        if self._local is not None:
            await self._local.release()
        try:
            await self.object_store.delete(self.artifact.url)
            log.info("blob deleted", url=self.artifact.url)
        except Exception as exc:
            CLEANUP_FAILURES.labels(kind="blob").inc()
            log.warning("blob cleanup failed", url=self.artifact.url, error=str(exc))
