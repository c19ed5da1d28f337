"""Orchestrateur du pipeline d'upload.

Un artefact entrant (octets, fichier spoolé ou référence de blob) devient un `ContentRecord`
persisté, ou une erreur précise:

    Received -> Classified -> {Describing|Transcribing} -> Analyzing -> Persisting
             -> CleaningUp -> Done

Tout état avant `Persisting` peut passer à `Failed`, qui exécute quand même `CleaningUp`.
Un échec de persistance n'est pas fatal: l'analyse est renvoyée avec `record_id=None`.
Les ressources temporaires (fichiers, blobs) sont libérées sur tous les chemins de sortie.
"""

from __future__ import annotations

import asyncio
import os
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import structlog

from backend.app.metrics import CONTENT_STORE_ERRORS, PIPELINE_RUNS, PIPELINE_STAGE_LATENCY
from backend.app.tracing import get_tracer
from backend.domain.entities import AnalysisResult, ContentRecord
from backend.domain.errors import (
    AppError,
    ExternalServiceError,
    MediaProcessingError,
    ValidationError,
)
from backend.domain.fallback import ModelsExhaustedError
from backend.domain.media import MediaInfo, classify
from backend.domain.services import ContentAnalysisService, MediaTranscriptionService
from backend.domain.transport import (
    Artifact,
    AudioExtractor,
    BlobArtifact,
    InMemoryArtifact,
    InMemoryTransport,
    ObjectStoreRelayTransport,
    SpooledFileArtifact,
    TemporaryFileTransport,
    TransportStrategy,
    size_limit_error,
)
from backend.infra.media.ffmpeg import AudioExtractionError
from backend.infra.objectstore.base import ObjectStore, ObjectStoreError
from backend.infra.repositories import ContentStore

_log = structlog.get_logger(__name__, component="upload_orchestrator")

DEFAULT_FILE_NAME = "upload"


class PipelineState(StrEnum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    DESCRIBING = "describing"
    TRANSCRIBING = "transcribing"
    ANALYZING = "analyzing"
    PERSISTING = "persisting"
    CLEANING_UP = "cleanup"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UploadMetadata:
    """Titre d'affichage et nom de fichier d'origine (déduits de l'artefact si absents)."""

    title: str | None = None
    file_name: str | None = None


@dataclass(frozen=True)
class PipelineLimits:
    max_upload_bytes: int
    max_blob_bytes: int
    max_inline_bytes: int
    temp_dir: Path
    timeout_s: float | None = None


@dataclass(frozen=True)
class UploadResult:
    record_id: str | None
    file_name: str
    analysis: AnalysisResult

    @property
    def saved(self) -> bool:
        return self.record_id is not None

    def to_wire(self) -> dict[str, Any]:
        return {"id": self.record_id, "fileName": self.file_name, "analysis": self.analysis.to_wire()}


def _artifact_file_name(artifact: Artifact) -> str:
    if artifact.file_name:
        return artifact.file_name
    if isinstance(artifact, BlobArtifact):
        name = os.path.basename(unquote(urlparse(artifact.url).path))
        if name:
            return name
    if isinstance(artifact, SpooledFileArtifact):
        return artifact.path.name
    return DEFAULT_FILE_NAME


class UploadOrchestrator:
    """Pipeline unique paramétré par la stratégie de transport.

    Les appels aux adaptateurs n'ont lieu qu'une fois par requête; les relances sont internes à
    `ModelFallbackInvoker`.
    """

    def __init__(
        self,
        *,
        media_service: MediaTranscriptionService,
        analysis_service: ContentAnalysisService,
        store: ContentStore | None,
        object_store: ObjectStore,
        extractor: AudioExtractor,
        limits: PipelineLimits,
    ) -> None:
        self.media_service = media_service
        self.analysis_service = analysis_service
        self.store = store
        self.object_store = object_store
        self.extractor = extractor
        self.limits = limits

    # -------------------- Sélection du transport --------------------

    def ceiling_for(self, artifact: Artifact) -> int:
        if isinstance(artifact, BlobArtifact):
            return self.limits.max_blob_bytes
        return self.limits.max_upload_bytes

    def select_transport(
        self, artifact: Artifact, file_name: str, media: MediaInfo
    ) -> TransportStrategy:
        """Relais pour les blobs, disque pour les fichiers spoolés et les gros médias."""
        if isinstance(artifact, BlobArtifact):
            return ObjectStoreRelayTransport(
                artifact,
                file_name,
                object_store=self.object_store,
                temp_dir=self.limits.temp_dir,
                extractor=self.extractor,
                max_inline_bytes=self.limits.max_inline_bytes,
                max_bytes=self.limits.max_blob_bytes,
            )
        if isinstance(artifact, InMemoryArtifact) and (
            media.is_image or artifact.size <= self.limits.max_inline_bytes
        ):
            return InMemoryTransport(artifact, file_name)
        return TemporaryFileTransport(
            artifact,
            file_name,
            temp_dir=self.limits.temp_dir,
            extractor=self.extractor,
            max_inline_bytes=self.limits.max_inline_bytes,
        )

    async def _known_size(self, artifact: Artifact) -> int | None:
        if not isinstance(artifact, BlobArtifact):
            return artifact.size
        if artifact.size is not None:
            return artifact.size
        try:
            return await self.object_store.size(artifact.url)
        except ObjectStoreError:
            return None

    async def _check_size(self, artifact: Artifact, log) -> None:
        size = await self._known_size(artifact)
        if size is None:
            return
        if size == 0:
            raise ValidationError("File is empty")
        ceiling = self.ceiling_for(artifact)
        if size > ceiling:
            log.warning("file size exceeds limit", size=size, limit=ceiling)
            raise size_limit_error(size, ceiling)

    # -------------------- Pipeline --------------------

    async def process_upload(
        self, artifact: Artifact, metadata: UploadMetadata | None = None
    ) -> UploadResult:
        """Exécute le pipeline complet pour un artefact.

        Raises:
            ValidationError / PayloadTooLargeError: artefact vide ou trop volumineux
                (aucun adaptateur n'est appelé).
            MediaProcessingError: transcription, description ou extraction impossible.
            ExternalServiceError: analyse impossible, ou dépassement du délai global.
        """
        metadata = metadata or UploadMetadata()
        file_name = metadata.file_name or _artifact_file_name(artifact)
        title = metadata.title or file_name
        log = _log.bind(pipeline_id=uuid.uuid4().hex[:12], file_name=file_name)
        log.info(PipelineState.RECEIVED, artifact=type(artifact).__name__)

        media = classify(artifact.mime_type, file_name)
        log.info(PipelineState.CLASSIFIED, mime_type=media.mime_type, kind=media.kind.value)
        transport = self.select_transport(artifact, file_name, media)
        outcome = "failed"
        try:
            await self._check_size(artifact, log)
            log.info("transport selected", transport=transport.kind.value)
            result = await asyncio.wait_for(
                self._run(transport, media, file_name, title, log),
                timeout=self.limits.timeout_s,
            )
            outcome = "success" if result.saved else "unsaved"
            return result
        except TimeoutError as exc:
            log.error(PipelineState.FAILED, reason="timeout", timeout_s=self.limits.timeout_s)
            raise ExternalServiceError(
                f"Processing exceeded the {self.limits.timeout_s:g}s deadline"
            ) from exc
        except AppError as exc:
            log.warning(PipelineState.FAILED, reason=exc.code, error=exc.message)
            raise
        finally:
            log.info(PipelineState.CLEANING_UP, transport=transport.kind.value)
            await self._release(transport, log)
            PIPELINE_RUNS.labels(transport=transport.kind.value, outcome=outcome).inc()
            if outcome != "failed":
                log.info(PipelineState.DONE, outcome=outcome)

    async def _run(
        self,
        transport: TransportStrategy,
        media: MediaInfo,
        file_name: str,
        title: str,
        log,
    ) -> UploadResult:
        text = await self._extract_text(transport, media, log)

        log.info(PipelineState.ANALYZING, transcript_length=len(text))
        with self._stage("analyze"):
            try:
                analysis = await self.analysis_service.analyze(text)
            except ModelsExhaustedError as exc:
                raise ExternalServiceError(
                    f"Analysis failed: {exc.message}", {"stage": "analysis"}
                ) from exc
        analysis = analysis.model_copy(update={"transcription": text})

        log.info(PipelineState.PERSISTING)
        with self._stage("persist"):
            record_id = await self._persist(analysis, title, file_name, log)
        return UploadResult(record_id=record_id, file_name=file_name, analysis=analysis)

    async def _extract_text(self, transport: TransportStrategy, media: MediaInfo, log) -> str:
        state = PipelineState.DESCRIBING if media.is_image else PipelineState.TRANSCRIBING
        log.info(state, transport=transport.kind.value)
        with self._stage(state.value):
            try:
                payload = await transport.open(media)
                if media.is_image:
                    text = await self.media_service.describe_image(payload)
                else:
                    text = await self.media_service.transcribe(payload)
            except ModelsExhaustedError as exc:
                raise MediaProcessingError(
                    f"Transcription failed: {exc.message}", {"stage": state.value}
                ) from exc
            except (ObjectStoreError, AudioExtractionError, OSError) as exc:
                raise MediaProcessingError(
                    f"Media processing failed: {exc}", {"stage": state.value}
                ) from exc
        if not text.strip():
            raise MediaProcessingError("Transcription returned no text", {"stage": state.value})
        return text

    async def _persist(
        self, analysis: AnalysisResult, title: str, file_name: str, log
    ) -> str | None:
        """Écriture best-effort: toute erreur du store donne `None`."""
        if self.store is None:
            log.warning("content store not configured, analysis not saved")
            return None
        record = ContentRecord.from_analysis(analysis, title=title, file_name=file_name)
        try:
            saved = await asyncio.to_thread(self.store.save, record)
        except Exception as exc:
            CONTENT_STORE_ERRORS.labels(op="save").inc()
            log.error("persistence failed, returning unsaved analysis", error=str(exc))
            return None
        log.info("content saved", record_id=saved.id)
        return saved.id

    async def _release(self, transport: TransportStrategy, log) -> None:
        with self._stage("cleanup"):
            try:
                await transport.release()
            except Exception as exc:  # release() journalise déjà; filet pour les stratégies tierces
                log.warning("cleanup failed", transport=transport.kind.value, error=str(exc))

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        with get_tracer().start_as_current_span(f"upload.{name}"):
            try:
                yield
            finally:
                PIPELINE_STAGE_LATENCY.labels(stage=name).observe(time.perf_counter() - start)
