"""
Conteneur d'injection de dépendances et configuration application.

Instancie une seule fois, au démarrage du processus, les composants partagés par toutes les
requêtes: store de contenus, object store, client LLM, services et orchestrateurs. Les routes
les obtiennent via `backend.api.deps`.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from backend.core.settings import Settings, get_settings
from backend.domain.chat_orchestrator import ChatOrchestrator
from backend.domain.fallback import ModelFallbackInvoker
from backend.domain.services import ContentAnalysisService, MediaTranscriptionService
from backend.domain.upload_orchestrator import PipelineLimits, UploadOrchestrator
from backend.infra.llm.base import LLM
from backend.infra.llm.openai_client import OpenAILLM
from backend.infra.media.ffmpeg import FfmpegAudioExtractor
from backend.infra.objectstore.base import ObjectStore
from backend.infra.objectstore.http import HttpObjectStore
from backend.infra.objectstore.local import LocalObjectStore
from backend.infra.repo.content_record_repo import SqlContentStore
from backend.infra.repo.db import get_engine
from backend.infra.repositories import ContentStore, InMemoryContentStore, RedisContentStore

log = structlog.get_logger(__name__, component="container")


def build_content_store(settings: Settings) -> tuple[ContentStore | None, str]:
    """Choisit le store: SQL si `DATABASE_URL`, Redis si `REDIS_URL`, sinon aucun.

    Le store mémoire n'est utilisé que sur demande explicite (`CONTENT_STORE_BACKEND=memory`):
    ses identifiants disparaissent au redémarrage.

    Avec `REQUIRE_DATABASE`, un store absent ou injoignable empêche le démarrage; sinon le store
    injoignable est remplacé par `None` (les uploads sont alors renvoyés sans identifiant).
    """
    if settings.CONTENT_STORE_BACKEND == "memory":
        return InMemoryContentStore(), "memory"
    if settings.DATABASE_URL:
        store: ContentStore = SqlContentStore(get_engine(settings.DATABASE_URL))
    elif settings.REDIS_URL:
        store = RedisContentStore(settings.REDIS_URL)
    else:
        if settings.REQUIRE_DATABASE:
            raise RuntimeError("Database required but DATABASE_URL/REDIS_URL not set")
        log.warning("no content store configured, analyses will not be saved")
        return None, "none"

    try:
        store.ping()
        store.ensure_schema()
    except Exception as err:
        if settings.REQUIRE_DATABASE:
            raise RuntimeError("Database required but unavailable") from err
        log.error("content store unavailable, degrading", backend=store.backend_name, error=str(err))
        return None, f"{store.backend_name}-unavailable"
    return store, store.backend_name


def build_object_store(settings: Settings) -> ObjectStore:
    if settings.OBJECT_STORE_BACKEND == "http":
        if not settings.OBJECT_STORE_URL:
            raise RuntimeError("OBJECT_STORE_BACKEND=http requires OBJECT_STORE_URL")
        return HttpObjectStore(
            settings.OBJECT_STORE_URL,
            settings.OBJECT_STORE_TOKEN,
            timeout_s=settings.LLM_TIMEOUT_S,
        )
    return LocalObjectStore(settings.OBJECT_STORE_DIR, settings.OBJECT_STORE_PUBLIC_URL)


def build_llm(settings: Settings) -> LLM | None:
    if not settings.OPENAI_API_KEY:
        log.error("OPENAI_API_KEY not set: transcription, analysis and chat are disabled")
        return None
    return OpenAILLM(settings.OPENAI_API_KEY, timeout_s=settings.LLM_TIMEOUT_S)


class Container:
    """Composants partagés, construits une fois par processus."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: ContentStore | None = None,
        llm: LLM | None = None,
        object_store: ObjectStore | None = None,
        extractor=None,
        sleep=None,
    ) -> None:
        """Construit les composants; les arguments permettent d'injecter des doubles de test."""
        self.settings = settings or get_settings()
        s = self.settings
        if store is not None:
            self.content_store: ContentStore | None = store
            self.storage_backend = store.backend_name
        else:
            self.content_store, self.storage_backend = build_content_store(s)
        self.object_store = object_store or build_object_store(s)
        self.llm = llm if llm is not None else build_llm(s)
        self.extractor = extractor or FfmpegAudioExtractor(s.FFMPEG_BINARY)

        invoker_opts = {
            "max_rate_limit_retries": s.LLM_MAX_RATE_LIMIT_RETRIES,
            "backoff_base_s": s.LLM_BACKOFF_BASE_S,
        }
        if sleep is not None:
            invoker_opts["sleep"] = sleep

        self.media_service: MediaTranscriptionService | None = None
        self.analysis_service: ContentAnalysisService | None = None
        self.upload_orchestrator: UploadOrchestrator | None = None
        self.chat_orchestrator: ChatOrchestrator | None = None
        if self.llm is None:
            return

        self.media_service = MediaTranscriptionService(
            self.llm,
            transcription_models=s.TRANSCRIPTION_MODELS,
            vision_models=s.VISION_MODELS,
            transcription_invoker=ModelFallbackInvoker("transcription", **invoker_opts),
            vision_invoker=ModelFallbackInvoker("vision", **invoker_opts),
        )
        self.analysis_service = ContentAnalysisService(
            self.llm,
            analysis_models=s.ANALYSIS_MODELS,
            chat_models=s.CHAT_MODELS,
            analysis_invoker=ModelFallbackInvoker("analysis", **invoker_opts),
            chat_invoker=ModelFallbackInvoker("chat", **invoker_opts),
        )
        self.upload_orchestrator = UploadOrchestrator(
            media_service=self.media_service,
            analysis_service=self.analysis_service,
            store=self.content_store,
            object_store=self.object_store,
            extractor=self.extractor,
            limits=PipelineLimits(
                max_upload_bytes=s.MAX_UPLOAD_BYTES,
                max_blob_bytes=s.MAX_BLOB_BYTES,
                max_inline_bytes=s.MAX_INLINE_BYTES,
                temp_dir=Path(s.TEMP_DIR),
                timeout_s=s.PIPELINE_TIMEOUT_S,
            ),
        )
        self.chat_orchestrator = ChatOrchestrator(self.content_store, self.analysis_service)

    @property
    def llm_configured(self) -> bool:
        return self.llm is not None
