"""Orchestrateur de chat sur un contenu analysé.

Ce module récupère la transcription d'un contenu persisté et produit une réponse conversationnelle
ancrée sur celle-ci. L'échange n'est jamais persisté: le client rejoue l'historique à chaque tour.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

import structlog

from backend.app.metrics import CHAT_REQUESTS, CONTENT_STORE_ERRORS
from backend.domain.entities import ChatTurn
from backend.domain.errors import (
    DatabaseError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from backend.domain.fallback import ModelsExhaustedError
from backend.domain.services import ContentAnalysisService
from backend.infra.repositories import ContentStore

log = structlog.get_logger(__name__, component="chat_orchestrator")


class ChatOrchestrator:
    """Orchestrateur pour les conversations sur un contenu."""

    def __init__(self, store: ContentStore | None, analysis_service: ContentAnalysisService):
        """Initialise l'orchestrateur avec le store de contenus et le service d'analyse."""
        self.store = store
        self.analysis_service = analysis_service

    async def chat(
        self, content_id: str, message: str, history: Sequence[ChatTurn] = ()
    ) -> str:
        """Retourne une réponse unique.

        Raises:
            ValidationError: `content_id` ou `message` vide.
            NotFoundError: contenu inconnu (aucun appel au LLM).
            DatabaseError: store indisponible.
            InternalError: tous les modèles de chat ont échoué.
        """
        if not (content_id or "").strip() or not (message or "").strip():
            raise ValidationError("Content ID and message are required")
        if self.store is None:
            raise DatabaseError("Content store not configured")

        try:
            record = await asyncio.to_thread(self.store.get, content_id)
        except DatabaseError:
            CONTENT_STORE_ERRORS.labels(op="get").inc()
            CHAT_REQUESTS.labels(outcome="store_error").inc()
            raise
        if record is None:
            CHAT_REQUESTS.labels(outcome="not_found").inc()
            raise NotFoundError("Content not found")

        transcript = record.transcription or ""
        log.info(
            "chat request",
            content_id=content_id,
            history_turns=len(history),
            transcript_length=len(transcript),
        )
        try:
            reply = await self.analysis_service.reply(transcript, history, message)
        except ModelsExhaustedError as exc:
            CHAT_REQUESTS.labels(outcome="failed").inc()
            raise InternalError(f"Failed to process chat: {exc.message}") from exc
        CHAT_REQUESTS.labels(outcome="success").inc()
        return reply
