"""Route d'analyse d'une transcription fournie par le client.

Contrairement à `/upload`, la persistance n'est pas best-effort: un store indisponible donne
500 `DATABASE_ERROR`.
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Request

from backend.api.deps import get_analysis_service, get_content_store
from backend.api.schemas import AnalyzeRequest
from backend.apigw.errors import success_response
from backend.app.metrics import CONTENT_STORE_ERRORS
from backend.core.http_constants import HTTP_CREATED, TRANSCRIPT_MAX_CHARS, TRANSCRIPT_MIN_CHARS
from backend.domain.entities import ContentRecord
from backend.domain.errors import DatabaseError, ExternalServiceError, ValidationError
from backend.domain.fallback import ModelsExhaustedError
from backend.domain.services import ContentAnalysisService
from backend.infra.repositories import ContentStore

log = structlog.get_logger(__name__, component="api.analyze")

router = APIRouter(tags=["analyze"])


def validate_transcription(text: str | None) -> str:
    """Retourne la transcription nettoyée, ou lève `ValidationError`."""
    if not text or not text.strip():
        raise ValidationError("Transcription text is required")
    trimmed = text.strip()
    if len(trimmed) < TRANSCRIPT_MIN_CHARS:
        raise ValidationError(
            f"Transcription must be at least {TRANSCRIPT_MIN_CHARS} characters",
            {"length": len(trimmed)},
        )
    if len(trimmed) > TRANSCRIPT_MAX_CHARS:
        raise ValidationError(
            f"Transcription must not exceed {TRANSCRIPT_MAX_CHARS:,} characters",
            {"length": len(trimmed)},
        )
    return trimmed


@router.post("/analyze")
async def analyze(payload: AnalyzeRequest, request: Request):
    """Analyse la transcription puis enregistre le contenu (201 `{contentId, analysis}`).

    Le texte est validé avant toute résolution du service ou du store: une entrée invalide
    donne toujours 400, même sans clé API ni base.
    """
    transcript = validate_transcription(payload.transcription)
    service: ContentAnalysisService = get_analysis_service(request)
    store: ContentStore = get_content_store(request)
    try:
        analysis = await service.analyze(transcript)
    except ModelsExhaustedError as exc:
        raise ExternalServiceError(
            "Failed to analyze content. Please try again.", {"originalError": exc.message}
        ) from exc
    analysis = analysis.model_copy(update={"transcription": transcript})

    try:
        saved = await asyncio.to_thread(store.save, ContentRecord.from_analysis(analysis))
    except DatabaseError as exc:
        CONTENT_STORE_ERRORS.labels(op="save").inc()
        log.error("analysis not saved", error=exc.message)
        raise DatabaseError("Failed to save content. Please try again.") from exc
    log.info("analysis saved", content_id=saved.id)
    return success_response(
        {"contentId": saved.id, "analysis": analysis.to_wire()}, status_code=HTTP_CREATED
    )
