"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Exposer aux endpoints les composants du `Container` construit au démarrage
  (`app.state.container`), sans état global au niveau module.
- Traduire l'absence d'un composant (clé API, store) en erreur métier explicite.
"""

from __future__ import annotations

from fastapi import Request

from backend.core.container import Container
from backend.domain.chat_orchestrator import ChatOrchestrator
from backend.domain.errors import DatabaseError, ExternalServiceError
from backend.domain.services import ContentAnalysisService
from backend.domain.upload_orchestrator import UploadOrchestrator
from backend.infra.objectstore.base import ObjectStore
from backend.infra.repositories import ContentStore

_NOT_CONFIGURED = "AI service not configured: OPENAI_API_KEY is missing"


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_upload_orchestrator(request: Request) -> UploadOrchestrator:
    orchestrator = get_container(request).upload_orchestrator
    if orchestrator is None:
        raise ExternalServiceError(_NOT_CONFIGURED)
    return orchestrator


def get_chat_orchestrator(request: Request) -> ChatOrchestrator:
    orchestrator = get_container(request).chat_orchestrator
    if orchestrator is None:
        raise ExternalServiceError(_NOT_CONFIGURED)
    return orchestrator


def get_analysis_service(request: Request) -> ContentAnalysisService:
    service = get_container(request).analysis_service
    if service is None:
        raise ExternalServiceError(_NOT_CONFIGURED)
    return service


def get_content_store(request: Request) -> ContentStore:
    """Store requis: les lectures échouent en 500 `DATABASE_ERROR` s'il est indisponible."""
    store = get_container(request).content_store
    if store is None:
        raise DatabaseError("Content store unavailable")
    return store


def get_object_store(request: Request) -> ObjectStore:
    return get_container(request).object_store
