"""
Endpoints de santé et d'initialisation.

Expose `/health` (état général), `/test-db` (connexion au store de contenus) et `/init`
(création des tables/index, sans échec si aucun store n'est configuré).
"""

from __future__ import annotations

import asyncio

import structlog
from fastapi import APIRouter, Request

from backend.api.deps import get_container
from backend.apigw.errors import success_response
from backend.domain.errors import DatabaseError

log = structlog.get_logger(__name__, component="api.health")

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    """Vérifie la disponibilité de l'API et le backend de stockage."""
    container = get_container(request)
    return {
        "status": "ok",
        "storage": container.storage_backend,
        "llm_configured": container.llm_configured,
        "object_store": type(container.object_store).__name__,
    }


@router.get("/test-db")
async def test_db(request: Request):
    container = get_container(request)
    store = container.content_store
    if store is None:
        raise DatabaseError("Content store unavailable", {"storage": container.storage_backend})
    await asyncio.to_thread(store.ping)
    return success_response(
        {"message": "Content store connected successfully", "storage": container.storage_backend}
    )


@router.post("/init")
async def init(request: Request):
    """Prépare le store (tables/index); sans store, renvoie un succès dégradé."""
    container = get_container(request)
    store = container.content_store
    if store is None:
        log.warning("init skipped, no content store", storage=container.storage_backend)
        return success_response(
            {"message": "App initialized without content store", "storage": container.storage_backend}
        )
    try:
        await asyncio.to_thread(store.ensure_schema)
    except DatabaseError as exc:
        raise DatabaseError("Failed to initialize app", {"reason": exc.message}) from exc
    return success_response(
        {"message": "App initialized successfully", "storage": container.storage_backend}
    )
