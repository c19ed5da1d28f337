"""
Application principale FastAPI.

Ce module assemble tous les composants de l'application : conteneur, middlewares, gestionnaires
d'erreurs, routes et métriques.

Responsabilités du module:
- Initialiser le logging structuré (et le tampon de debug)
- Construire le `Container` une seule fois et l'attacher à `app.state`
- Ajouter les middlewares (CORS, request id, métriques, timing)
- Monter les routers (upload, analyse, chat, contenus, blobs, debug, santé)
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.api.routes_analyze import router as analyze_router
from backend.api.routes_blob import router as blob_router
from backend.api.routes_chat import router as chat_router
from backend.api.routes_contents import router as contents_router
from backend.api.routes_debug import router as debug_router
from backend.api.routes_health import router as health_router
from backend.api.routes_upload import router as upload_router
from backend.apigw.errors import install_error_handlers
from backend.app.metrics import PrometheusMiddleware, metrics_router
from backend.app.tracing import setup_tracing
from backend.core.container import Container
from backend.core.logging import setup_logging
from backend.core.settings import get_settings
from backend.infra.objectstore.http import HttpObjectStore
from backend.middlewares.request_id import RequestIDMiddleware
from backend.middlewares.timing import TimingMiddleware

log = structlog.get_logger(__name__, component="app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container: Container = app.state.container
    log.info(
        "application started",
        storage=container.storage_backend,
        llm_configured=container.llm_configured,
    )
    yield
    if isinstance(container.object_store, HttpObjectStore):
        await container.object_store.aclose()


def create_app(container: Container | None = None) -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Construit le conteneur (ou utilise celui fourni, ex. en test)
    - Configure le logging structuré (structlog) et le tracing
    - Ajoute les middlewares utiles au debug/traçabilité
    - Publie les routes de l'API
    """
    # Logging configuré avant la construction du conteneur (ses logs passent par le tampon)
    settings = container.settings if container is not None else get_settings()
    setup_logging(settings.DEBUG_LOG_CAPACITY)
    setup_tracing(settings)
    container = container or Container(settings)

    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG, lifespan=lifespan)
    app.state.container = container
    install_error_handlers(app)

    app.add_middleware(TimingMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIDMiddleware)
    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(o).rstrip("/") for o in settings.CORS_ORIGINS],
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health_router)
    app.include_router(upload_router)
    app.include_router(analyze_router)
    app.include_router(chat_router)
    app.include_router(contents_router)
    app.include_router(blob_router)
    app.include_router(debug_router)
    app.include_router(metrics_router)
    return app


app = create_app()
