"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP ainsi que celles du pipeline d'upload (étapes, tentatives
par modèle, erreurs du store, nettoyages échoués) et expose `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Pipeline d'upload
PIPELINE_RUNS = Counter(
    "pipeline_runs_total",
    "Upload pipeline runs by transport and outcome",
    ["transport", "outcome"],
)
PIPELINE_STAGE_LATENCY = Histogram(
    "pipeline_stage_latency_seconds",
    "Latency of each upload pipeline stage",
    ["stage"],
    buckets=[0.05, 0.25, 1.0, 5.0, 15.0, 30.0, 60.0, 120.0, 300.0],
)
LLM_MODEL_ATTEMPTS = Counter(
    "llm_model_attempts_total",
    "Provider call attempts per capability/model/outcome",
    ["capability", "model", "outcome"],
)
CHAT_REQUESTS = Counter(
    "chat_requests_total",
    "Total chat requests",
    ["outcome"],
)
CONTENT_STORE_ERRORS = Counter(
    "content_store_errors_total",
    "Content store failures by operation",
    ["op"],
)
CLEANUP_FAILURES = Counter(
    "cleanup_failures_total",
    "Best-effort cleanup failures (never raised to callers)",
    ["kind"],
)

# Routes avec identifiant: une seule étiquette pour limiter la cardinalité
_ID_PREFIXES = ("/content/", "/contents/", "/blobs/")


def normalize_route(path: str) -> str:
    """Replace trailing identifiers by `{id}` to keep label cardinality low."""
    for prefix in _ID_PREFIXES:
        if path.startswith(prefix) and len(path) > len(prefix):
            return prefix + "{id}"
    return path


@metrics_router.get("/metrics")
def metrics():
    """
    Expose les métriques Prometheus au format texte.

    Returns:
        Response: Réponse HTTP contenant les métriques au format Prometheus.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Collecte les métriques de comptage des requêtes et de latence par route pour l'exposition
    Prometheus.
    """

    async def dispatch(self, request: Request, call_next):
        """Traite une requête HTTP et collecte les métriques."""
        start = time.perf_counter()
        response: Response = await call_next(request)
        route = normalize_route(request.scope.get("path", "unknown"))
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
