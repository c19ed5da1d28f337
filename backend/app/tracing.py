"""Configuration du tracing OpenTelemetry pour l'observabilité.

Ce module configure le tracing distribué avec OpenTelemetry pour exporter les traces vers un
endpoint OTLP configuré via les variables d'environnement. Sans endpoint, le tracer global reste
le tracer no-op d'OpenTelemetry: les spans du pipeline ne coûtent presque rien.
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from backend.core.settings import Settings

TRACER_NAME = "backend.pipeline"

_configured = False


def setup_tracing(settings: Settings) -> bool:
    """Configure le tracing OpenTelemetry pour l'observabilité.

    Initialise le provider de tracing et configure l'exporteur OTLP si l'endpoint est configuré dans
    les paramètres. Retourne True si un exporteur a été installé.
    """
    global _configured
    if _configured or not settings.OTLP_ENDPOINT:
        return _configured

    provider = TracerProvider(resource=Resource.create({"service.name": settings.APP_NAME}))
    processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=settings.OTLP_ENDPOINT, insecure=True))
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    _configured = True
    return True


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)
