"""Consultation du tampon de logs en mémoire (page de debug)."""

from __future__ import annotations

from fastapi import APIRouter

from backend.apigw.errors import success_response
from backend.core.http_constants import HISTORY_LIMIT
from backend.core.logging import debug_buffer

router = APIRouter(tags=["debug"])


@router.get("/debug/logs")
def get_logs():
    """Toutes les entrées du tampon, de la plus ancienne à la plus récente."""
    logs = debug_buffer.entries()
    return success_response(logs, totalLogs=len(logs))


@router.delete("/debug/logs")
def clear_logs():
    debug_buffer.clear()
    return success_response({"message": "Logs cleared"})


@router.get("/debug-logs")
def recent_logs():
    """Les 50 dernières entrées, la plus récente en premier."""
    return success_response(debug_buffer.recent(HISTORY_LIMIT), count=len(debug_buffer))
