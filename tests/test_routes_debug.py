"""Tests pour les routes de consultation du tampon de logs."""

from __future__ import annotations

import pytest

from backend.core.http_constants import HTTP_OK
from backend.core.logging import capture_to_buffer, debug_buffer

# Constantes pour éviter les erreurs PLR2004 (Magic values)
ENTRY_COUNT = 3


@pytest.fixture(autouse=True)
def _clean_buffer():
    debug_buffer.clear()
    yield
    debug_buffer.clear()


def _emit(n: int) -> None:
    for i in range(n):
        capture_to_buffer(None, "info", {"event": f"event {i}", "component": "test", "n": i})


def test_debug_logs_returns_all_entries(client) -> None:
    """Toutes les entrées, de la plus ancienne à la plus récente."""
    debug_buffer.clear()
    _emit(ENTRY_COUNT)
    body = client.get("/debug/logs").json()

    messages = [e["message"] for e in body["data"]]
    assert messages[:ENTRY_COUNT] == ["event 0", "event 1", "event 2"]
    assert body["totalLogs"] == len(body["data"])


def test_clear_logs(client) -> None:
    _emit(ENTRY_COUNT)
    r = client.delete("/debug/logs")

    assert r.status_code == HTTP_OK
    assert r.json()["data"] == {"message": "Logs cleared"}


def test_recent_logs_newest_first(client) -> None:
    """`/debug-logs` retourne les plus récentes en premier."""
    _emit(ENTRY_COUNT)
    body = client.get("/debug-logs").json()

    assert body["data"][0]["message"] != "event 0"
    assert body["count"] >= ENTRY_COUNT
