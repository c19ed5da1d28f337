"""Tests pour les routes de lecture: `/content/{id}`, `/contents`, `/history`."""

from __future__ import annotations

from fastapi.testclient import TestClient

from backend.api.routes_contents import clamp_pagination
from backend.app.main import create_app
from backend.core.container import Container
from backend.core.http_constants import (
    HISTORY_LIMIT,
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_OK,
    MAX_PAGE_SIZE,
)
from backend.domain.entities import AnalysisResult, ContentRecord
from tests.fakes import FailingContentStore, make_settings

# Constantes pour éviter les erreurs PLR2004 (Magic values)
SEEDED = 3
PAGE_LIMIT = 2
EXPECTED_PAGES = 2


def _seed(store, n: int = SEEDED) -> list[str]:
    ids = []
    for i in range(n):
        analysis = AnalysisResult(
            summary=f"summary {i} " + "z" * 200, captions=[], hashtags=[], story="", scriptures=[]
        )
        ids.append(store.save(ContentRecord.from_analysis(analysis, title=f"t{i}")).id)
    return ids


def test_get_content(client, store) -> None:
    content_id = _seed(store, 1)[0]
    r = client.get(f"/content/{content_id}")

    assert r.status_code == HTTP_OK
    data = r.json()["data"]
    assert data["id"] == content_id
    assert data["videoTitle"] == "t0"
    assert data["sourceType"] == "upload"


def test_get_content_not_found(client) -> None:
    r = client.get("/content/" + "0" * 32)
    assert r.status_code == HTTP_NOT_FOUND


def test_contents_rejects_malformed_id(client) -> None:
    """`/contents/{id}` contrôle le format avant toute lecture."""
    r = client.get("/contents/not-an-id")

    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["error"]["code"] == "INVALID_INPUT"


def test_contents_by_id(client, store) -> None:
    content_id = _seed(store, 1)[0]
    assert client.get(f"/contents/{content_id}").json()["data"]["id"] == content_id


def test_list_contents_paginated(client, store) -> None:
    """Liste paginée du plus récent au plus ancien avec métadonnées."""
    ids = _seed(store)
    r = client.get("/contents", params={"page": 1, "limit": PAGE_LIMIT})

    body = r.json()
    assert [c["id"] for c in body["data"]] == [ids[2], ids[1]]
    assert body["pagination"] == {
        "total": SEEDED,
        "page": 1,
        "limit": PAGE_LIMIT,
        "pages": EXPECTED_PAGES,
    }


def test_list_contents_empty(client) -> None:
    body = client.get("/contents").json()
    assert body["data"] == []
    assert body["pagination"]["pages"] == 0


def test_clamp_pagination() -> None:
    assert clamp_pagination(0, 0) == (1, 1)
    assert clamp_pagination(3, 1000) == (3, MAX_PAGE_SIZE)


def test_get_content_is_idempotent(client, store) -> None:
    """Deux lectures successives du même contenu renvoient la même charge utile."""
    content_id = _seed(store, 1)[0]

    first = client.get(f"/content/{content_id}").json()["data"]
    second = client.get(f"/content/{content_id}").json()["data"]

    assert first == second
    assert first["id"] == content_id


def test_list_contents_clamps_limit(client, store) -> None:
    """Une limite trop grande est ramenée au maximum autorisé."""
    _seed(store)
    body = client.get("/contents", params={"page": 2, "limit": 200}).json()

    assert body["pagination"]["limit"] == MAX_PAGE_SIZE
    assert body["pagination"]["page"] == EXPECTED_PAGES
    assert body["data"] == []


def test_history_projection(client, store) -> None:
    """L'historique expose une projection compacte, la plus récente en premier."""
    ids = _seed(store)
    data = client.get("/history").json()["data"]

    assert [e["id"] for e in data] == list(reversed(ids))
    assert set(data[0]) == {"id", "title", "summary", "timestamp", "type"}
    assert len(data[0]["summary"]) == 100  # noqa: PLR2004
    assert len(data) <= HISTORY_LIMIT


def test_reads_fail_when_store_unavailable(tmp_path) -> None:
    """Les lectures ne dégradent pas: 500 `DATABASE_ERROR`."""
    container = Container(make_settings(tmp_path), store=FailingContentStore())
    with TestClient(create_app(container), raise_server_exceptions=False) as client:
        for path in ("/contents", "/history", "/content/" + "0" * 32):
            r = client.get(path)
            assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
            assert r.json()["error"]["code"] == "DATABASE_ERROR"


def test_no_store_configured(tmp_path, fake_llm, fake_extractor) -> None:
    """Sans URL de store: upload sans identifiant, lectures en 500."""
    container = Container(make_settings(tmp_path), llm=fake_llm, extractor=fake_extractor)
    assert container.content_store is None
    with TestClient(create_app(container), raise_server_exceptions=False) as client:
        r = client.post("/upload", files={"file": ("sermon.mp3", b"audio", "audio/mpeg")})
        assert r.status_code == HTTP_CREATED
        assert r.json()["data"]["id"] is None

        r = client.get("/contents")
        assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
        assert r.json()["error"]["code"] == "DATABASE_ERROR"
