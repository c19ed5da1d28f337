"""Tests pour la route `/analyze` (transcription fournie par le client)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from backend.api.routes_analyze import validate_transcription
from backend.app.main import create_app
from backend.core.container import Container
from backend.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_SERVICE_UNAVAILABLE,
    TRANSCRIPT_MAX_CHARS,
    TRANSCRIPT_MIN_CHARS,
)
from backend.domain.errors import ValidationError
from backend.domain.fallback import FaultKind
from tests.fakes import FAKE_TRANSCRIPT, FailingContentStore, make_settings

TRANSCRIPT = FAKE_TRANSCRIPT + " " + FAKE_TRANSCRIPT


def test_analyze_saves_content(client, store) -> None:
    """Analyse réussie: 201 avec `contentId` et la transcription rattachée."""
    r = client.post("/analyze", json={"transcription": f"  {TRANSCRIPT}  "})

    assert r.status_code == HTTP_CREATED
    data = r.json()["data"]
    assert data["analysis"]["transcription"] == TRANSCRIPT
    assert store.get(data["contentId"]).transcription == TRANSCRIPT


@pytest.mark.parametrize(
    "text",
    [None, "   ", "x" * (TRANSCRIPT_MIN_CHARS - 1), "x" * (TRANSCRIPT_MAX_CHARS + 1)],
)
def test_analyze_rejects_bad_length(client, fake_llm, text) -> None:
    """Transcription absente, trop courte ou trop longue: 400 sans appel au LLM."""
    r = client.post("/analyze", json={"transcription": text})

    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"
    assert fake_llm.calls == []


def test_validate_transcription_trims() -> None:
    assert validate_transcription("  " + "y" * TRANSCRIPT_MIN_CHARS + "\n") == "y" * TRANSCRIPT_MIN_CHARS
    with pytest.raises(ValidationError, match="at least"):
        validate_transcription("short")


def test_analyze_all_models_failing(client, fake_llm) -> None:
    """Épuisement des modèles: 503 avec l'erreur d'origine."""
    fake_llm.fail("analysis", FaultKind.UNAVAILABLE, "model not found")
    r = client.post("/analyze", json={"transcription": TRANSCRIPT})

    assert r.status_code == HTTP_SERVICE_UNAVAILABLE
    error = r.json()["error"]
    assert error["message"] == "Failed to analyze content. Please try again."
    assert error["details"] == {"originalError": "model not found"}


def test_analyze_store_failure_is_database_error(tmp_path, fake_llm) -> None:
    """Contrairement à `/upload`, un échec d'écriture est une erreur 500."""
    container = Container(make_settings(tmp_path), store=FailingContentStore(), llm=fake_llm)
    with TestClient(create_app(container), raise_server_exceptions=False) as client:
        r = client.post("/analyze", json={"transcription": TRANSCRIPT})

    assert r.status_code == HTTP_INTERNAL_SERVER_ERROR
    assert r.json()["error"]["code"] == "DATABASE_ERROR"


@pytest.mark.parametrize("api_key", ["test-key", None])
def test_analyze_validates_before_store_and_service(tmp_path, fake_llm, api_key) -> None:
    """Sans store ni clé API, une transcription invalide reste une erreur 400."""
    settings = make_settings(tmp_path, OPENAI_API_KEY=api_key)
    llm = fake_llm if api_key else None
    container = Container(settings, store=None, llm=llm)
    with TestClient(create_app(container), raise_server_exceptions=False) as client:
        r = client.post("/analyze", json={"transcription": "too short"})

    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["error"]["code"] == "VALIDATION_ERROR"
    assert fake_llm.calls == []
