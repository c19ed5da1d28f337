"""Tests pour l'adaptateur OpenAI: catégorisation des erreurs et appels au SDK (mocké)."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from backend.domain.fallback import CallOutcome, FaultKind, ModelFallbackInvoker
from backend.domain.transport import MediaPayload
from backend.infra.llm.openai_client import OpenAILLM, classify_error, upload_file_name

# Constantes pour éviter les erreurs PLR2004 (Magic values)
HTTP_RATE_LIMITED = 429
HTTP_NOT_FOUND = 404
HTTP_FORBIDDEN = 403

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _status_error(cls, status: int, code: str | None = None, message: str = "error"):
    body = {"message": message, "code": code} if code else None
    return cls(message, response=httpx.Response(status, request=_REQUEST), body=body)


def test_rate_limit_is_retryable() -> None:
    """429 sans code de quota: limitation de débit (relance sur le même modèle)."""
    outcome = classify_error(_status_error(openai.RateLimitError, HTTP_RATE_LIMITED))
    assert outcome.fault.kind is FaultKind.RATE_LIMITED
    assert outcome.fault.status_code == HTTP_RATE_LIMITED


def test_insufficient_quota_is_fatal() -> None:
    """Quota épuisé: aucun autre modèle ne répondra."""
    exc = _status_error(openai.RateLimitError, HTTP_RATE_LIMITED, code="insufficient_quota")
    assert classify_error(exc).fault.kind is FaultKind.FATAL


def test_authentication_is_fatal() -> None:
    exc = _status_error(openai.AuthenticationError, 401)
    assert classify_error(exc).fault.kind is FaultKind.FATAL


def test_permission_denied_is_unavailable() -> None:
    """403 propre au modèle (organisation non vérifiée): passage au modèle suivant."""
    exc = _status_error(
        openai.PermissionDeniedError,
        HTTP_FORBIDDEN,
        message="organization must be verified to use model",
    )
    assert classify_error(exc).fault.kind is FaultKind.UNAVAILABLE


@pytest.mark.asyncio
async def test_permission_denied_falls_through_to_next_model() -> None:
    """Un 403 sur le premier modèle n'empêche pas le suivant de répondre."""
    calls: list[str] = []

    async def call(model: str):
        calls.append(model)
        if model == "gpt-restricted":
            return classify_error(
                _status_error(openai.PermissionDeniedError, HTTP_FORBIDDEN, message="not verified")
            )
        return CallOutcome.success("ok")

    invoker = ModelFallbackInvoker("analysis")
    invocation = await invoker.invoke(["gpt-restricted", "gpt-4o-mini"], call)

    assert invocation.value == "ok"
    assert calls == ["gpt-restricted", "gpt-4o-mini"]


def test_model_not_found_is_unavailable() -> None:
    """Modèle retiré ou inconnu: passage au modèle suivant."""
    exc = _status_error(openai.NotFoundError, HTTP_NOT_FOUND, message="model does not exist")
    outcome = classify_error(exc)
    assert outcome.fault.kind is FaultKind.UNAVAILABLE
    assert "model does not exist" in outcome.fault.message


def test_connection_error_is_unavailable() -> None:
    exc = openai.APIConnectionError(request=_REQUEST)
    assert classify_error(exc).fault.kind is FaultKind.UNAVAILABLE


def test_upload_file_name_adds_extension() -> None:
    """Le fournisseur déduit le format du nom: une extension est ajoutée si absente."""
    assert upload_file_name(MediaPayload("audio/mp4", "blob", data=b"")) == "blob.m4a"
    assert upload_file_name(MediaPayload("audio/mpeg", "talk.mp3", data=b"")) == "talk.mp3"


def _client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    client.audio.transcriptions.create = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_transcribe_sends_named_file() -> None:
    """La transcription envoie (nom, octets, type) et retourne le texte nettoyé."""
    client = _client()
    client.audio.transcriptions.create.return_value = SimpleNamespace(text="  Amen.  ")
    llm = OpenAILLM("key", client=client)

    outcome = await llm.transcribe("whisper-1", MediaPayload("audio/mpeg", "a.mp3", data=b"abc"))

    assert outcome.value == "Amen."
    kwargs = client.audio.transcriptions.create.await_args.kwargs
    assert kwargs["model"] == "whisper-1"
    assert kwargs["file"] == ("a.mp3", b"abc", "audio/mpeg")


@pytest.mark.asyncio
async def test_complete_json_requests_json_mode() -> None:
    """L'analyse demande une réponse `json_object`."""
    client = _client()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content='{"summary": "s"}'))]
    )
    llm = OpenAILLM("key", client=client)

    outcome = await llm.complete_json("gpt-4o-mini", [{"role": "user", "content": "hi"}])

    assert outcome.ok
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_describe_image_sends_data_uri() -> None:
    """L'image est transmise en data URI base64."""
    client = _client()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="A cross on a hill"))]
    )
    llm = OpenAILLM("key", client=client)

    await llm.describe_image("gpt-4o-mini", MediaPayload("image/png", "v.png", data=b"\x89PNG"))

    content = client.chat.completions.create.await_args.kwargs["messages"][0]["content"]
    assert content[1]["image_url"]["url"].startswith("data:image/png;base64,")


@pytest.mark.asyncio
async def test_empty_response_is_unavailable() -> None:
    """Une réponse vide fait passer au modèle suivant."""
    client = _client()
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="   "))]
    )
    outcome = await OpenAILLM("key", client=client).chat("gpt-4o", [])

    assert outcome.fault.kind is FaultKind.UNAVAILABLE


@pytest.mark.asyncio
async def test_sdk_error_becomes_fault() -> None:
    """Les exceptions du SDK sont converties, jamais propagées."""
    client = _client()
    client.chat.completions.create.side_effect = _status_error(
        openai.RateLimitError, HTTP_RATE_LIMITED
    )
    outcome = await OpenAILLM("key", client=client).chat("gpt-4o", [])

    assert outcome.fault.kind is FaultKind.RATE_LIMITED
