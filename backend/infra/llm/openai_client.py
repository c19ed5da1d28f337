"""
Client LLM basé sur l'API OpenAI (SDK asynchrone).

Implémente l'interface LLM:
- audio.transcriptions pour la transcription
- chat.completions (image en data URI) pour la description d'image
- chat.completions en mode `json_object` pour l'analyse, en mode libre pour le chat

Le SDK est configuré sans relance interne (`max_retries=0`): les relances et le repli entre
modèles sont faits par `ModelFallbackInvoker`, à partir des fautes retournées ici.
"""

from __future__ import annotations

import base64
import os
from typing import Any

import openai
import structlog
from openai import AsyncOpenAI

from backend.domain.fallback import CallOutcome, FaultKind
from backend.domain.media import EXTENSION_MIME_TYPES
from backend.domain.prompts import IMAGE_DESCRIPTION_PROMPT
from backend.domain.transport import MediaPayload
from backend.infra.llm.base import LLM

log = structlog.get_logger(__name__, component="openai")

# Quota épuisé: aucun autre modèle du même compte ne répondra
_FATAL_ERROR_CODES = {"insufficient_quota", "invalid_api_key", "account_deactivated"}

_MIME_EXTENSIONS = {mime: ext for ext, mime in reversed(EXTENSION_MIME_TYPES.items())}


def classify_error(exc: Exception) -> CallOutcome[Any]:
    """Convertit une exception du SDK OpenAI en faute catégorisée."""
    status = getattr(exc, "status_code", None)
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
    if code in _FATAL_ERROR_CODES:
        return CallOutcome.failure(FaultKind.FATAL, message, status)
    if isinstance(exc, openai.RateLimitError):
        return CallOutcome.failure(FaultKind.RATE_LIMITED, message, status)
    # 403: souvent propre au modèle (organisation non vérifiée), on passe au suivant
    if isinstance(exc, openai.AuthenticationError):
        return CallOutcome.failure(FaultKind.FATAL, message, status)
    return CallOutcome.failure(FaultKind.UNAVAILABLE, message, status)


def upload_file_name(media: MediaPayload) -> str:
    """Nom de fichier avec une extension reconnue (le fournisseur déduit le format du nom)."""
    name = media.file_name or "upload"
    _, ext = os.path.splitext(name)
    if ext:
        return name
    return name + _MIME_EXTENSIONS.get(media.mime_type, "")


class OpenAILLM(LLM):
    """
    LLM basé sur OpenAI.

    Un seul client `AsyncOpenAI` est créé par processus et partagé par toutes les requêtes.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout_s: float = 120.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize the OpenAILLM client."""
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)

    async def transcribe(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        data = await media.read()
        try:
            resp = await self.client.audio.transcriptions.create(
                model=model,
                file=(upload_file_name(media), data, media.mime_type),
            )
        except openai.OpenAIError as exc:
            return classify_error(exc)
        return self._text_outcome(getattr(resp, "text", None), model, "transcription")

    async def describe_image(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        data = await media.read()
        data_uri = f"data:{media.mime_type};base64,{base64.b64encode(data).decode('ascii')}"
        messages: list[dict[str, Any]] = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": IMAGE_DESCRIPTION_PROMPT},
                    {"type": "image_url", "image_url": {"url": data_uri}},
                ],
            }
        ]
        return await self._complete(model, messages, kind="image_description")

    async def complete_json(
        self, model: str, messages: list[dict[str, str]]
    ) -> CallOutcome[str]:
        return await self._complete(
            model,
            messages,
            kind="analysis",
            response_format={"type": "json_object"},
            temperature=0.7,
        )

    async def chat(self, model: str, messages: list[dict[str, str]]) -> CallOutcome[str]:
        return await self._complete(model, messages, kind="chat", temperature=0.8)

    # -------------------- Helpers internes --------------------

    async def _complete(
        self, model: str, messages: list[dict[str, Any]], *, kind: str, **kwargs: Any
    ) -> CallOutcome[str]:
        try:
            resp = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                **kwargs,
            )
        except openai.OpenAIError as exc:
            return classify_error(exc)
        choice = resp.choices[0] if resp.choices else None
        content = getattr(getattr(choice, "message", None), "content", None)
        return self._text_outcome(content, model, kind)

    def _text_outcome(self, text: str | None, model: str, kind: str) -> CallOutcome[str]:
        if not text or not text.strip():
            log.warning("empty provider response", model=model, kind=kind)
            return CallOutcome.failure(FaultKind.UNAVAILABLE, f"Empty {kind} response from {model}")
        return CallOutcome.success(text.strip())
