"""
Fakes et doubles pour les tests unitaires.

Ce module fournit des implémentations factices du fournisseur LLM, de l'extracteur audio et des
stores, avec comportement déterministe et journal des appels.
"""

from __future__ import annotations

import json
from pathlib import Path

from backend.core.settings import Settings
from backend.domain.entities import ContentRecord
from backend.domain.errors import DatabaseError
from backend.domain.fallback import CallOutcome, FaultKind
from backend.domain.transport import MediaPayload
from backend.infra.llm.base import LLM
from backend.infra.repositories import ContentStore, InMemoryContentStore

FAKE_TRANSCRIPT = (
    "Grace and peace to you. Today we talk about hope in hard seasons and how faith "
    "carries us through every storm."
)
FAKE_DESCRIPTION = "A sunrise over the sea with the words 'He is risen' written in the sky."
FAKE_CHAT_REPLY = "FAKE_REPLY_OK"

TEST_MAX_UPLOAD_BYTES = 4096
TEST_MAX_BLOB_BYTES = 8192
TEST_MAX_INLINE_BYTES = 1024


def make_settings(tmp_path, **overrides) -> Settings:
    """Settings déterministes, indépendants de l'environnement de la machine."""
    values = {
        "OPENAI_API_KEY": "test-key",
        "DATABASE_URL": None,
        "REDIS_URL": None,
        "OBJECT_STORE_BACKEND": "local",
        "OBJECT_STORE_DIR": str(tmp_path / "blobs"),
        "OBJECT_STORE_PUBLIC_URL": "http://testserver/blobs",
        "TEMP_DIR": str(tmp_path / "spool"),
        "MAX_UPLOAD_BYTES": TEST_MAX_UPLOAD_BYTES,
        "MAX_BLOB_BYTES": TEST_MAX_BLOB_BYTES,
        "MAX_INLINE_BYTES": TEST_MAX_INLINE_BYTES,
        "BLOB_TOKEN_MAX_BYTES": TEST_MAX_BLOB_BYTES,
        "LLM_BACKOFF_BASE_S": 1.0,
        "UPLOAD_TOKEN_SECRET": "test-upload-secret-0123456789abcdef",
        "OTLP_ENDPOINT": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)

FAKE_ANALYSIS = {
    "summary": "A message about hope that endures hardship.",
    "captions": ["Hope holds.", "Faith over fear.", "Morning comes."],
    "hashtags": ["#faith", "#hope", "#grace"],
    "story": "She almost gave up, then the morning came.",
    "scriptures": [
        {"book": "Romans", "chapter": 5, "verse": 3, "text": "We glory in tribulations."},
        {"book": "Psalms", "chapter": "30", "verse": "5", "text": "Joy comes in the morning."},
    ],
    "deepAnalysis": {
        "keyQuotes": [
            {
                "quote": "Faith carries us",
                "analysis": "Dependence",
                "theologicalInsight": "Grace sustains",
                "positivity": "Hope",
            }
        ],
        "theologicalViews": [],
        "positivityInsights": ["Storms end"],
        "overallMessage": "Hope endures.",
    },
    "socialMediaHooks": [{"type": "question", "text": "Tired of waiting?", "platform": "Instagram"}],
}


class FakeLLM(LLM):
    """
    Implémentation factice du fournisseur LLM.

    Chaque capacité réussit par défaut; `fail()` force une faute pour tous les modèles (ou une
    liste de modèles) d'une capacité. `calls` enregistre `(capability, model)` par tentative.
    """

    def __init__(
        self,
        *,
        transcript: str = FAKE_TRANSCRIPT,
        description: str = FAKE_DESCRIPTION,
        analysis_text: str | None = None,
        chat_reply: str = FAKE_CHAT_REPLY,
    ) -> None:
        self.transcript = transcript
        self.description = description
        self.analysis_text = analysis_text or json.dumps(FAKE_ANALYSIS)
        self.chat_reply = chat_reply
        self.calls: list[tuple[str, str]] = []
        self.messages: list[list[dict[str, str]]] = []
        self.payloads: list[MediaPayload] = []
        self._faults: dict[str, tuple[FaultKind, str, set[str] | None]] = {}

    def fail(
        self,
        capability: str,
        kind: FaultKind = FaultKind.UNAVAILABLE,
        message: str = "model not found",
        models: set[str] | None = None,
    ) -> None:
        self._faults[capability] = (kind, message, models)

    def count(self, capability: str) -> int:
        return sum(1 for c, _ in self.calls if c == capability)

    def _outcome(self, capability: str, model: str, value: str) -> CallOutcome[str]:
        self.calls.append((capability, model))
        fault = self._faults.get(capability)
        if fault is not None:
            kind, message, models = fault
            if models is None or model in models:
                return CallOutcome.failure(kind, message)
        return CallOutcome.success(value)

    async def transcribe(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        self.payloads.append(media)
        return self._outcome("transcription", model, self.transcript)

    async def describe_image(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        self.payloads.append(media)
        return self._outcome("vision", model, self.description)

    async def complete_json(self, model: str, messages: list[dict[str, str]]) -> CallOutcome[str]:
        self.messages.append(messages)
        return self._outcome("analysis", model, self.analysis_text)

    async def chat(self, model: str, messages: list[dict[str, str]]) -> CallOutcome[str]:
        self.messages.append(messages)
        return self._outcome("chat", model, self.chat_reply)


class FakeExtractor:
    """Extracteur audio factice: écrit un petit fichier `.m4a` et trace les sources."""

    def __init__(self, fail_with: Exception | None = None) -> None:
        self.sources: list[Path] = []
        self.outputs: list[Path] = []
        self.fail_with = fail_with

    async def extract(self, source: Path, dest_dir: Path) -> Path:
        self.sources.append(source)
        if self.fail_with is not None:
            raise self.fail_with
        dest = dest_dir / f"extracted-{len(self.sources)}.m4a"
        dest.write_bytes(b"fake-aac")
        self.outputs.append(dest)
        return dest


class FailingContentStore(ContentStore):
    """Store injoignable: toute opération lève `DatabaseError`."""

    backend_name = "failing"

    def save(self, record: ContentRecord) -> ContentRecord:
        raise DatabaseError("connection refused")

    def get(self, content_id: str) -> ContentRecord | None:
        raise DatabaseError("connection refused")

    def list_page(self, page: int, limit: int) -> tuple[list[ContentRecord], int]:
        raise DatabaseError("connection refused")

    def ping(self) -> None:
        raise DatabaseError("connection refused")


class RecordingSleep:
    """Remplace `asyncio.sleep` et enregistre les délais demandés."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


__all__ = [
    "FAKE_ANALYSIS",
    "FAKE_CHAT_REPLY",
    "FAKE_DESCRIPTION",
    "FAKE_TRANSCRIPT",
    "FailingContentStore",
    "FakeExtractor",
    "FakeLLM",
    "InMemoryContentStore",
    "RecordingSleep",
]
