"""Interface de base pour le fournisseur LLM (transcription, vision, analyse, chat).

Chaque méthode cible un modèle précis et retourne un `CallOutcome`: les erreurs du fournisseur
sont converties en fautes catégorisées, jamais propagées comme exceptions. Le choix du modèle et
les relances relèvent de `ModelFallbackInvoker`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from backend.domain.fallback import CallOutcome
from backend.domain.transport import MediaPayload


class LLM(ABC):
    """Interface abstraite pour les modèles de langage."""

    @abstractmethod
    async def transcribe(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        """Transcrit un média audio (ou la piste audio d'une vidéo)."""
        ...

    @abstractmethod
    async def describe_image(self, model: str, media: MediaPayload) -> CallOutcome[str]:
        """Décrit une image et recopie le texte visible."""
        ...

    @abstractmethod
    async def complete_json(
        self, model: str, messages: list[dict[str, str]]
    ) -> CallOutcome[str]:
        """Complétion dont la réponse attendue est un objet JSON (texte brut)."""
        ...

    @abstractmethod
    async def chat(self, model: str, messages: list[dict[str, str]]) -> CallOutcome[str]:
        """Complétion conversationnelle libre."""
        ...
