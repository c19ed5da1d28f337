"""
Entités du domaine métier.

Ce module définit les modèles de données principaux: le résultat d'analyse produit par le LLM,
l'enregistrement persisté (`ContentRecord`) et les tours de conversation.

Les champs sont en snake_case côté Python et sérialisés en camelCase côté API/stockage
(`by_alias=True`). Les clés inconnues renvoyées par le LLM ne sont jamais fusionnées dans le
schéma: elles sont rangées dans `extensions`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HookType = Literal["opening", "curiosity", "emotional", "question", "statistic"]
ChatRole = Literal["user", "assistant"]


class _Model(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Représentation JSON (camelCase) utilisée par l'API et les stores."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Scripture(_Model):
    """Référence biblique; chapitre/verset peuvent être des libellés non numériques."""

    book: str = ""
    chapter: int | str = ""
    verse: int | str = ""
    text: str = ""


class KeyQuote(_Model):
    quote: str = ""
    timestamp: str | None = None
    analysis: str = ""
    theological_insight: str = ""
    positivity: str = ""


class TheologicalView(_Model):
    theme: str = ""
    biblical_perspective: str = ""
    practical_application: str = ""
    related_scriptures: list[Scripture] = Field(default_factory=list)


class DeepAnalysis(_Model):
    """Analyse approfondie: citations clés, vues théologiques et message global."""

    key_quotes: list[KeyQuote] = Field(default_factory=list)
    theological_views: list[TheologicalView] = Field(default_factory=list)
    positivity_insights: list[str] = Field(default_factory=list)
    overall_message: str = ""


class SocialMediaHook(_Model):
    type: HookType
    text: str
    platform: str = ""


class AnalysisResult(_Model):
    """Résultat structuré du service d'analyse.

    `summary`, `captions`, `hashtags`, `story` et `scriptures` sont toujours présents une fois
    l'analyse réussie. `transcription` est rattachée par l'orchestrateur après coup.
    """

    summary: str
    captions: list[str]
    hashtags: list[str]
    story: str
    scriptures: list[Scripture]
    deep_analysis: DeepAnalysis | None = None
    social_media_hooks: list[SocialMediaHook] | None = None
    transcription: str | None = None
    extensions: dict[str, Any] = Field(default_factory=dict)


class ContentRecord(AnalysisResult):
    """Unité persistée: une analyse réussie par fichier accepté (append-only)."""

    id: str | None = None
    source_type: Literal["upload"] = "upload"
    source_url: str | None = None
    video_title: str | None = None
    file_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_analysis(
        cls,
        analysis: AnalysisResult,
        *,
        title: str | None = None,
        file_name: str | None = None,
        source_url: str | None = None,
    ) -> ContentRecord:
        """Construit un enregistrement (non persisté) à partir d'une analyse."""
        return cls(
            **analysis.model_dump(),
            video_title=title,
            file_name=file_name,
            source_url=source_url,
        )

    def history_entry(self, summary_chars: int = 100) -> dict[str, Any]:
        """Projection compacte utilisée par `/history`."""
        return {
            "id": self.id,
            "title": self.video_title or "Untitled Analysis",
            "summary": (self.summary or "")[:summary_chars],
            "timestamp": self.created_at.isoformat() if self.created_at else None,
            "type": self.source_type,
        }


class ChatTurn(_Model):
    """Tour de conversation éphémère (jamais persisté)."""

    role: ChatRole
    content: str
