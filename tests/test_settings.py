"""
Tests pour le chargement des settings.

Vérifie les valeurs par défaut, la lecture d'un fichier .env personnalisé et le décodage des
listes de modèles (CSV ou JSON).
"""

from __future__ import annotations

from pathlib import Path

from backend.core.settings import Settings

# Constantes pour éviter les erreurs PLR2004 (Magic values)
DEFAULT_RETRIES = 2
CUSTOM_TIMEOUT = 42.0


def test_defaults() -> None:
    """Les valeurs par défaut sont utilisables sans configuration."""
    s = Settings(_env_file=None, OPENAI_API_KEY=None)

    assert s.APP_DEBUG is False
    assert s.LLM_MAX_RATE_LIMIT_RETRIES == DEFAULT_RETRIES
    assert s.TRANSCRIPTION_MODELS[-1] == "whisper-1"
    assert s.MAX_INLINE_BYTES < s.MAX_UPLOAD_BYTES


def test_settings_reads_env_file(tmp_path: Path, monkeypatch) -> None:
    """Les variables d'un fichier .env personnalisé sont appliquées."""
    monkeypatch.delenv("PIPELINE_TIMEOUT_S", raising=False)
    monkeypatch.delenv("CHAT_MODELS", raising=False)
    env = tmp_path / ".env.custom"
    env.write_text("PIPELINE_TIMEOUT_S=42\nCHAT_MODELS=model-a, model-b\n", encoding="utf-8")

    s = Settings(_env_file=str(env))

    assert s.PIPELINE_TIMEOUT_S == CUSTOM_TIMEOUT
    assert s.CHAT_MODELS == ["model-a", "model-b"]


def test_model_lists_from_env(monkeypatch) -> None:
    """Les listes acceptent le format CSV comme le format JSON."""
    monkeypatch.setenv("VISION_MODELS", '["v1", "v2"]')
    monkeypatch.setenv("ANALYSIS_MODELS", "a1,,a2 ")

    s = Settings(_env_file=None)

    assert s.VISION_MODELS == ["v1", "v2"]
    assert s.ANALYSIS_MODELS == ["a1", "a2"]
