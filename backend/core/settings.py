"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
- Exposer les listes de modèles (ordre de préférence) et les plafonds de taille du pipeline
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Annotated, Literal

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default

MIB = 1024 * 1024
_TMP = Path(tempfile.gettempdir())

# Listes de modèles: CSV ou JSON, décodées par le validateur ci-dessous
ModelList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "faith-content-backend"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    CORS_ORIGINS: list[AnyHttpUrl] | list[str] = []

    # Content store
    # "auto": DATABASE_URL puis REDIS_URL, sinon aucun store; "memory": non persistant (dev)
    CONTENT_STORE_BACKEND: Literal["auto", "memory"] = "auto"
    DATABASE_URL: str | None = None
    REDIS_URL: str | None = None
    REQUIRE_DATABASE: bool = False

    # LLM provider
    OPENAI_API_KEY: str | None = None
    TRANSCRIPTION_MODELS: ModelList = [
        "gpt-4o-transcribe",
        "gpt-4o-mini-transcribe",
        "whisper-1",
    ]
    VISION_MODELS: ModelList = ["gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"]
    ANALYSIS_MODELS: ModelList = ["gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"]
    CHAT_MODELS: ModelList = ["gpt-4o-mini", "gpt-4.1-mini", "gpt-4o"]
    LLM_MAX_RATE_LIMIT_RETRIES: int = 2
    LLM_BACKOFF_BASE_S: float = 1.0
    LLM_TIMEOUT_S: float = 120.0

    # Pipeline
    PIPELINE_TIMEOUT_S: float = 600.0
    MAX_UPLOAD_BYTES: int = 500 * MIB
    MAX_BLOB_BYTES: int = 500 * MIB
    MAX_INLINE_BYTES: int = 20 * MIB
    TEMP_DIR: str = str(_TMP / "faith-content-uploads")
    FFMPEG_BINARY: str = "ffmpeg"

    # Object store (relay path)
    OBJECT_STORE_BACKEND: str = "local"  # "local" | "http"
    OBJECT_STORE_DIR: str = str(_TMP / "faith-content-blobs")
    OBJECT_STORE_PUBLIC_URL: str = "http://localhost:8000/blobs"
    OBJECT_STORE_URL: str | None = None
    OBJECT_STORE_TOKEN: str | None = None
    BLOB_TOKEN_MAX_BYTES: int = 100 * MIB
    UPLOAD_TOKEN_SECRET: str = "dev-upload-token-secret-change-me"
    UPLOAD_TOKEN_ALG: str = "HS256"
    UPLOAD_TOKEN_EXPIRES_MIN: int = 30

    # Observabilité
    DEBUG_LOG_CAPACITY: int = 1000
    OTLP_ENDPOINT: str | None = None

    @field_validator(
        "TRANSCRIPTION_MODELS",
        "VISION_MODELS",
        "ANALYSIS_MODELS",
        "CHAT_MODELS",
        mode="before",
    )
    @classmethod
    def _split_models(cls, value):
        """Accepte une liste CSV (`a,b,c`) en plus du format JSON."""
        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [m.strip() for m in value.split(",") if m.strip()]
        return value


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
