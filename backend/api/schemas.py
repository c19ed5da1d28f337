# Schémas Pydantic exposés par l'API (requêtes). Champs JSON en camelCase.

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from backend.domain.entities import ChatTurn


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProcessRequest(_Request):
    """Traitement d'un fichier déjà déposé dans l'object store.

    Champs:
    - blobUrl: str (URL du blob)
    - fileName, mimeType, title: str | None (déduits du blob si absents)
    - size: int | None (taille annoncée, contrôlée avant récupération)
    """

    blob_url: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    title: str | None = None
    size: int | None = Field(default=None, ge=0)


class AnalyzeRequest(_Request):
    """Analyse d'une transcription fournie directement (50 à 50 000 caractères)."""

    transcription: str | None = None


class ChatRequest(_Request):
    """Tour de conversation sur un contenu persisté.

    Champs:
    - contentId: str (identifiant du contenu)
    - message: str (nouveau message utilisateur)
    - history: list[ChatTurn] (tours précédents, rejoués tels quels)
    """

    content_id: str | None = None
    message: str | None = None
    history: list[ChatTurn] = Field(default_factory=list)


class BlobUploadEvent(_Request):
    """Événement du protocole d'upload client (jeton, puis notification de fin)."""

    type: Literal["blob.generate-client-token", "blob.upload-completed"]
    payload: dict[str, Any] = Field(default_factory=dict)
