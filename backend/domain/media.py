"""Classification des médias entrants (type MIME et nature audio/vidéo/image)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import StrEnum

GENERIC_MIME = "application/octet-stream"

_GENERIC_MIMES = {"", GENERIC_MIME, "binary/octet-stream", "application/unknown"}

EXTENSION_MIME_TYPES: dict[str, str] = {
    # Audio
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".aac": "audio/aac",
    ".flac": "audio/flac",
    ".amr": "audio/amr",
    ".aiff": "audio/x-aiff",
    # Video
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".mpeg": "video/mpeg",
    ".3gp": "video/3gpp",
    ".webm": "video/webm",
    # Images
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".gif": "image/gif",
}

# Types acceptés pour les jetons d'upload client (relais par object store)
ALLOWED_UPLOAD_TYPES: frozenset[str] = frozenset(
    {
        "audio/mpeg", "audio/mp3", "audio/wav", "audio/x-wav",
        "audio/aac", "audio/x-aac", "audio/ogg", "audio/webm",
        "audio/flac", "audio/x-m4a", "audio/m4a", "audio/mp4",
        "audio/amr", "audio/3gpp", "audio/3gpp2", "audio/x-aiff",
        "video/mp4", "video/webm", "video/quicktime",
        "video/x-msvideo", "video/x-matroska", "video/mpeg", "video/3gpp",
        "image/jpeg", "image/png", "image/webp", "image/heic", "image/heif",
    }
)


class MediaKind(StrEnum):
    AUDIO = "audio"
    VIDEO = "video"
    IMAGE = "image"
    OTHER = "other"


@dataclass(frozen=True)
class MediaInfo:
    mime_type: str
    kind: MediaKind

    @property
    def is_image(self) -> bool:
        """Les images sont décrites, tout le reste est transcrit."""
        return self.kind is MediaKind.IMAGE


def mime_from_file_name(file_name: str | None) -> str:
    """Déduit le type MIME de l'extension; inconnu -> `application/octet-stream`."""
    _, ext = os.path.splitext(file_name or "")
    return EXTENSION_MIME_TYPES.get(ext.lower(), GENERIC_MIME)


def kind_of(mime_type: str) -> MediaKind:
    major = mime_type.split("/", 1)[0].lower()
    try:
        return MediaKind(major)
    except ValueError:
        return MediaKind.OTHER


def classify(declared_mime: str | None, file_name: str | None) -> MediaInfo:
    """Retourne le type effectif: MIME déclaré s'il est spécifique, sinon l'extension."""
    mime = (declared_mime or "").split(";", 1)[0].strip().lower()
    if mime in _GENERIC_MIMES:
        mime = mime_from_file_name(file_name)
    return MediaInfo(mime_type=mime, kind=kind_of(mime))


def is_allowed_upload_type(content_type: str | None) -> bool:
    return (content_type or "").split(";", 1)[0].strip().lower() in ALLOWED_UPLOAD_TYPES
