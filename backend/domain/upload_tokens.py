"""
Jetons signés d'upload client vers l'object store.

Le client demande un jeton (`blob.generate-client-token`) puis dépose son fichier directement sur
`PUT /blobs/{pathname}`; le jeton fixe le chemin, le type de contenu et la taille maximale.
"""

from datetime import UTC, datetime, timedelta

import jwt
from jwt import InvalidTokenError
from pydantic import BaseModel, ValidationError

TOKEN_PURPOSE = "blob-upload"


class UploadTokenData(BaseModel):
    """Données contenues dans un jeton d'upload."""

    sub: str  # pathname
    content_type: str
    max_bytes: int
    purpose: str = TOKEN_PURPOSE


def create_upload_token(
    secret: str,
    alg: str,
    expires_min: int,
    *,
    pathname: str,
    content_type: str,
    max_bytes: int,
) -> str:
    """Crée un jeton JWT d'upload avec expiration."""
    payload = UploadTokenData(sub=pathname, content_type=content_type, max_bytes=max_bytes)
    to_encode = payload.model_dump()
    to_encode["exp"] = datetime.now(UTC) + timedelta(minutes=expires_min)
    return jwt.encode(to_encode, secret, algorithm=alg)


def decode_upload_token(token: str, secret: str, alg: str) -> UploadTokenData | None:
    """Décode et valide un jeton d'upload; None si invalide ou expiré."""
    try:
        data = jwt.decode(token, secret, algorithms=[alg])
        parsed = UploadTokenData(**data)
    except (InvalidTokenError, ValidationError):
        return None
    return parsed if parsed.purpose == TOKEN_PURPOSE else None
