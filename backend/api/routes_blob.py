"""Routes de l'upload client hors bande.

- `POST /blob-upload`: protocole à deux événements. `blob.generate-client-token` vérifie le type
  de contenu demandé et délivre un jeton signé plafonné en taille; `blob.upload-completed` est
  purement informatif.
- `PUT /blobs/{pathname}` / `GET /blobs/{pathname}`: dépôt (autorisé par le jeton) et lecture
  des blobs de l'object store local.
"""

from __future__ import annotations

import os
import uuid

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from backend.api.deps import get_container, get_object_store
from backend.api.schemas import BlobUploadEvent
from backend.apigw.errors import success_response
from backend.core.http_constants import HTTP_CREATED
from backend.domain.errors import (
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from backend.domain.media import is_allowed_upload_type
from backend.domain.transport import size_limit_error
from backend.domain.upload_tokens import create_upload_token, decode_upload_token
from backend.infra.objectstore.base import ObjectStore, ObjectStoreError

log = structlog.get_logger(__name__, component="api.blob")

router = APIRouter(tags=["blob"])
_object_store_dep = Depends(get_object_store)


def _bare_type(content_type: str | None) -> str:
    return (content_type or "").split(";", 1)[0].strip().lower()


def _unique_pathname(requested: str) -> str:
    name = os.path.basename(requested.strip().replace("\\", "/")) or "upload"
    return f"uploads/{uuid.uuid4().hex[:12]}-{name}"


@router.post("/blob-upload")
def blob_upload(
    event: BlobUploadEvent,
    request: Request,
    object_store: ObjectStore = _object_store_dep,
):
    settings = get_container(request).settings
    if event.type == "blob.upload-completed":
        blob = event.payload.get("blob") or {}
        log.info("file uploaded to blob", url=blob.get("url"), pathname=blob.get("pathname"))
        return success_response({"type": event.type, "received": True})

    requested = event.payload.get("pathname")
    content_type = _bare_type(event.payload.get("contentType"))
    if not requested:
        raise ValidationError("pathname is required")
    if not is_allowed_upload_type(content_type):
        raise InvalidInputError(
            "Content type not allowed", {"contentType": content_type or None}
        )

    pathname = _unique_pathname(requested)
    token = create_upload_token(
        settings.UPLOAD_TOKEN_SECRET,
        settings.UPLOAD_TOKEN_ALG,
        settings.UPLOAD_TOKEN_EXPIRES_MIN,
        pathname=pathname,
        content_type=content_type,
        max_bytes=settings.BLOB_TOKEN_MAX_BYTES,
    )
    log.info("client token issued", pathname=pathname, content_type=content_type)
    return success_response(
        {
            "type": event.type,
            "clientToken": token,
            "pathname": pathname,
            "uploadUrl": object_store.url_for(pathname),
            "maximumSizeInBytes": settings.BLOB_TOKEN_MAX_BYTES,
        }
    )


@router.put("/blobs/{pathname:path}")
async def put_blob(
    pathname: str,
    request: Request,
    object_store: ObjectStore = _object_store_dep,
):
    """Dépôt d'un blob avec `Authorization: Bearer <clientToken>`."""
    settings = get_container(request).settings
    auth = request.headers.get("authorization", "")
    scheme, _, raw_token = auth.partition(" ")
    if scheme.lower() != "bearer" or not raw_token:
        raise UnauthorizedError("Missing upload token")
    token = decode_upload_token(
        raw_token.strip(), settings.UPLOAD_TOKEN_SECRET, settings.UPLOAD_TOKEN_ALG
    )
    if token is None:
        raise UnauthorizedError("Invalid or expired upload token")
    if token.sub != pathname:
        raise ForbiddenError("Token not valid for this pathname")
    content_type = _bare_type(request.headers.get("content-type"))
    if content_type != token.content_type:
        raise ForbiddenError("Content type does not match upload token")

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > token.max_bytes:
        raise size_limit_error(int(declared), token.max_bytes)
    data = await request.body()
    if len(data) > token.max_bytes:
        raise size_limit_error(len(data), token.max_bytes)
    if not data:
        raise ValidationError("File is empty")

    try:
        blob = await object_store.put(pathname, data, content_type)
    except ObjectStoreError as exc:
        raise InvalidInputError(str(exc)) from exc
    return success_response(
        {
            "url": blob.url,
            "pathname": blob.pathname,
            "size": blob.size,
            "contentType": blob.content_type,
        },
        status_code=HTTP_CREATED,
    )


@router.get("/blobs/{pathname:path}")
def get_blob(pathname: str, object_store: ObjectStore = _object_store_dep):
    try:
        path = object_store.local_path(pathname)
    except ObjectStoreError as exc:
        raise NotFoundError("Blob not found") from exc
    if path is None or not path.is_file():
        raise NotFoundError("Blob not found")
    return FileResponse(path)
