"""Routes d'upload: fichier multipart direct (`/upload`) et relais par blob (`/process`).

Les deux routes délèguent au même `UploadOrchestrator`; seule la forme de l'artefact change.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import uuid
from pathlib import Path

import structlog
from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from backend.api.deps import get_container, get_upload_orchestrator
from backend.api.schemas import ProcessRequest
from backend.apigw.errors import success_response
from backend.core.http_constants import HTTP_CREATED
from backend.domain.errors import ValidationError
from backend.domain.transport import (
    BlobArtifact,
    InMemoryArtifact,
    SpooledFileArtifact,
    size_limit_error,
)
from backend.domain.upload_orchestrator import UploadMetadata, UploadOrchestrator

log = structlog.get_logger(__name__, component="api.upload")

router = APIRouter(tags=["upload"])
_orchestrator_dep = Depends(get_upload_orchestrator)


def _spool(upload: UploadFile, temp_dir: Path) -> Path:
    temp_dir.mkdir(parents=True, exist_ok=True)
    _, ext = os.path.splitext(upload.filename or "")
    path = temp_dir / f"spool-{uuid.uuid4().hex}{ext.lower()}"
    try:
        upload.file.seek(0)
        with path.open("wb") as out:
            shutil.copyfileobj(upload.file, out, length=1024 * 1024)
    except OSError:
        # Fichier partiel: pas encore confié à un transport
        path.unlink(missing_ok=True)
        raise
    return path


@router.post("/upload")
async def upload(
    request: Request,
    file: UploadFile | None = File(None),
    title: str | None = Form(None),
    orchestrator: UploadOrchestrator = _orchestrator_dep,
):
    """Téléverse un média et renvoie son analyse (201, `id` nul si non sauvegardé)."""
    if file is None or not file.filename:
        raise ValidationError("No file provided")
    settings = get_container(request).settings
    log.info("upload received", file_name=file.filename, size=file.size, content_type=file.content_type)

    # Plafond vérifié avant toute copie sur disque
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise size_limit_error(file.size, settings.MAX_UPLOAD_BYTES)

    if file.size is not None and file.size > settings.MAX_INLINE_BYTES:
        path = await asyncio.to_thread(_spool, file, Path(settings.TEMP_DIR))
        artifact = SpooledFileArtifact(
            path=path, size=file.size, mime_type=file.content_type, file_name=file.filename
        )
    else:
        data = await file.read()
        artifact = InMemoryArtifact(data=data, mime_type=file.content_type, file_name=file.filename)

    result = await orchestrator.process_upload(
        artifact, UploadMetadata(title=title, file_name=file.filename)
    )
    return success_response(result.to_wire(), status_code=HTTP_CREATED)


@router.post("/process")
async def process(
    payload: ProcessRequest,
    orchestrator: UploadOrchestrator = _orchestrator_dep,
):
    """Traite un fichier déposé au préalable dans l'object store (le blob est supprimé ensuite)."""
    if not payload.blob_url:
        raise ValidationError("Blob URL is required")
    log.info("process received", blob_url=payload.blob_url, file_name=payload.file_name)
    artifact = BlobArtifact(
        url=payload.blob_url,
        mime_type=payload.mime_type,
        file_name=payload.file_name,
        size=payload.size,
    )
    result = await orchestrator.process_upload(
        artifact, UploadMetadata(title=payload.title, file_name=payload.file_name)
    )
    return success_response(result.to_wire(), status_code=HTTP_CREATED)
