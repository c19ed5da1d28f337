"""Routes de lecture des contenus: détail, liste paginée et historique.

Les lectures ne dégradent pas: un store indisponible donne 500 `DATABASE_ERROR`.
"""

from __future__ import annotations

from math import ceil

from fastapi import APIRouter, Depends, Query

from backend.api.deps import get_content_store
from backend.apigw.errors import success_response
from backend.app.metrics import CONTENT_STORE_ERRORS
from backend.core.http_constants import (
    DEFAULT_PAGE_SIZE,
    HISTORY_LIMIT,
    HISTORY_SUMMARY_CHARS,
    MAX_PAGE_SIZE,
)
from backend.domain.entities import ContentRecord
from backend.domain.errors import DatabaseError, InvalidInputError, NotFoundError
from backend.infra.repositories import ContentStore

router = APIRouter(tags=["contents"])
_store_dep = Depends(get_content_store)


def _get_or_404(store: ContentStore, content_id: str) -> ContentRecord:
    try:
        record = store.get(content_id)
    except DatabaseError:
        CONTENT_STORE_ERRORS.labels(op="get").inc()
        raise
    if record is None:
        raise NotFoundError("Content not found")
    return record


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """`page` >= 1, `limit` dans [1, 100]."""
    return max(1, page), min(max(1, limit), MAX_PAGE_SIZE)


@router.get("/content/{content_id}")
def get_content(content_id: str, store: ContentStore = _store_dep):
    return success_response(_get_or_404(store, content_id).to_wire())


@router.get("/contents/{content_id}")
def get_content_checked(content_id: str, store: ContentStore = _store_dep):
    """Comme `/content/{id}`, avec contrôle préalable du format de l'identifiant."""
    if not store.is_valid_id(content_id):
        raise InvalidInputError("Invalid content ID format", {"contentId": content_id})
    return success_response(_get_or_404(store, content_id).to_wire())


@router.get("/contents")
def list_contents(
    page: int = Query(1),
    limit: int = Query(DEFAULT_PAGE_SIZE),
    store: ContentStore = _store_dep,
):
    """Liste paginée, du plus récent au plus ancien."""
    page, limit = clamp_pagination(page, limit)
    try:
        records, total = store.list_page(page, limit)
    except DatabaseError:
        CONTENT_STORE_ERRORS.labels(op="list").inc()
        raise
    return success_response(
        [r.to_wire() for r in records],
        pagination={
            "total": total,
            "page": page,
            "limit": limit,
            "pages": ceil(total / limit) if total else 0,
        },
    )


@router.get("/history")
def history(store: ContentStore = _store_dep):
    """Les 50 derniers contenus, en projection compacte."""
    try:
        records = store.recent(HISTORY_LIMIT)
    except DatabaseError:
        CONTENT_STORE_ERRORS.labels(op="list").inc()
        raise
    return success_response([r.history_entry(HISTORY_SUMMARY_CHARS) for r in records])
