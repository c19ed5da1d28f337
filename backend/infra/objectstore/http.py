"""Object store distant accessible en HTTP (PUT/GET/HEAD/DELETE), via httpx.

Le service distant est adressé par `OBJECT_STORE_URL`; le jeton `OBJECT_STORE_TOKEN` est
envoyé en `Authorization: Bearer` pour l'écriture et la suppression.
"""

from __future__ import annotations

from urllib.parse import unquote

import httpx
import structlog

from backend.infra.objectstore.base import ObjectStore, ObjectStoreError, StoredBlob

log = structlog.get_logger(__name__, component="objectstore")

HTTP_NOT_FOUND = 404


class HttpObjectStore(ObjectStore):
    """Client asynchrone d'un object store HTTP."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout_s: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Prépare un client httpx partagé (connexions réutilisées entre requêtes)."""
        self.base_url = base_url.rstrip("/")
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(timeout_s, connect=5.0),
            limits=httpx.Limits(max_keepalive_connections=20, max_connections=50),
            transport=transport,
        )

    def url_for(self, pathname: str) -> str:
        return f"{self.base_url}/{pathname.lstrip('/')}"

    def _check_url(self, url: str) -> str:
        """Refuse toute URL hors de `base_url`: le jeton ne part que vers ce service."""
        prefix = self.base_url + "/"
        path = unquote(url.split("?", 1)[0])
        if not url.startswith(prefix) or ".." in path.split("/"):
            raise ObjectStoreError(f"blob url not served by this store: {url}")
        return url

    async def put(self, pathname: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        url = self.url_for(pathname)
        headers = {"Content-Type": content_type} if content_type else {}
        try:
            resp = await self._client.put(url, content=data, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise ObjectStoreError(f"blob upload failed: {exc}") from exc
        body = resp.json() if resp.content else {}
        return StoredBlob(
            url=body.get("url", url),
            pathname=pathname,
            size=len(data),
            content_type=content_type,
        )

    async def fetch(self, url: str) -> bytes:
        try:
            resp = await self._client.get(self._check_url(url))
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ObjectStoreError(
                f"Failed to fetch blob: {exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ObjectStoreError(f"Failed to fetch blob: {exc}") from exc
        return resp.content

    async def size(self, url: str) -> int | None:
        try:
            resp = await self._client.head(self._check_url(url))
        except httpx.HTTPError as exc:
            log.warning("blob head failed", url=url, error=str(exc))
            return None
        length = resp.headers.get("content-length")
        if resp.is_success and length and length.isdigit():
            return int(length)
        return None

    async def delete(self, url: str) -> None:
        url = self._check_url(url)
        try:
            resp = await self._client.delete(url)
        except httpx.HTTPError as exc:
            raise ObjectStoreError(f"blob delete failed: {exc}") from exc
        if resp.status_code != HTTP_NOT_FOUND and not resp.is_success:
            raise ObjectStoreError(f"blob delete failed: {resp.status_code}")

    async def aclose(self) -> None:
        await self._client.aclose()
