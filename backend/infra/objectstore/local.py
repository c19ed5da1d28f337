"""Object store sur disque local, servi par l'application sous `/blobs/{pathname}`."""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from backend.infra.objectstore.base import ObjectStore, ObjectStoreError, StoredBlob

log = structlog.get_logger(__name__, component="objectstore")


class LocalObjectStore(ObjectStore):
    """Blobs rangés sous `root`; les URLs publiques sont `public_url/pathname`."""

    def __init__(self, root: str | Path, public_url: str) -> None:
        """Crée le répertoire racine s'il n'existe pas."""
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_url = public_url.rstrip("/")

    def local_path(self, pathname: str) -> Path:
        path = (self.root / pathname.lstrip("/")).resolve()
        if path == self.root or not path.is_relative_to(self.root):
            raise ObjectStoreError(f"invalid blob pathname: {pathname}")
        return path

    def _pathname(self, url: str) -> str:
        prefix = self.public_url + "/"
        if not url.startswith(prefix):
            raise ObjectStoreError(f"blob url not served by this store: {url}")
        return url[len(prefix):].split("?", 1)[0]

    def url_for(self, pathname: str) -> str:
        return f"{self.public_url}/{pathname.lstrip('/')}"

    async def put(self, pathname: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        path = self.local_path(pathname)

        def _write() -> None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.to_thread(_write)
        log.info("blob stored", pathname=pathname, size=len(data))
        return StoredBlob(
            url=self.url_for(pathname), pathname=pathname, size=len(data), content_type=content_type
        )

    async def fetch(self, url: str) -> bytes:
        path = self.local_path(self._pathname(url))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise ObjectStoreError(f"blob not found: {url}") from exc

    async def size(self, url: str) -> int | None:
        path = self.local_path(self._pathname(url))
        try:
            return (await asyncio.to_thread(path.stat)).st_size
        except FileNotFoundError:
            return None

    async def delete(self, url: str) -> None:
        path = self.local_path(self._pathname(url))
        await asyncio.to_thread(path.unlink, missing_ok=True)
