"""Interface de base pour le stockage de blobs hors bande.

Ce module définit l'interface abstraite des object stores utilisés par le chemin de relais
(upload client direct, puis traitement par référence).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


class ObjectStoreError(Exception):
    """Échec d'une opération sur l'object store (blob absent, réseau, URL étrangère)."""


@dataclass(frozen=True)
class StoredBlob:
    url: str
    pathname: str
    size: int
    content_type: str | None = None


class ObjectStore(ABC):
    """Interface abstraite des object stores."""

    @abstractmethod
    async def put(self, pathname: str, data: bytes, content_type: str | None = None) -> StoredBlob:
        """Stocke un blob et retourne sa référence publique."""
        raise NotImplementedError

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Retourne le contenu d'un blob à partir de son URL."""
        raise NotImplementedError

    @abstractmethod
    async def size(self, url: str) -> int | None:
        """Taille du blob en octets, ou None si inconnue."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, url: str) -> None:
        """Supprime un blob (idempotent)."""
        raise NotImplementedError

    @abstractmethod
    def url_for(self, pathname: str) -> str:
        """URL publique (et cible d'upload client) d'un chemin."""
        raise NotImplementedError

    def local_path(self, pathname: str) -> Path | None:
        """Chemin disque du blob pour les stores locaux; None ailleurs."""
        return None
