"""Configuration de logging basée sur structlog.

Objectif du module
------------------
- Fournir une configuration de logs structurés lisibles en développement.
- Conserver les derniers événements dans un tampon mémoire consultable via `/debug/logs`.

Le tampon est global au processus et partagé par toutes les requêtes; l'ordre entre
requêtes concurrentes n'est pas garanti.
"""

from __future__ import annotations

import logging
import sys
from collections import deque
from datetime import UTC, datetime
from typing import Any

import structlog

_RESERVED_KEYS = {"event", "level", "timestamp", "logger", "component", "exc_info"}


class DebugLogBuffer:
    """Tampon circulaire des derniers événements de log (append-only)."""

    def __init__(self, capacity: int = 1000) -> None:
        """Initialise un tampon vide de taille `capacity`."""
        self._entries: deque[dict[str, Any]] = deque(maxlen=max(1, capacity))

    def append(self, entry: dict[str, Any]) -> None:
        """Ajoute une entrée (l'entrée la plus ancienne est évincée si plein)."""
        self._entries.append(entry)

    def entries(self) -> list[dict[str, Any]]:
        """Copie des entrées, de la plus ancienne à la plus récente."""
        return list(self._entries)

    def recent(self, limit: int = 50) -> list[dict[str, Any]]:
        """Dernières `limit` entrées, la plus récente en premier."""
        return list(reversed(self._entries))[: max(0, limit)]

    def clear(self) -> None:
        """Vide le tampon."""
        self._entries.clear()

    def resize(self, capacity: int) -> None:
        """Change la capacité en conservant les entrées les plus récentes."""
        self._entries = deque(self._entries, maxlen=max(1, capacity))

    def __len__(self) -> int:
        return len(self._entries)


debug_buffer = DebugLogBuffer()


def _json_safe(value: Any) -> Any:
    if isinstance(value, str | int | float | bool) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(v) for v in value]
    return str(value)


def capture_to_buffer(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Processor structlog: recopie l'événement dans `debug_buffer`."""
    data = {k: _json_safe(v) for k, v in event_dict.items() if k not in _RESERVED_KEYS}
    entry: dict[str, Any] = {
        "timestamp": event_dict.get("timestamp") or datetime.now(UTC).isoformat(),
        "level": str(event_dict.get("level", method_name)).upper(),
        "service": event_dict.get("component") or event_dict.get("logger") or "app",
        "message": str(event_dict.get("event", "")),
    }
    if data:
        entry["data"] = data
    debug_buffer.append(entry)
    return event_dict


def setup_logging(buffer_capacity: int | None = None):
    """Configure structlog pour produire des logs détaillés et filtrables."""
    if buffer_capacity is not None:
        debug_buffer.resize(buffer_capacity)
    timestamper = structlog.processors.TimeStamper(fmt="ISO")
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            timestamper,
            structlog.processors.add_log_level,
            capture_to_buffer,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )
