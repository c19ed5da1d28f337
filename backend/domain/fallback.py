"""Appel résilient à une capacité LLM à travers une liste ordonnée de modèles.

Le fournisseur ne lève pas d'exception pour signaler l'échec d'un modèle: chaque tentative
retourne un `CallOutcome` portant soit une valeur, soit un `Fault` catégorisé. La boucle de
l'invocateur ne fait que lire cette catégorie:

- RATE_LIMITED: même modèle, backoff exponentiel, au plus `max_rate_limit_retries` fois;
- UNAVAILABLE: modèle abandonné, passage au suivant;
- FATAL: arrêt immédiat (aucun autre modèle ne peut réussir, ex. clé API invalide).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, TypeVar

import structlog

from backend.app.metrics import LLM_MODEL_ATTEMPTS

T = TypeVar("T")

log = structlog.get_logger(__name__, component="model_fallback")


class FaultKind(StrEnum):
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    FATAL = "fatal"


@dataclass(frozen=True)
class Fault:
    """Échec d'une tentative, sans forme spécifique au fournisseur."""

    kind: FaultKind
    message: str
    status_code: int | None = None


@dataclass(frozen=True)
class CallOutcome(Generic[T]):
    """Résultat d'une tentative unique: `value` ou `fault`, jamais les deux."""

    value: T | None = None
    fault: Fault | None = None

    @property
    def ok(self) -> bool:
        return self.fault is None

    @classmethod
    def success(cls, value: T) -> CallOutcome[T]:
        return cls(value=value)

    @classmethod
    def failure(
        cls, kind: FaultKind, message: str, status_code: int | None = None
    ) -> CallOutcome[T]:
        return cls(fault=Fault(kind=kind, message=message, status_code=status_code))


@dataclass(frozen=True)
class Attempt:
    """Trace d'une tentative (utile pour diagnostiquer la dépréciation d'un modèle)."""

    model: str
    outcome: str
    retry: int = 0
    delay_s: float = 0.0
    message: str | None = None


@dataclass
class Invocation(Generic[T]):
    """Valeur finale et modèle qui l'a produite."""

    value: T
    model: str
    attempts: list[Attempt] = field(default_factory=list)


class ModelsExhaustedError(Exception):
    """Tous les modèles ont échoué; porte le dernier message observé."""

    def __init__(self, message: str, attempts: list[Attempt], last_fault: Fault | None) -> None:
        """Initialise l'erreur avec l'historique des tentatives."""
        super().__init__(message)
        self.message = message
        self.attempts = attempts
        self.last_fault = last_fault


class ModelFallbackInvoker:
    """Politique de repli entre modèles, partagée par transcription, analyse et chat."""

    def __init__(
        self,
        capability: str,
        *,
        max_rate_limit_retries: int = 2,
        backoff_base_s: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Configure la capacité (étiquette de logs/métriques) et le backoff."""
        self.capability = capability
        self.max_rate_limit_retries = max(0, max_rate_limit_retries)
        self.backoff_base_s = backoff_base_s
        self._sleep = sleep

    def backoff_delay(self, retry: int) -> float:
        """Délai avant la relance n° `retry` (0-indexée): base * 2**retry."""
        return self.backoff_base_s * (2**retry)

    async def invoke(
        self,
        models: Sequence[str],
        call: Callable[[str], Awaitable[CallOutcome[T]]],
    ) -> Invocation[T]:
        """Essaie chaque modèle dans l'ordre et retourne le premier succès.

        Raises:
            ValueError: liste de modèles vide.
            ModelsExhaustedError: aucun modèle n'a produit de résultat.
        """
        if not models:
            raise ValueError("model preference list must not be empty")

        attempts: list[Attempt] = []
        last_fault: Fault | None = None

        for model in models:
            retry = 0
            while True:
                outcome = await self._attempt(model, call)
                if outcome.ok:
                    attempts.append(Attempt(model=model, outcome="success", retry=retry))
                    self._record(model, "success")
                    log.info("model succeeded", capability=self.capability, model=model, retry=retry)
                    return Invocation(value=outcome.value, model=model, attempts=attempts)

                fault = outcome.fault
                last_fault = fault
                if fault.kind is FaultKind.RATE_LIMITED and retry < self.max_rate_limit_retries:
                    delay = self.backoff_delay(retry)
                    attempts.append(
                        Attempt(model, "rate_limited", retry, delay, fault.message)
                    )
                    self._record(model, "rate_limited")
                    log.warning(
                        "model rate limited, backing off",
                        capability=self.capability,
                        model=model,
                        retry=retry + 1,
                        delay_s=delay,
                    )
                    await self._sleep(delay)
                    retry += 1
                    continue

                attempts.append(Attempt(model, fault.kind.value, retry, 0.0, fault.message))
                self._record(model, fault.kind.value)
                log.warning(
                    "model failed",
                    capability=self.capability,
                    model=model,
                    fault=fault.kind.value,
                    error=fault.message,
                )
                if fault.kind is FaultKind.FATAL:
                    raise ModelsExhaustedError(fault.message, attempts, fault)
                break

        message = last_fault.message if last_fault else "all models exhausted"
        log.error("all models exhausted", capability=self.capability, models=list(models))
        raise ModelsExhaustedError(message, attempts, last_fault)

    async def _attempt(
        self, model: str, call: Callable[[str], Awaitable[CallOutcome[T]]]
    ) -> CallOutcome[T]:
        try:
            return await call(model)
        except Exception as exc:  # adapter bug or unexpected transport error
            log.exception("model call raised", capability=self.capability, model=model)
            return CallOutcome.failure(FaultKind.UNAVAILABLE, str(exc) or type(exc).__name__)

    def _record(self, model: str, outcome: str) -> None:
        LLM_MODEL_ATTEMPTS.labels(capability=self.capability, model=model, outcome=outcome).inc()
