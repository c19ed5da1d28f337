"""Services métier adossés au LLM: transcription/description des médias et analyse de contenu.

Chaque opération publique passe par un `ModelFallbackInvoker` et lève `ModelsExhaustedError`
lorsque tous les modèles configurés ont échoué.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from backend.domain.analysis import AnalysisParseError, parse_analysis
from backend.domain.entities import AnalysisResult, ChatTurn
from backend.domain.fallback import CallOutcome, FaultKind, ModelFallbackInvoker
from backend.domain.prompts import ANALYSIS_SYSTEM_PROMPT, analysis_user_prompt, chat_system_prompt
from backend.domain.transport import MediaPayload
from backend.infra.llm.base import LLM

log = structlog.get_logger(__name__, component="llm_services")


class MediaTranscriptionService:
    """Transforme un média en texte: transcription (audio/vidéo) ou description (image).

    Paramètres:
    - llm: fournisseur (voir `backend.infra.llm.base.LLM`).
    - transcription_models / vision_models: ordre de préférence des modèles.
    - transcription_invoker / vision_invoker: politique de repli de chaque capacité.
    """

    def __init__(
        self,
        llm: LLM,
        *,
        transcription_models: Sequence[str],
        vision_models: Sequence[str],
        transcription_invoker: ModelFallbackInvoker,
        vision_invoker: ModelFallbackInvoker,
    ) -> None:
        """Initialise le service avec ses dépendances."""
        self.llm = llm
        self.transcription_models = list(transcription_models)
        self.vision_models = list(vision_models)
        self.transcription_invoker = transcription_invoker
        self.vision_invoker = vision_invoker

    async def transcribe(self, media: MediaPayload) -> str:
        async def call(model: str) -> CallOutcome[str]:
            return await self.llm.transcribe(model, media)

        result = await self.transcription_invoker.invoke(self.transcription_models, call)
        log.info("transcription done", model=result.model, length=len(result.value))
        return result.value

    async def describe_image(self, media: MediaPayload) -> str:
        async def call(model: str) -> CallOutcome[str]:
            return await self.llm.describe_image(model, media)

        result = await self.vision_invoker.invoke(self.vision_models, call)
        log.info("image described", model=result.model, length=len(result.value))
        return result.value


class ContentAnalysisService:
    """Analyse d'une transcription et conversation ancrée sur celle-ci."""

    def __init__(
        self,
        llm: LLM,
        *,
        analysis_models: Sequence[str],
        chat_models: Sequence[str],
        analysis_invoker: ModelFallbackInvoker,
        chat_invoker: ModelFallbackInvoker,
    ) -> None:
        """Initialise le service avec ses dépendances."""
        self.llm = llm
        self.analysis_models = list(analysis_models)
        self.chat_models = list(chat_models)
        self.analysis_invoker = analysis_invoker
        self.chat_invoker = chat_invoker

    async def analyze(self, transcript: str) -> AnalysisResult:
        """Retourne l'analyse structurée; une réponse non JSON compte comme un échec du modèle."""
        messages = [
            {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": analysis_user_prompt(transcript)},
        ]

        async def call(model: str) -> CallOutcome[AnalysisResult]:
            outcome = await self.llm.complete_json(model, messages)
            if not outcome.ok:
                return CallOutcome(fault=outcome.fault)
            try:
                return CallOutcome.success(parse_analysis(outcome.value))
            except AnalysisParseError as exc:
                return CallOutcome.failure(FaultKind.UNAVAILABLE, str(exc))

        result = await self.analysis_invoker.invoke(self.analysis_models, call)
        return result.value

    async def reply(self, transcript: str, history: Sequence[ChatTurn], message: str) -> str:
        messages = [{"role": "system", "content": chat_system_prompt(transcript)}]
        messages.extend({"role": turn.role, "content": turn.content} for turn in history)
        messages.append({"role": "user", "content": message})

        async def call(model: str) -> CallOutcome[str]:
            return await self.llm.chat(model, messages)

        result = await self.chat_invoker.invoke(self.chat_models, call)
        return result.value
