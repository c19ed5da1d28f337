"""Vérifie quels modèles configurés répondent avec la clé OpenAI courante.

Usage:
  python -m backend.scripts.probe_models [--capability chat|analysis|vision|transcription]

Les modèles de complétion reçoivent un prompt minimal; les modèles de transcription sont
seulement recherchés dans le catalogue (`models.retrieve`), sans envoyer d'audio.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

import openai

from backend.core.settings import Settings, get_settings
from backend.infra.llm.openai_client import OpenAILLM, classify_error

PROBE_MESSAGES = [{"role": "user", "content": "Reply with the single word OK."}]


def _models_for(settings: Settings, capability: str) -> list[str]:
    return {
        "chat": settings.CHAT_MODELS,
        "analysis": settings.ANALYSIS_MODELS,
        "vision": settings.VISION_MODELS,
        "transcription": settings.TRANSCRIPTION_MODELS,
    }[capability]


async def probe(settings: Settings, capabilities: list[str]) -> dict[str, dict[str, str]]:
    """Retourne `{capability: {model: "ok" | "<fault>: <message>"}}`."""
    llm = OpenAILLM(settings.OPENAI_API_KEY, timeout_s=30.0)
    report: dict[str, dict[str, str]] = {}
    for capability in capabilities:
        report[capability] = {}
        for model in _models_for(settings, capability):
            if capability == "transcription":
                try:
                    await llm.client.models.retrieve(model)
                    report[capability][model] = "ok"
                except openai.OpenAIError as exc:
                    fault = classify_error(exc).fault
                    report[capability][model] = f"{fault.kind}: {fault.message}"
                continue
            outcome = await llm.chat(model, PROBE_MESSAGES)
            report[capability][model] = (
                "ok" if outcome.ok else f"{outcome.fault.kind}: {outcome.fault.message}"
            )
    return report


def main() -> None:
    """Point d'entrée: affiche l'état de chaque modèle et sort en 1 si une capacité est vide."""
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--capability",
        choices=["chat", "analysis", "vision", "transcription"],
        action="append",
        help="Capability to probe (repeatable; default: all)",
    )
    args = parser.parse_args()
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        print("OPENAI_API_KEY is not set", file=sys.stderr)
        sys.exit(2)

    capabilities = args.capability or ["chat", "analysis", "vision", "transcription"]
    report = asyncio.run(probe(settings, capabilities))
    exhausted = False
    for capability, models in report.items():
        print(f"[{capability}]")
        for model, status in models.items():
            print(f"  {model}: {status}")
        exhausted = exhausted or not any(s == "ok" for s in models.values())
    sys.exit(1 if exhausted else 0)


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
