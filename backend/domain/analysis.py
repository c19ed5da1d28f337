"""Décodage de la réponse JSON du service d'analyse en `AnalysisResult`.

Le LLM peut entourer le JSON de texte ou de balises markdown; on extrait l'objet du premier `{`
au dernier `}`. Les champs obligatoires manquants sont remplacés par des valeurs vides afin que
l'enregistrement reste complet; les clés inconnues sont conservées dans `extensions`.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog
from pydantic import ValidationError as PydanticValidationError

from backend.domain.entities import AnalysisResult, DeepAnalysis, Scripture, SocialMediaHook

log = structlog.get_logger(__name__, component="analysis")

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

_KNOWN_KEYS = {
    "summary",
    "captions",
    "hashtags",
    "story",
    "scriptures",
    "deepAnalysis",
    "socialMediaHooks",
    "transcription",
}


class AnalysisParseError(ValueError):
    """Réponse du LLM inexploitable (pas de JSON objet)."""


def _str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _scriptures(value: Any) -> list[Scripture]:
    out: list[Scripture] = []
    for item in value if isinstance(value, list) else []:
        if not isinstance(item, dict):
            continue
        cleaned = {k: ("" if v is None else v) for k, v in item.items()}
        try:
            out.append(Scripture.model_validate(cleaned))
        except PydanticValidationError:
            log.warning("scripture dropped", item=item)
    return out


def _hooks(value: Any) -> list[SocialMediaHook] | None:
    if value is None:
        return None
    hooks: list[SocialMediaHook] = []
    for item in value if isinstance(value, list) else []:
        try:
            hooks.append(SocialMediaHook.model_validate(item))
        except PydanticValidationError:
            log.warning("social media hook dropped", item=item)
    return hooks


def _deep(value: Any) -> DeepAnalysis | None:
    if not isinstance(value, dict):
        return None
    try:
        return DeepAnalysis.model_validate(value)
    except PydanticValidationError:
        log.warning("deep analysis dropped")
        return None


def extract_json_object(text: str) -> dict[str, Any]:
    """Extrait le premier objet JSON contenu dans `text`."""
    match = _JSON_OBJECT_RE.search(text or "")
    if not match:
        raise AnalysisParseError("No JSON found in response")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise AnalysisParseError(f"Invalid JSON in response: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise AnalysisParseError("JSON response is not an object")
    return data


def parse_analysis(text: str) -> AnalysisResult:
    """Convertit la réponse brute du LLM en `AnalysisResult` complet."""
    data = extract_json_object(text)
    result = AnalysisResult(
        summary=str(data.get("summary") or ""),
        captions=_str_list(data.get("captions")),
        hashtags=_str_list(data.get("hashtags")),
        story=str(data.get("story") or ""),
        scriptures=_scriptures(data.get("scriptures")),
        deep_analysis=_deep(data.get("deepAnalysis")),
        social_media_hooks=_hooks(data.get("socialMediaHooks")),
        extensions={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
    )
    log.info(
        "analysis parsed",
        summary_length=len(result.summary),
        captions=len(result.captions),
        scriptures=len(result.scriptures),
    )
    return result
