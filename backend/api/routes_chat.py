"""Route de chat sur un contenu analysé.

Le client fournit l'identifiant du contenu, son message et l'historique de la conversation;
la réponse n'est pas persistée.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from backend.api.deps import get_chat_orchestrator
from backend.api.schemas import ChatRequest
from backend.apigw.errors import success_response
from backend.domain.chat_orchestrator import ChatOrchestrator
from backend.domain.errors import ValidationError

router = APIRouter(tags=["chat"])
_orchestrator_dep = Depends(get_chat_orchestrator)


@router.post("/chat")
async def chat(payload: ChatRequest, orch: ChatOrchestrator = _orchestrator_dep):
    """Retourne `{response}`; 404 si le contenu est inconnu."""
    if not payload.content_id or not payload.message:
        raise ValidationError("Content ID and message are required")
    reply = await orch.chat(payload.content_id, payload.message, payload.history)
    return success_response({"response": reply})
