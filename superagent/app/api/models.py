"""
Model service routes.

    GET  /v1/models            -> registered models and their status
    POST /v1/chat/completions  -> route a chat to the named model

Provider failures are raised as ProviderError and rendered by the
application's exception handler (see app.main).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from superagent.app.dependencies import get_model_service
from superagent.memory import Message
from superagent.service import ModelService

from .schemas import (
    ChatCompletionChoice,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatMessage,
    ErrorResponse,
    ModelEntry,
    ModelList,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["models"])


@router.get("/models", summary="List registered models")
async def list_models(service: ModelService = Depends(get_model_service)) -> ModelList:
    records = await service.list_models()
    return ModelList(data=[ModelEntry(name=r.name, status=r.status) for r in records])


@router.post(
    "/chat/completions",
    summary="Route a chat completion to a registered model",
    responses={
        404: {"model": ErrorResponse, "description": "Model not registered"},
        502: {"model": ErrorResponse, "description": "Backend rejected the request"},
        503: {"model": ErrorResponse, "description": "Backend unhealthy"},
        504: {"model": ErrorResponse, "description": "Backend timed out"},
    },
)
async def chat_completions(
    body: ChatCompletionRequest,
    service: ModelService = Depends(get_model_service),
) -> ChatCompletionResponse:
    """
    Forward the conversation to the provider registered for `body.model`.

    Unknown models produce a 404 with a structured error body, never an
    empty success.
    """
    messages = [Message(role=m.role, content=m.content) for m in body.messages]
    logger.info(f"[api] chat request for '{body.model}' ({len(messages)} messages)")

    reply = await service.route_chat(body.model, messages)

    return ChatCompletionResponse(
        model=body.model,
        choices=[
            ChatCompletionChoice(
                index=0,
                message=ChatMessage(role="assistant", content=reply),
            )
        ],
    )
