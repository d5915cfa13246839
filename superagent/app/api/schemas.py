"""
Request / response schemas for the model service API.

Shapes follow the chat-completions convention so existing clients can
talk to the service unchanged.
"""

from __future__ import annotations

import time
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One message of a chat request or response."""

    role: Literal["system", "user", "assistant", "tool"] = Field(..., description="Sender role")
    content: str = Field(..., description="Message text")


class ChatCompletionRequest(BaseModel):
    """Body of POST /v1/chat/completions."""

    model: str = Field(..., min_length=1, description="Registered model identifier")
    messages: list[ChatMessage] = Field(..., min_length=1, description="Conversation, oldest first")


class ChatCompletionChoice(BaseModel):
    index: int = 0
    message: ChatMessage
    finish_reason: str = "stop"


class ChatCompletionResponse(BaseModel):
    """Body returned by POST /v1/chat/completions."""

    id: str = Field(default_factory=lambda: f"chatcmpl-{uuid4().hex[:8]}")
    object: Literal["chat.completion"] = "chat.completion"
    created: int = Field(default_factory=lambda: int(time.time()))
    model: str
    choices: list[ChatCompletionChoice]


class ModelEntry(BaseModel):
    name: str
    status: Literal["running", "stopped"]


class ModelList(BaseModel):
    """Body returned by GET /v1/models."""

    object: Literal["list"] = "list"
    data: list[ModelEntry]


class ErrorDetail(BaseModel):
    type: str = Field(..., description="not_found, unhealthy, timeout or remote_rejected")
    message: str
    model: str | None = None


class ErrorResponse(BaseModel):
    """Structured error body for every provider failure."""

    error: ErrorDetail


class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    models: int
    running: int
