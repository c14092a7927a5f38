from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class AssistantRequest(BaseModel):
    """Body of ``POST /ai-assistant``; ``action`` selects image generation."""

    messages: list[ChatMessage] = Field(..., min_length=1)
    action: Literal["generate_image"] | None = None

