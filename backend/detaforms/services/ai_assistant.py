"""AI form-design assistant: gateway proxy for streamed chat and image generation."""

import json
import logging
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass, field

import httpx

from detaforms.core.config import settings
from detaforms.schemas.ai_assistant import ChatMessage
from detaforms.services.stream_decoder import decode_stream

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "הגעת למגבלת השימוש. אנא נסה שוב מאוחר יותר."
PAYMENT_REQUIRED_MESSAGE = "יש להוסיף קרדיט לחשבון."
IMAGE_FAILED_MESSAGE = "Failed to generate image"
IMAGE_REQUEST_PREFIX = "צור תמונה: "
IMAGE_REPLY_TEXT = "הנה התמונה שיצרתי:"


class AIGatewayError(Exception):
    """Raised when the AI gateway cannot serve a request."""

    status_code = 500

    def __init__(self, message: str = "AI gateway error") -> None:
        self.message = message
        super().__init__(message)


class AIGatewayRateLimited(AIGatewayError):
    status_code = 429

    def __init__(self) -> None:
        super().__init__(RATE_LIMIT_MESSAGE)


class AIGatewayPaymentRequired(AIGatewayError):
    status_code = 402

    def __init__(self) -> None:
        super().__init__(PAYMENT_REQUIRED_MESSAGE)


def _headers() -> dict[str, str]:
    api_key = settings.AI_GATEWAY_API_KEY
    if not api_key:
        raise AIGatewayError("AI_GATEWAY_API_KEY is not configured")
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


def _raise_for_gateway_status(status_code: int, body: str) -> None:
    if status_code == 429:
        raise AIGatewayRateLimited()
    if status_code == 402:
        raise AIGatewayPaymentRequired()
    logger.error("AI gateway error: %d %s", status_code, body)
    raise AIGatewayError("AI gateway error")


async def open_chat_stream(messages: Sequence[ChatMessage]) -> AsyncIterator[bytes]:
    """Start a streamed chat completion and return its SSE body bytes.

    The upstream status is checked before the body is handed back, so
    rate-limit and payment errors surface as exceptions rather than as a
    broken stream. The returned iterator closes the connection when done.
    """
    headers = _headers()
    payload = {
        "model": settings.AI_CHAT_MODEL,
        "messages": [
            {"role": "system", "content": settings.AI_SYSTEM_PROMPT},
            *(message.model_dump() for message in messages),
        ],
        "stream": True,
    }

    client = httpx.AsyncClient(timeout=settings.AI_GATEWAY_TIMEOUT_SECONDS)
    try:
        request = client.build_request("POST", settings.AI_GATEWAY_URL, json=payload, headers=headers)
        response = await client.send(request, stream=True)
    except httpx.RequestError as exc:
        await client.aclose()
        logger.error("AI gateway request failed: %s", exc)
        raise AIGatewayError(f"AI gateway request failed: {exc}") from exc

    if response.status_code != 200:
        body = (await response.aread()).decode("utf-8", errors="replace")
        await response.aclose()
        await client.aclose()
        _raise_for_gateway_status(response.status_code, body)

    async def body() -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()
            await client.aclose()

    return body()


async def generate_image(prompt: str) -> str:
    """Generate an image for ``prompt`` and return its URL (often a data URL)."""
    headers = _headers()
    payload = {
        "model": settings.AI_IMAGE_MODEL,
        "messages": [{"role": "user", "content": prompt}],
        "modalities": ["image", "text"],
    }

    try:
        async with httpx.AsyncClient(timeout=settings.AI_GATEWAY_TIMEOUT_SECONDS) as client:
            response = await client.post(settings.AI_GATEWAY_URL, json=payload, headers=headers)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("AI gateway error: %d %s", exc.response.status_code, exc.response.text)
        raise AIGatewayError(IMAGE_FAILED_MESSAGE) from exc
    except httpx.RequestError as exc:
        logger.error("AI gateway request failed: %s", exc)
        raise AIGatewayError(IMAGE_FAILED_MESSAGE) from exc

    try:
        data = response.json()
        image_url = data["choices"][0]["message"]["images"][0]["image_url"]["url"]
    except (KeyError, IndexError, TypeError, json.JSONDecodeError) as exc:
        logger.error("No image in AI gateway response: %s", exc)
        raise AIGatewayError("No image generated") from exc

    if not image_url:
        raise AIGatewayError("No image generated")
    return image_url


# ---------------------------------------------------------------------------
# Conversation transcript
# ---------------------------------------------------------------------------


@dataclass
class TranscriptMessage:
    role: str
    content: str
    image_url: str | None = None


@dataclass
class AssistantConversation:
    """Transcript of one assistant session, updated as replies stream in.

    Messages are appended optimistically; when a request fails the last
    optimistic message is rolled back (the assistant placeholder once the
    stream has started, otherwise the user's message) and the error is
    re-raised for the caller to show.
    """

    messages: list[TranscriptMessage] = field(default_factory=list)

    def history(self) -> list[ChatMessage]:
        return [ChatMessage(role=m.role, content=m.content) for m in self.messages]

    async def send(self, text: str, on_update: Callable[[str], None] | None = None) -> str:
        self.messages.append(TranscriptMessage(role="user", content=text))
        history = self.history()
        try:
            chunks = await open_chat_stream(history)
            placeholder = TranscriptMessage(role="assistant", content="")
            self.messages.append(placeholder)
            async for message in decode_stream(chunks):
                placeholder.content = message
                if on_update is not None:
                    on_update(message)
        except (AIGatewayError, httpx.HTTPError):
            logger.exception("Assistant chat failed")
            self.messages.pop()
            raise
        return placeholder.content

    async def request_image(self, prompt: str) -> str:
        self.messages.append(TranscriptMessage(role="user", content=f"{IMAGE_REQUEST_PREFIX}{prompt}"))
        image_url = await generate_image(prompt)
        self.messages.append(TranscriptMessage(role="assistant", content=IMAGE_REPLY_TEXT, image_url=image_url))
        return image_url
