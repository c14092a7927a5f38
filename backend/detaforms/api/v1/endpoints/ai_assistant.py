"""AI assistant proxy: streamed chat and image generation."""

import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from detaforms.core.auth import get_current_user_id
from detaforms.schemas.ai_assistant import AssistantRequest
from detaforms.services.ai_assistant import AIGatewayError, generate_image, open_chat_stream

router = APIRouter()


@router.post("")
async def ai_assistant(
    payload: AssistantRequest,
    _user_id: uuid.UUID = Depends(get_current_user_id),
):
    """Chat replies stream back as ``text/event-stream``; images return ``{imageUrl}``."""
    try:
        if payload.action == "generate_image":
            image_url = await generate_image(payload.messages[-1].content)
            return {"imageUrl": image_url}
        chunks = await open_chat_stream(payload.messages)
    except AIGatewayError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    return StreamingResponse(
        chunks,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )
