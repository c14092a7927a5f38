import uuid

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from detaforms.core.auth import get_current_user_id
from detaforms.schemas.invitations import InvitationRequest
from detaforms.services.invitations import InvitationError, send_invitation

router = APIRouter()


@router.post("")
async def send_editor_invitation(
    payload: InvitationRequest,
    _user_id: uuid.UUID = Depends(get_current_user_id),
):
    try:
        return await send_invitation(
            to_email=payload.to_email,
            form_title=payload.form_title,
            form_slug=payload.form_slug,
            inviter_name=payload.inviter_name,
        )
    except InvitationError as exc:
        return JSONResponse(status_code=500, content={"error": str(exc)})
