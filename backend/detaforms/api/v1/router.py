from fastapi import APIRouter

from detaforms.api.v1.endpoints import ai_assistant, forms, invitations, public

api_v1_router = APIRouter()

api_v1_router.include_router(forms.router, prefix="/forms", tags=["forms"])
api_v1_router.include_router(public.router, prefix="/f", tags=["public"])
api_v1_router.include_router(ai_assistant.router, prefix="/ai-assistant", tags=["ai-assistant"])
api_v1_router.include_router(invitations.router, prefix="/send-editor-invitation", tags=["invitations"])
