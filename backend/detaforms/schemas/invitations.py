from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class InvitationRequest(BaseModel):
    """Body of ``POST /send-editor-invitation`` (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    to_email: str = Field(..., min_length=3, max_length=255)
    form_title: str = Field(..., min_length=1, max_length=255)
    form_slug: str = Field(..., min_length=1, max_length=120)
    inviter_name: str = Field("משתמש", max_length=255)
