"""Co-editor invitation e-mails sent through the Resend HTTP API."""

import html
import logging

import httpx

from detaforms.core.config import settings

logger = logging.getLogger(__name__)

SUBJECT_TEMPLATE = "הוזמנת לערוך טופס ב-Deta AI: {form_title}"


class InvitationError(Exception):
    """Raised when an invitation e-mail cannot be sent."""


def public_form_url(slug: str) -> str:
    return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/f/{slug}"


def build_invitation_html(form_title: str, form_url: str, inviter_name: str) -> str:
    title = html.escape(form_title)
    inviter = html.escape(inviter_name)
    url = html.escape(form_url, quote=True)
    return f"""
<div dir="rtl" style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto; background-color: #0d0d0f; color: #f3f4f6; padding: 24px; border-radius: 12px;">
  <h1 style="color: #8b5cf6; text-align: center;">✨ הזמנה מ-Deta AI ✨</h1>
  <p style="font-size: 16px;">שלום,</p>
  <p><strong>{inviter}</strong> הזמין אותך לערוך את הטופס "<strong>{title}</strong>" באמצעות מערכת Deta AI.</p>
  <p>כעורך/ת של הטופס תוכל/י:</p>
  <ul style="line-height: 1.7;">
    <li>לערוך ולשנות את מבנה הטופס</li>
    <li>לצפות בתשובות ולנתח נתונים</li>
    <li>לשתף עם משתמשים אחרים</li>
    <li>לנהל את הגדרות הגישה והעיצוב</li>
  </ul>
  <div style="text-align: center; margin: 40px 0;">
    <a href="{url}" style="background: linear-gradient(90deg, #7c3aed, #3b82f6); color: white; padding: 14px 32px; border-radius: 8px; text-decoration: none; font-size: 16px;">פתח טופס ב-Deta AI</a>
  </div>
  <p style="font-size: 14px; color: #9ca3af;">קישור ישיר: <a href="{url}" style="color: #8b5cf6;">{url}</a></p>
  <hr style="border: none; border-top: 1px solid #27272a; margin: 30px 0;" />
  <div style="text-align: center; font-size: 12px; color: #71717a;">
    <p>מערכת Deta AI – עוזרת חכמה לניהול טפסים, שיתופים ויצירה משותפת.</p>
    <p>אם לא ביקשת הזמנה זו, תוכל/י להתעלם מהמייל.</p>
  </div>
</div>
"""


async def send_invitation(
    *,
    to_email: str,
    form_title: str,
    form_slug: str,
    inviter_name: str,
) -> dict:
    """Send the invitation e-mail and return the provider's JSON response.

    Raises:
        InvitationError: If the API key is missing or the provider rejects the request.
    """
    api_key = settings.RESEND_API_KEY
    if not api_key:
        raise InvitationError("RESEND_API_KEY is not configured")

    form_url = public_form_url(form_slug)
    payload = {
        "from": settings.INVITATION_FROM_ADDRESS,
        "to": [to_email],
        "subject": SUBJECT_TEMPLATE.format(form_title=form_title),
        "html": build_invitation_html(form_title, form_url, inviter_name),
    }

    try:
        async with httpx.AsyncClient(timeout=settings.EMAIL_TIMEOUT_SECONDS) as client:
            response = await client.post(
                settings.RESEND_API_URL,
                json=payload,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.error("Resend API returned %d: %s", exc.response.status_code, exc.response.text)
        raise InvitationError(f"Resend API error: {exc.response.text}") from exc
    except httpx.RequestError as exc:
        logger.error("Resend API request failed: %s", exc)
        raise InvitationError(f"Resend API request failed: {exc}") from exc

    data = response.json()
    logger.info("Invitation email sent to %s for form %s", to_email, form_slug)
    return data
