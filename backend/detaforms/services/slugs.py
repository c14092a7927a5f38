"""Public slug generation for ``/f/{slug}`` links."""

import re
import secrets

from sqlalchemy import select
from sqlalchemy.orm import Session

from detaforms.models.form import Form

_NON_SLUG = re.compile(r"[^a-z0-9]+")

MAX_BASE_LENGTH = 60
MAX_ATTEMPTS = 10


def slugify(text: str) -> str:
    """Lower-case ASCII words joined by hyphens; non-Latin titles yield ''."""
    return _NON_SLUG.sub("-", text.lower()).strip("-")[:MAX_BASE_LENGTH].rstrip("-")


def generate_unique_slug(db: Session, base_text: str = "new-form") -> str:
    """Return ``<base>-<random>`` not yet used by any form."""
    base = slugify(base_text) or "form"
    for _ in range(MAX_ATTEMPTS):
        candidate = f"{base}-{secrets.token_hex(4)}"
        exists = db.execute(select(Form.id).where(Form.slug == candidate)).first()
        if exists is None:
            return candidate
    raise RuntimeError(f"Could not generate a unique slug for '{base}'")
