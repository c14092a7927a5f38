"""Resolve stored or submitted style data into a canonical FormStyle.

Style fields exist under two naming conventions (``background_color`` and
``backgroundColor``). The snake_case key wins when it holds a non-empty value,
then the camelCase key, then the default. Values are passed through without
validation: a malformed colour reaches the renderer as-is.
"""

from collections.abc import Mapping
from typing import Any

from pydantic.alias_generators import to_camel

from detaforms.schemas.forms import FormStyle

BACKGROUND_TYPES = ("solid", "gradient", "image")

DEFAULTS: dict[str, str | None] = {
    "background_type": "solid",
    "background_color": "#ffffff",
    "gradient_start": "#3b82f6",
    "gradient_end": "#8b5cf6",
    "gradient_direction": "to bottom",
    "background_image": None,
    "text_color": "#000000",
    "primary_color": "#3b82f6",
    "border_radius": "medium",
    "spacing": "normal",
    "success_message": "הטופס נשלח בהצלחה!",
    "closed_message": "הטופס סגור",
    "submit_button_text": "שלח טופס",
    "validation_message": "יש לענות על כל השאלות המסומנות כחובה (*)",
}

RADIUS_SCALE = {
    "none": "0px",
    "small": "4px",
    "medium": "8px",
    "large": "12px",
    "extra-large": "16px",
}

SPACING_SCALE = {
    "compact": "1rem",
    "normal": "1.5rem",
    "relaxed": "2rem",
}


def _pick(raw: Mapping[str, Any], name: str) -> Any:
    for key in (name, to_camel(name)):
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def resolve_field(raw: Mapping[str, Any] | None, name: str) -> Any:
    """Resolve one style property by its snake_case name."""
    value = _pick(raw or {}, name)
    return DEFAULTS[name] if value is None else value


def resolve_style(raw: Mapping[str, Any] | None) -> FormStyle:
    """Fold both naming conventions and the defaults into one FormStyle."""
    values = {name: resolve_field(raw, name) for name in DEFAULTS}

    if values["background_type"] not in BACKGROUND_TYPES:
        values["background_type"] = "solid"
    # Non-string values skip the keyword scales and pass through as text
    if isinstance(values["border_radius"], str):
        values["border_radius"] = RADIUS_SCALE.get(values["border_radius"], values["border_radius"])
    if isinstance(values["spacing"], str):
        values["spacing"] = SPACING_SCALE.get(values["spacing"], values["spacing"])

    return FormStyle(**{name: str(value) if value is not None else None for name, value in values.items()})


def background_properties(style: FormStyle) -> dict[str, str]:
    """Presentation properties for the page background and text colour."""
    props = {"color": style.text_color}

    match style.background_type:
        case "gradient":
            props["background"] = (
                f"linear-gradient({style.gradient_direction}, {style.gradient_start}, {style.gradient_end})"
            )
            props["backgroundAttachment"] = "fixed"
            return props
        case "image" if style.background_image:
            props["backgroundImage"] = f"url({style.background_image})"
            props["backgroundSize"] = "cover"
            props["backgroundPosition"] = "center"
            props["backgroundRepeat"] = "no-repeat"
            props["backgroundAttachment"] = "fixed"
            return props

    # Solid, and image mode without an image
    props["backgroundColor"] = style.background_color
    return props


def style_to_storage(style: FormStyle) -> dict[str, str | None]:
    """Column values for the ``form_styles`` row."""
    return style.model_dump(by_alias=False)
