"""Field formats shared by user, shop, and work order input."""

import re

from app.core.exceptions import ValidationError
from app.db.enums import CANADIAN_PROVINCES

EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")
PHONE_RE = re.compile(r"^[0-9]{3}-[0-9]{3}-[0-9]{4}$")
IMAGE_URL_RE = re.compile(r"^https?://")
POSTAL_CODE_RE = re.compile(r"^[A-Z][0-9][A-Z][0-9][A-Z][0-9]$")


def clean(value: str | None) -> str | None:
    """Strip whitespace; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def normalize_email(value: str | None) -> str | None:
    value = clean(value)
    return value.lower() if value else value


def normalize_postal_code(value: str | None) -> str | None:
    value = clean(value)
    return value.replace(" ", "").upper() if value else value


def require(field: str, value: str | None) -> str:
    if not value:
        raise ValidationError(field, "cannot be blank")
    return value


def validate_email(field: str, value: str | None) -> None:
    if not value or not EMAIL_RE.match(value):
        raise ValidationError(field, "invalid or missing email")


def validate_phone(field: str, value: str | None, *, required: bool = False) -> None:
    if value is None:
        if required:
            raise ValidationError(field, "cannot be blank")
        return
    if not PHONE_RE.match(value):
        raise ValidationError(field, "invalid format (expected NNN-NNN-NNNN)")


def validate_image_url(field: str, value: str | None) -> None:
    if value is not None and not IMAGE_URL_RE.match(value):
        raise ValidationError(field, "must start with http:// or https://")


def validate_province(field: str, value: str | None) -> None:
    if value not in CANADIAN_PROVINCES:
        raise ValidationError(field, "must be a Canadian province or territory code")


def validate_postal_code(field: str, value: str | None) -> None:
    if not value or not POSTAL_CODE_RE.match(value):
        raise ValidationError(field, "invalid format (expected A1A1A1)")
