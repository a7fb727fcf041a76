"""Input normalization for required text fields."""

import re
from typing import Optional

from campaign_store.core.errors import ValidationError

_WHITESPACE = re.compile(r"\s+")


def normalize_email(email: Optional[str]) -> Optional[str]:
    """
    Normalize email to lowercase.

    Args:
        email: Raw email input

    Returns:
        Lowercased email or None if empty
    """
    if not email or not email.strip():
        return None
    return email.strip().lower()


def normalize_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize name by stripping whitespace and collapsing multiple spaces.

    Args:
        name: Raw name input

    Returns:
        Cleaned name or None if empty
    """
    if not name:
        return None
    cleaned = _WHITESPACE.sub(" ", name).strip()
    return cleaned or None


def normalize_identifier(value: Optional[str]) -> Optional[str]:
    """Strip an opaque identifier; None if blank."""
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None


def require_text(field: str, value: Optional[str], normalizer=normalize_identifier) -> str:
    """Normalize ``value`` and raise ValidationError if nothing is left."""
    if value is not None and not isinstance(value, str):
        raise ValidationError(field, f"{field} must be text")
    normalized = normalizer(value)
    if not normalized:
        raise ValidationError(field)
    return normalized
