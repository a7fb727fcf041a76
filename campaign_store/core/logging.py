"""Logging setup and PII-safe log helpers."""

import logging

from campaign_store.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for CLI and embedded use."""
    logging.basicConfig(
        level=(level or settings.log_level_value).upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def mask_email(email: str | None) -> str:
    """Mask an email address for logs: 'al***@example.com'."""
    if not email:
        return ""
    local, sep, domain = email.partition("@")
    prefix = local[:2] if local else ""
    if not sep:
        return f"{prefix}***"
    return f"{prefix}***@{domain}"
