"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any

from app.core.config import settings


def build_log_context(
    *,
    user_id: str | None = None,
    shop_id: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
    reason: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (ids only, never emails or tokens)."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if shop_id:
        context["shop_id"] = shop_id
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    if reason:
        context["reason"] = reason
    return context


def configure_logging() -> None:
    """Root logger setup for the API process."""
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # basicConfig is a no-op once handlers exist (uvicorn, pytest)
    logging.getLogger().setLevel(settings.LOG_LEVEL.upper())
    # httpx logs every request URL at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
