"""Helpers shared by the Gemini provider clients."""

from __future__ import annotations

import logging

import httpx

from mediagen.errors import ApiError

logger = logging.getLogger(__name__)


def mask_key(key: str) -> str:
    """Mask an API key for safe logging: show first 8 and last 4 chars."""
    if len(key) <= 16:
        return "***"
    return f"{key[:8]}...{key[-4:]}"


def raise_for_api_error(resp: httpx.Response) -> None:
    """Raise ApiError for a non-2xx response.

    Google APIs wrap failures as ``{"error": {"code", "message", "status"}}``;
    ``status`` becomes ``ApiError.reason``.
    """
    if resp.is_success:
        return

    message = resp.reason_phrase or f"HTTP {resp.status_code}"
    reason = None
    try:
        payload = resp.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        message = error.get("message") or message
        reason = error.get("status")

    logger.warning("API error %d (%s): %s", resp.status_code, reason, message[:200])
    raise ApiError(
        f"Request failed with status {resp.status_code}: {message}",
        status_code=resp.status_code,
        reason=reason,
    )
