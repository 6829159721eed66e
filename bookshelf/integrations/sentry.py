# =============================================================================
# Sentry Error Tracking Integration
# =============================================================================
#
# Setup:
#   Copy the project DSN to .env: SENTRY_DSN=https://...@sentry.io/...
#
# Usage:
#   init_sentry(settings) is called from the app lifespan. With no DSN
#   configured it does nothing.
#
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from bookshelf.config import Settings
from bookshelf.core.errors import BookshelfError

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = ("authorization", "cookie", "x-api-key")
SENSITIVE_FIELDS = ("password", "password_hash", "access_token")


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry error tracking.

    Returns True if initialized, False if skipped.
    """
    if not settings.sentry_dsn:
        logger.info("SENTRY_DSN not set - error tracking disabled")
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1 if settings.is_production else 1.0,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            StarletteIntegration(transaction_style="endpoint"),
            LoggingIntegration(
                level=logging.INFO,
                event_level=logging.ERROR,
            ),
        ],
        send_default_pii=False,
        before_send=filter_event,
        before_send_transaction=filter_transaction,
    )

    logger.info("Sentry initialized for %s", settings.environment)
    return True


def _scrub(data: Any) -> None:
    if isinstance(data, dict):
        for key in list(data.keys()):
            if str(key).lower() in SENSITIVE_FIELDS:
                data[key] = "[Filtered]"
            else:
                _scrub(data[key])
    elif isinstance(data, list):
        for item in data:
            _scrub(item)


def filter_event(event: dict, hint: dict) -> dict | None:
    """Drop expected client errors and scrub credentials."""
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        # Auth failures, 404s, validation errors are not incidents
        if isinstance(exc_value, BookshelfError) and exc_value.status_code < 500:
            return None

    request = event.get("request")
    if request:
        headers = request.get("headers") or {}
        for key in list(headers.keys()):
            if key.lower() in SENSITIVE_HEADERS:
                headers[key] = "[Filtered]"
        _scrub(request.get("data"))

    return event


def filter_transaction(event: dict, hint: dict) -> dict | None:
    """Skip health checks."""
    if event.get("transaction", "") in ("/health", "/"):
        return None
    return event


def set_user(user_id: str) -> None:
    """Tag error reports with the acting user id."""
    if sentry_sdk.get_client().is_active():
        sentry_sdk.set_user({"id": user_id})
