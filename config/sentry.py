# coding: utf-8
"""
Sentry configuration for error monitoring
"""
import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration
from loguru import logger

from config.config import SENTRY_DSN, ENVIRONMENT


def init_sentry() -> bool:
    """
    Initialize Sentry SDK for error monitoring

    Returns:
        True if Sentry was initialized, False if disabled
    """
    if not SENTRY_DSN:
        logger.warning("SENTRY_DSN not configured - error monitoring disabled")
        return False

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=ENVIRONMENT,
        integrations=[
            AsyncioIntegration(),
            StarletteIntegration(),
            FastApiIntegration(),
            SqlalchemyIntegration(),  # Database queries tracking
        ],
        traces_sample_rate=0.1 if ENVIRONMENT == "production" else 1.0,
        sample_rate=1.0,
        attach_stacktrace=True,
        send_default_pii=False,  # telegram_id stays out of events
        max_breadcrumbs=50,
        before_send=before_send_hook,
    )

    logger.info(f"Sentry initialized successfully (Environment: {ENVIRONMENT})")
    return True


def before_send_hook(event, hint):
    """
    Drop events that are not worth reporting and strip request bodies
    """
    if "exc_info" in hint:
        _, exc_value, _ = hint["exc_info"]
        if isinstance(exc_value, KeyboardInterrupt):
            return None

    request = event.get("request")
    if request and "data" in request:
        request["data"] = "[Filtered]"

    return event
