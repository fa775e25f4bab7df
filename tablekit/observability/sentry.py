# File: tablekit/observability/sentry.py | Version: 2.0 | Title: Optional Sentry initialization
import logging
import os

log = logging.getLogger(__name__)


def init_sentry_if_configured() -> None:
    dsn = os.getenv("SENTRY_DSN", "").strip()
    if not dsn:
        log.info("Sentry disabled (no SENTRY_DSN).")
        return

    try:
        import sentry_sdk
        from sentry_sdk.integrations.celery import CeleryIntegration
    except ImportError:
        log.warning("SENTRY_DSN is set but sentry-sdk is not installed (pip install tablekit[sentry]).")
        return

    traces = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.1"))
    # Queued exports run in Celery workers; report their failures too
    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=traces,
        integrations=[CeleryIntegration()],
        environment=os.getenv("SENTRY_ENVIRONMENT", "development"),
    )
    log.info("Sentry initialized.")
