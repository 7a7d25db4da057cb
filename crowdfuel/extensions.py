import logging

import sentry_sdk
from flask_cors import CORS
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Core singletons
# ─────────────────────────────────────────────────────────────
cors = CORS()


# ─────────────────────────────────────────────────────────────
# Error reporting
# ─────────────────────────────────────────────────────────────
def init_sentry(dsn: str, *, environment: str, release: str = "") -> bool:
    """Initialize Sentry when a DSN is configured. Returns True if enabled."""
    if not dsn:
        return False
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FlaskIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
        ],
        traces_sample_rate=0.0,
        send_default_pii=False,
        environment=environment,
        release=release or None,
    )
    log.info("Sentry initialized (env=%s)", environment)
    return True
