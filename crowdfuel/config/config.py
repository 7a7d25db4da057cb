# crowdfuel/config/config.py
# Canonical CrowdFuel configuration (env-first, production-safe)

from __future__ import annotations

import logging
import os
from typing import Optional

log = logging.getLogger(__name__)


# ----------------------------
# Env helpers
# ----------------------------
_TRUTHY = {"1", "true", "yes", "on", "y"}
_FALSY = {"0", "false", "no", "off", "n"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def _bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    s = v.strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return default


def env_name() -> str:
    """
    Normalized environment name.
    Reads APP_ENV / ENV / FLASK_ENV / NODE_ENV, in that order.
    """
    raw = (_env("APP_ENV") or _env("ENV") or _env("FLASK_ENV") or _env("NODE_ENV") or "").lower()
    if raw in {"prod", "production"}:
        return "production"
    if raw in {"test", "testing"}:
        return "testing"
    if raw in {"dev", "development", "local", "staging", "stage"}:
        return "development"
    return raw or "development"


# ----------------------------
# Config classes
# ----------------------------
class BaseConfig:
    """
    Env-first config:
    - every setting can be overridden via environment variables
    - safe defaults for local dev
    - secrets are read once, when this module is imported
    """

    ENV = env_name()

    DEBUG = _bool("FLASK_DEBUG", False)
    TESTING = False

    # Stripe
    STRIPE_SECRET_KEY = _env("STRIPE_SECRET_KEY", "")
    STRIPE_WEBHOOK_SECRET = _env("STRIPE_WEBHOOK_SECRET", "")

    # Connect onboarding (hosted pages that bounce back into the mobile app)
    CONNECT_REFRESH_URL = _env(
        "CONNECT_REFRESH_URL", "https://crowdfuel-86c2b.web.app/connect/refresh.html"
    )
    CONNECT_RETURN_URL = _env(
        "CONNECT_RETURN_URL", "https://crowdfuel-86c2b.web.app/connect/return.html"
    )

    # Server
    TRUST_PROXY = _bool("TRUST_PROXY", False)
    CORS_ORIGINS = _env("CORS_ORIGINS", "*")

    # Logging / observability
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")
    SENTRY_DSN = _env("SENTRY_DSN", "")

    JSON_SORT_KEYS = False

    @classmethod
    def init_app(cls, app) -> None:
        """Hook called by create_app() after app.config.from_object(...)."""
        if not app.config.get("STRIPE_WEBHOOK_SECRET"):
            app.logger.warning("STRIPE_WEBHOOK_SECRET is not set; every webhook will be rejected.")


class DevelopmentConfig(BaseConfig):
    ENV = "development"
    DEBUG = _bool("FLASK_DEBUG", True)


class TestingConfig(BaseConfig):
    ENV = "testing"
    TESTING = True
    DEBUG = False

    STRIPE_SECRET_KEY = "sk_test_crowdfuel"
    STRIPE_WEBHOOK_SECRET = "whsec_test_crowdfuel"
    CONNECT_REFRESH_URL = "https://crowdfuel.test/connect/refresh.html"
    CONNECT_RETURN_URL = "https://crowdfuel.test/connect/return.html"
    SENTRY_DSN = ""


class ProductionConfig(BaseConfig):
    ENV = "production"
    DEBUG = False
    TRUST_PROXY = _bool("TRUST_PROXY", True)

    @classmethod
    def init_app(cls, app) -> None:
        super().init_app(app)

        # Fail fast on debug in prod. A missing Stripe key only degrades.
        if _bool("FLASK_DEBUG", False):
            raise RuntimeError("FLASK_DEBUG must be 0 in production.")

        sk = str(app.config.get("STRIPE_SECRET_KEY") or "")
        if sk.startswith("sk_test_"):
            app.logger.warning("STRIPE_SECRET_KEY is a TEST key in production (sk=%s...)", sk[:10])
