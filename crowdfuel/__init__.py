# crowdfuel/__init__.py
# CrowdFuel backend: Flask app factory
# Goals:
# - payment client built once and injected (tests pass their own)
# - missing Stripe key degrades business routes, never the boot or "/"
# - proxy-correct (reverse proxy / platform router)
# - JSON error shape everywhere

from __future__ import annotations

import logging
import os
import time
from typing import Any, Optional, Type, Union
from uuid import uuid4

from flask import Flask, g, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

from crowdfuel.extensions import cors, init_sentry
from crowdfuel.helpers import PAYMENTS_EXTENSION, json_error
from crowdfuel.services.payments import PaymentClient

ConfigLike = Union[str, Type[Any]]

_UNSET: Any = object()

ENDPOINTS = (
    "GET  /",
    "GET  /healthz",
    "POST /create-connect-account",
    "POST /connect-account-status",
    "POST /create-payment-intent",
    "POST /payout-dashboard-link",
    "POST /webhook",
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _env_bool(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None:
        return None
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return None


def _resolve_config(target: Optional[ConfigLike]) -> ConfigLike:
    """
    Choose config class/module path.
    - If explicitly provided, respect it.
    - Else if FLASK_CONFIG is set, use it.
    - Else pick by environment name.
    """
    if target is not None:
        return target

    explicit = (os.getenv("FLASK_CONFIG") or "").strip()
    if explicit:
        return explicit

    from crowdfuel.config import env_name

    return {
        "production": "crowdfuel.config.ProductionConfig",
        "testing": "crowdfuel.config.TestingConfig",
    }.get(env_name(), "crowdfuel.config.DevelopmentConfig")


def _parse_cors_origins(raw: Optional[str]) -> Union[str, list]:
    raw = (raw or "*").strip()
    if raw in {"", "*"}:
        return "*"
    if "," in raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return raw


# -----------------------------------------------------------------------------
# Logging with request_id
# -----------------------------------------------------------------------------
class RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            record.request_id = getattr(g, "request_id", "-")
        except RuntimeError:
            # outside an app/request context
            record.request_id = "-"
        return True


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [rid=%(request_id)s]: %(message)s"


def _configure_logging(app: Flask) -> None:
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    for h in root.handlers:
        if not any(isinstance(f, RequestIDFilter) for f in h.filters):
            h.addFilter(RequestIDFilter())

    root.setLevel(str(app.config.get("LOG_LEVEL") or "INFO").upper())
    logging.getLogger("werkzeug").setLevel(str(app.config.get("WERKZEUG_LOG_LEVEL", "WARNING")).upper())
    logging.getLogger("stripe").setLevel(logging.WARNING)
    app.logger.info("Loaded config: ENV=%s DEBUG=%s", app.config.get("ENV", "?"), app.debug)


# -----------------------------------------------------------------------------
# ProxyFix
# -----------------------------------------------------------------------------
def _apply_proxyfix(app: Flask) -> None:
    trust = _env_bool("TRUST_PROXY")
    if trust is None:
        trust = bool(app.config.get("TRUST_PROXY", False))
    if not trust:
        return

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)  # type: ignore[method-assign]
    app.logger.info("ProxyFix enabled (trusting X-Forwarded-* headers).")


# -----------------------------------------------------------------------------
# Integrations
# -----------------------------------------------------------------------------
def _init_sentry(app: Flask) -> None:
    try:
        init_sentry(
            str(app.config.get("SENTRY_DSN") or ""),
            environment=str(app.config.get("ENV", "development")),
            release=os.getenv("GIT_COMMIT", ""),
        )
    except Exception as e:
        app.logger.warning("Sentry init failed: %s", e)


def _init_cors(app: Flask) -> None:
    cors.init_app(
        app,
        origins=_parse_cors_origins(app.config.get("CORS_ORIGINS")),
        expose_headers=["X-Request-ID"],
        allow_headers=["Content-Type", "Authorization", "Stripe-Signature", "X-Request-ID"],
        methods=["GET", "POST", "OPTIONS"],
    )


def _build_payments(app: Flask) -> Optional[PaymentClient]:
    key = str(app.config.get("STRIPE_SECRET_KEY") or "").strip()
    if not key:
        app.logger.error("STRIPE_SECRET_KEY not found in environment variables! Business endpoints will fail.")
        return None

    client = PaymentClient(
        key,
        refresh_url=str(app.config["CONNECT_REFRESH_URL"]),
        return_url=str(app.config["CONNECT_RETURN_URL"]),
    )
    app.logger.info("Stripe initialized successfully (mode=%s)", client.mode)
    return client


# -----------------------------------------------------------------------------
# Request lifecycle + errors
# -----------------------------------------------------------------------------
def _register_request_lifecycle(app: Flask) -> None:
    @app.before_request
    def _bootstrap_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex
        g._start_ts = time.perf_counter()

    @app.after_request
    def _attach_request_headers(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        start = getattr(g, "_start_ts", None)
        if start:
            resp.headers["X-Response-Time-ms"] = str(int((time.perf_counter() - start) * 1000))
        return resp


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(HTTPException)
    def _http_err(err: HTTPException):
        return json_error(err.description or err.name, err.code or 500)

    @app.errorhandler(Exception)
    def _uncaught(err: Exception):
        app.logger.exception("Unhandled error")
        return json_error("Internal Server Error", 500)


def _register_blueprints(app: Flask) -> None:
    from crowdfuel.blueprints.connect import bp as connect_bp
    from crowdfuel.blueprints.health import bp as health_bp
    from crowdfuel.blueprints.payments import bp as payments_bp

    for bp in (health_bp, connect_bp, payments_bp):
        app.register_blueprint(bp)
        app.logger.debug("Registered blueprint: %s", bp.name)


# -----------------------------------------------------------------------------
# App Factory
# -----------------------------------------------------------------------------
def create_app(config_class: Optional[ConfigLike] = None, payments: Optional[PaymentClient] = _UNSET) -> Flask:
    """
    Build the Flask app.

    `payments` overrides the Stripe client built from STRIPE_SECRET_KEY
    (pass a test double, or None to simulate a missing key).
    """
    app = Flask(__name__, static_folder=None)

    cfg = _resolve_config(config_class)
    if isinstance(cfg, str):
        cfg = import_string(cfg)
    app.config.from_object(cfg)
    app.url_map.strict_slashes = False
    app.json.sort_keys = bool(app.config.get("JSON_SORT_KEYS", False))  # type: ignore[attr-defined]

    _apply_proxyfix(app)
    _configure_logging(app)
    _init_sentry(app)
    _init_cors(app)

    init_hook = getattr(cfg, "init_app", None)
    if callable(init_hook):
        init_hook(app)

    app.extensions[PAYMENTS_EXTENSION] = _build_payments(app) if payments is _UNSET else payments

    _register_request_lifecycle(app)
    _register_error_handlers(app)
    _register_blueprints(app)

    return app
