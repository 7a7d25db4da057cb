#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from __future__ import annotations

"""
CrowdFuel Backend Launcher.

- Local dev:         ./run.py
- Explicit env:      ./run.py --env production --port 8080 --log-style json
- Gunicorn:          gunicorn "wsgi:app"

.env files are loaded only outside production; real OS env vars always win.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from crowdfuel.envfiles import load_env_stack, normalize_env_name

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
class ColorFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;41m",
        "RESET": "\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        c = self.COLORS.get(record.levelname, "")
        return f"{c}{base}{self.COLORS['RESET']}"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        obj = {
            "ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", "-"),
            "msg": record.getMessage(),
        }
        if record.exc_info:
            obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(obj)


_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [rid=%(request_id)s] %(message)s"


def setup_logging(debug: bool, style: str) -> None:
    from crowdfuel import RequestIDFilter

    style = (os.getenv("LOG_STYLE") or style).lower()
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())

    if style == "json":
        handler.setFormatter(JsonFormatter())
    elif style == "plain" or not sys.stdout.isatty():
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))
    else:
        handler.setFormatter(ColorFormatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)


# -----------------------------------------------------------------------------
# CLI model
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RunnerConfig:
    host: str
    port: int
    debug: bool
    use_reloader: bool
    log_style: str
    env: str
    config_path: str


def normalize_config_path(value: Optional[str], *, env: str) -> str:
    if value and str(value).strip():
        v = value.strip()
        alias = {
            "dev": "crowdfuel.config.DevelopmentConfig",
            "development": "crowdfuel.config.DevelopmentConfig",
            "test": "crowdfuel.config.TestingConfig",
            "testing": "crowdfuel.config.TestingConfig",
            "prod": "crowdfuel.config.ProductionConfig",
            "production": "crowdfuel.config.ProductionConfig",
        }
        return alias.get(v.lower(), v)

    return {
        "development": "crowdfuel.config.DevelopmentConfig",
        "testing": "crowdfuel.config.TestingConfig",
        "production": "crowdfuel.config.ProductionConfig",
    }.get(normalize_env_name(env), "crowdfuel.config.DevelopmentConfig")


def _env_bool(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None:
        return None
    vv = str(v).strip().lower()
    if vv in {"1", "true", "yes", "y", "on"}:
        return True
    if vv in {"0", "false", "no", "n", "off"}:
        return False
    return None


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Run the CrowdFuel backend.")
    p.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    p.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    p.add_argument("--log-style", choices=["color", "json", "plain"], default=os.getenv("LOG_STYLE", "color"))
    p.add_argument("--env", choices=["development", "testing", "production"], help="Runtime environment")
    p.add_argument("--config", help="Explicit dotted config path or alias (dev/prod/test)")
    p.add_argument("--debug", action=argparse.BooleanOptionalAction, default=None, help="Force debug on/off.")
    p.add_argument("--no-reload", action="store_true", help="Disable the Werkzeug reloader.")
    return p.parse_args(argv)


def make_runner_config(argv: Optional[list[str]] = None) -> RunnerConfig:
    a = parse_args(argv)

    env = normalize_env_name(
        a.env or os.getenv("APP_ENV") or os.getenv("ENV") or os.getenv("FLASK_ENV") or os.getenv("NODE_ENV")
    )

    debug_env = _env_bool("FLASK_DEBUG")
    if a.debug is not None:
        debug = bool(a.debug)
    elif debug_env is not None:
        debug = bool(debug_env)
    else:
        debug = env == "development"

    return RunnerConfig(
        host=str(a.host),
        port=int(a.port),
        debug=debug,
        use_reloader=bool(env == "development" and debug and not a.no_reload),
        log_style=str(a.log_style),
        env=env,
        config_path=normalize_config_path(a.config or os.getenv("FLASK_CONFIG"), env=env),
    )


def _set_or_missing(name: str) -> str:
    return "set" if (os.getenv(name) or "").strip() else "MISSING"


def banner(cfg: RunnerConfig) -> None:
    from crowdfuel import ENDPOINTS

    log = logging.getLogger("crowdfuel.run")
    log.info("CrowdFuel Backend running on %s:%s", cfg.host, cfg.port)
    log.info("Environment: %s (config=%s debug=%s)", cfg.env, cfg.config_path, cfg.debug)
    log.info("Endpoints:")
    for ep in ENDPOINTS:
        log.info("   %s", ep)
    log.info("Environment variables:")
    log.info("   STRIPE_SECRET_KEY: %s", _set_or_missing("STRIPE_SECRET_KEY"))
    log.info("   STRIPE_WEBHOOK_SECRET: %s", _set_or_missing("STRIPE_WEBHOOK_SECRET"))
    log.info("   PORT: %s", cfg.port)


# -----------------------------------------------------------------------------
# Main entry
# -----------------------------------------------------------------------------
def main(argv: Optional[list[str]] = None) -> None:
    cfg = make_runner_config(argv)

    # Before anything under crowdfuel.config is imported (it reads env on import).
    loaded = load_env_stack(env=cfg.env)

    os.environ["ENV"] = cfg.env
    os.environ["APP_ENV"] = cfg.env
    os.environ["FLASK_DEBUG"] = "1" if cfg.debug else "0"

    setup_logging(cfg.debug, cfg.log_style)
    if loaded:
        logging.info("Loaded env files: %s", ", ".join(str(p) for p in loaded))

    is_reloader_main = (not cfg.use_reloader) or (os.environ.get("WERKZEUG_RUN_MAIN") == "true")

    try:
        from crowdfuel import create_app

        flask_app = create_app(cfg.config_path)
        if is_reloader_main:
            banner(cfg)
        flask_app.run(host=cfg.host, port=cfg.port, debug=cfg.debug, use_reloader=cfg.use_reloader)
    except SystemExit:
        raise
    except OSError as exc:
        logging.error("Server failed to start: %s", exc)
        raise SystemExit(1)
    except Exception as exc:
        logging.error("Failed to launch CrowdFuel backend: %s", exc, exc_info=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
