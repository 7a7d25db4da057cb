from __future__ import annotations

import socket
import time
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Blueprint, current_app

from crowdfuel.helpers import PAYMENTS_EXTENSION, json_response

bp = Blueprint("health", __name__)

APP_STARTED_AT = time.time()
HOSTNAME = socket.gethostname()
SERVICE_STATUS = "CrowdFuel Backend Running"


def _now_iso() -> str:
    # 2026-01-02T03:04:05.678Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _stripe_check() -> Dict[str, Any]:
    client = current_app.extensions.get(PAYMENTS_EXTENSION)
    if client is None:
        return {"status": "degraded", "ok": False, "reason": "no-secret-key"}
    return {"status": "ok", "ok": True, "mode": client.mode}


def _webhook_check() -> Dict[str, Any]:
    if not current_app.config.get("STRIPE_WEBHOOK_SECRET"):
        return {"status": "degraded", "ok": False, "reason": "no-webhook-secret"}
    return {"status": "ok", "ok": True}


@bp.get("/")
def index():
    return json_response({"status": SERVICE_STATUS, "timestamp": _now_iso()})


@bp.get("/healthz")
def healthz():
    parts = {"stripe": _stripe_check(), "webhookSecret": _webhook_check()}
    overall = "degraded" if any(p["status"] != "ok" for p in parts.values()) else "ok"
    return json_response(
        {
            "status": overall,
            "env": current_app.config.get("ENV", "unknown"),
            "hostname": HOSTNAME,
            "uptime_s": int(time.time() - APP_STARTED_AT),
            "now": _now_iso(),
            **parts,
        }
    )
