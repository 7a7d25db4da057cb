# crowdfuel/helpers.py
# Shared JSON helpers for the blueprints.

from __future__ import annotations

from typing import Any, Dict, Optional, cast

from flask import current_app, jsonify, request

from crowdfuel.services.payments import PaymentClient, PaymentsUnavailable

PAYMENTS_EXTENSION = "crowdfuel.payments"


def request_payload() -> Dict[str, Any]:
    """JSON object body, or {} for anything else (so required-field checks answer 400)."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return cast(Dict[str, Any], data)
    return {}


def json_response(payload: Dict[str, Any], status: int = 200):
    resp = jsonify(payload)
    resp.status_code = int(status)
    resp.headers.setdefault("Cache-Control", "no-store, no-cache, must-revalidate, max-age=0")
    resp.headers.setdefault("Pragma", "no-cache")
    return resp


def json_error(message: str, status: int):
    return json_response({"error": message}, status)


def get_payments() -> PaymentClient:
    client: Optional[PaymentClient] = current_app.extensions.get(PAYMENTS_EXTENSION)
    if client is None:
        raise PaymentsUnavailable()
    return client
