# crowdfuel/services/webhook_events.py
"""
Webhook event dispatch.

Handlers are registered per Stripe event type with @handles(...). They receive
the event's `data.object` and only log; nothing is stored. An event type with
no handler produces a single "Unhandled event type" line.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from crowdfuel.schemas import WebhookEvent

log = logging.getLogger(__name__)

EventHandler = Callable[[Dict[str, Any]], None]

HANDLERS: Dict[str, EventHandler] = {}


def handles(event_type: str) -> Callable[[EventHandler], EventHandler]:
    def _register(fn: EventHandler) -> EventHandler:
        HANDLERS[event_type] = fn
        return fn

    return _register


def dispatch(event: WebhookEvent) -> bool:
    """
    Run the handler for `event.type`. Returns True if one was registered.
    A failing handler is logged and reported as handled; the caller always acks.
    """
    handler = HANDLERS.get(event.type)
    if handler is None:
        log.info("Unhandled event type %s", event.type)
        return False

    try:
        handler(event.payload)
    except Exception:
        log.exception("webhook: handler for %s failed (event %s)", event.type, event.id or "-")
    return True


# ----------------------------
# Handlers
# ----------------------------
@handles("payment_intent.succeeded")
def _payment_succeeded(obj: Dict[str, Any]) -> None:
    transfer = obj.get("transfer_data") or {}
    log.info(
        "PaymentIntent succeeded: %s platform_fee=%s band_account=%s",
        obj.get("id"),
        obj.get("application_fee_amount"),
        transfer.get("destination") if isinstance(transfer, dict) else None,
    )


@handles("payment_intent.payment_failed")
def _payment_failed(obj: Dict[str, Any]) -> None:
    log.info("PaymentIntent failed: %s", obj.get("id"))


@handles("account.updated")
def _account_updated(obj: Dict[str, Any]) -> None:
    log.info(
        "Account updated: %s charges_enabled=%s payouts_enabled=%s",
        obj.get("id"),
        obj.get("charges_enabled"),
        obj.get("payouts_enabled"),
    )


@handles("transfer.created")
def _transfer_created(obj: Dict[str, Any]) -> None:
    log.info(
        "Transfer created: %s amount=%s destination=%s",
        obj.get("id"),
        obj.get("amount"),
        obj.get("destination"),
    )


@handles("payout.paid")
def _payout_paid(obj: Dict[str, Any]) -> None:
    log.info("Payout completed: %s amount=%s", obj.get("id"), obj.get("amount"))
