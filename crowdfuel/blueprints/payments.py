# crowdfuel/blueprints/payments.py
"""
CrowdFuel Payments Blueprint

  POST /create-payment-intent   {amount, currency?, bandStripeAccountId, description?}
  POST /webhook                 raw Stripe event + Stripe-Signature header

Payment intents are destination charges: the platform keeps a 5% application
fee and Stripe transfers the rest to the band's connected account.

Webhook contract:
- signature or payload problems -> 400 "Webhook Error: <reason>" (Stripe redelivers)
- verified events are always acknowledged with 200 {"received": true}
"""

from __future__ import annotations

from flask import Blueprint, current_app, request

from crowdfuel.helpers import get_payments, json_error, json_response, request_payload
from crowdfuel.schemas import PaymentIntentRequest, ValidationError
from crowdfuel.services import webhook_events
from crowdfuel.services.payments import (
    PaymentClient,
    PaymentPlatformError,
    WebhookVerificationError,
)

bp = Blueprint("payments", __name__)


@bp.post("/create-payment-intent")
def create_payment_intent():
    try:
        req = PaymentIntentRequest.from_payload(request_payload())
    except ValidationError as e:
        return json_error(str(e), e.status_code)

    try:
        result = get_payments().create_payment_intent(req)
    except PaymentPlatformError as e:
        current_app.logger.error(
            "payments: error creating payment intent (amount=%s destination=%s): %s",
            req.amount,
            req.destination_account_id,
            e.message,
        )
        return json_error(e.message, 500)

    current_app.logger.info(
        "payments: intent %s amount=%s fee=%s band=%s",
        result.payment_intent_id,
        req.amount,
        result.platform_fee_amount,
        req.destination_account_id,
    )
    return json_response(result.to_json())


@bp.post("/webhook")
def stripe_webhook():
    payload = request.get_data(cache=False, as_text=False)
    sig = (request.headers.get("Stripe-Signature") or "").strip()
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET") or ""

    try:
        event = PaymentClient.construct_event(payload, sig, secret)
    except WebhookVerificationError as e:
        current_app.logger.error("Webhook signature verification failed: %s", e)
        return (f"Webhook Error: {e}", 400, {"Content-Type": "text/plain; charset=utf-8"})

    webhook_events.dispatch(event)
    return json_response({"received": True})
