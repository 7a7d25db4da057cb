# crowdfuel/blueprints/connect.py
"""
Stripe Connect endpoints for bands.

  POST /create-connect-account   {bandId, email, country?} -> {accountId, onboardingUrl}
  POST /connect-account-status   {accountId} -> {chargesEnabled, payoutsEnabled, detailsSubmitted}
  POST /payout-dashboard-link    {accountId} -> {url}

The account is created on Stripe only; the mobile app persists accountId
once onboarding returns.
"""

from __future__ import annotations

from flask import Blueprint, current_app

from crowdfuel.helpers import get_payments, json_error, json_response, request_payload
from crowdfuel.schemas import AccountRequest, ConnectAccountRequest, ValidationError
from crowdfuel.services.payments import PaymentPlatformError

bp = Blueprint("connect", __name__)


@bp.post("/create-connect-account")
def create_connect_account():
    try:
        req = ConnectAccountRequest.from_payload(request_payload())
    except ValidationError as e:
        return json_error(str(e), e.status_code)

    try:
        result = get_payments().onboard_band(req)
    except PaymentPlatformError as e:
        current_app.logger.error("connect: error creating Connect account for band %s: %s", req.band_id, e.message)
        return json_error(e.message, 500)

    current_app.logger.info("connect: onboarding link issued for %s (band %s)", result.account_id, req.band_id)
    return json_response(result.to_json())


@bp.post("/connect-account-status")
def connect_account_status():
    try:
        req = AccountRequest.from_payload(request_payload())
    except ValidationError as e:
        return json_error(str(e), e.status_code)

    try:
        status = get_payments().account_status(req.account_id)
    except PaymentPlatformError as e:
        current_app.logger.error("connect: error checking account status for %s: %s", req.account_id, e.message)
        return json_error(e.message, 500)

    current_app.logger.info(
        "connect: status %s charges=%s payouts=%s details=%s",
        req.account_id,
        status.charges_enabled,
        status.payouts_enabled,
        status.details_submitted,
    )
    return json_response(status.to_json())


@bp.post("/payout-dashboard-link")
def payout_dashboard_link():
    try:
        req = AccountRequest.from_payload(request_payload())
    except ValidationError as e:
        return json_error(str(e), e.status_code)

    try:
        url = get_payments().create_dashboard_link(req.account_id)
    except PaymentPlatformError as e:
        current_app.logger.error("connect: error creating login link for %s: %s", req.account_id, e.message)
        return json_error(e.message, 500)

    current_app.logger.info("connect: dashboard link issued for %s", req.account_id)
    return json_response({"url": url})
