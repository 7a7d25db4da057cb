# tests/conftest.py
# Shared pytest fixtures

import hashlib
import hmac
import json
import time

import pytest

from crowdfuel import create_app
from crowdfuel.config import TestingConfig
from crowdfuel.fees import split_amount
from crowdfuel.schemas import AccountStatus, ConnectAccountResult, PaymentIntentResult
from crowdfuel.services.payments import PaymentPlatformError

WEBHOOK_SECRET = TestingConfig.STRIPE_WEBHOOK_SECRET


class FakePayments:
    """Stands in for PaymentClient; records calls, never touches the network."""

    mode = "test"

    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def _record(self, name, arg):
        self.calls.append((name, arg))
        if self.fail_with:
            raise PaymentPlatformError(self.fail_with, operation=name)

    def onboard_band(self, req):
        self._record("onboard_band", req)
        return ConnectAccountResult(account_id="acct_fake", onboarding_url="https://connect.stripe.test/setup/fake")

    def account_status(self, account_id):
        self._record("account_status", account_id)
        return AccountStatus(charges_enabled=True, payouts_enabled=False, details_submitted=True)

    def create_dashboard_link(self, account_id):
        self._record("create_dashboard_link", account_id)
        return f"https://connect.stripe.test/express/{account_id}"

    def create_payment_intent(self, req):
        self._record("create_payment_intent", req)
        fee, net = split_amount(req.amount)
        return PaymentIntentResult(
            client_secret="pi_fake_secret_123",
            payment_intent_id="pi_fake",
            platform_fee_amount=fee,
            net_amount_to_destination=net,
        )


@pytest.fixture
def fake_payments():
    return FakePayments()


@pytest.fixture
def app(fake_payments):
    return create_app(TestingConfig, payments=fake_payments)


@pytest.fixture
def client(app):
    return app.test_client()


def sign_payload(payload: bytes, secret: str = WEBHOOK_SECRET, timestamp=None) -> str:
    """Stripe-Signature header value for `payload` (t=<ts>,v1=<hex hmac-sha256>)."""
    ts = int(timestamp if timestamp is not None else time.time())
    signed = f"{ts}.".encode("utf-8") + payload
    sig = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


@pytest.fixture
def make_event():
    def _make(event_type, obj=None, event_id="evt_test_123"):
        return json.dumps(
            {
                "id": event_id,
                "object": "event",
                "type": event_type,
                "data": {"object": obj or {}},
            }
        ).encode("utf-8")

    return _make
