# tests/test_webhook.py
# Signed Stripe webhook handling

import logging
import time

import pytest

from crowdfuel.services import webhook_events
from tests.conftest import sign_payload

EVENTS_LOGGER = "crowdfuel.services.webhook_events"


def _post(client, payload, signature):
    headers = {"Content-Type": "application/json"}
    if signature is not None:
        headers["Stripe-Signature"] = signature
    return client.post("/webhook", data=payload, headers=headers)


def _event_records(caplog):
    return [r for r in caplog.records if r.name == EVENTS_LOGGER]


class TestSignature:
    def test_invalid_signature(self, client, make_event, caplog):
        caplog.set_level(logging.INFO)
        payload = make_event("payment_intent.succeeded", {"id": "pi_1"})
        resp = _post(client, payload, sign_payload(payload, secret="whsec_wrong"))

        assert resp.status_code == 400
        text = resp.get_data(as_text=True)
        assert text.startswith("Webhook Error: ")
        assert "signature" in text.lower()
        assert _event_records(caplog) == []

    def test_missing_header(self, client, make_event):
        resp = _post(client, make_event("payout.paid"), None)
        assert resp.status_code == 400
        assert "stripe-signature" in resp.get_data(as_text=True)

    def test_tampered_body(self, client, make_event):
        payload = make_event("payout.paid", {"id": "po_1", "amount": 100})
        sig = sign_payload(payload)
        resp = _post(client, payload.replace(b"100", b"999"), sig)
        assert resp.status_code == 400

    def test_stale_timestamp(self, client, make_event):
        payload = make_event("payout.paid")
        resp = _post(client, payload, sign_payload(payload, timestamp=time.time() - 3600))
        assert resp.status_code == 400
        assert "tolerance" in resp.get_data(as_text=True).lower()

    def test_signed_garbage(self, client):
        payload = b"not json at all"
        resp = _post(client, payload, sign_payload(payload))
        assert resp.status_code == 400
        assert "Invalid payload" in resp.get_data(as_text=True)


class TestDispatch:
    def test_unhandled_event(self, client, make_event, caplog):
        caplog.set_level(logging.INFO)
        payload = make_event("customer.created", {"id": "cus_1", "email": "fan@x.com"})
        resp = _post(client, payload, sign_payload(payload))

        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}
        records = _event_records(caplog)
        assert [r.getMessage() for r in records] == ["Unhandled event type customer.created"]

    def test_payment_succeeded(self, client, make_event, caplog):
        caplog.set_level(logging.INFO)
        payload = make_event(
            "payment_intent.succeeded",
            {"id": "pi_42", "application_fee_amount": 500, "transfer_data": {"destination": "acct_band"}},
        )
        resp = _post(client, payload, sign_payload(payload))

        assert resp.status_code == 200
        msg = _event_records(caplog)[0].getMessage()
        assert "pi_42" in msg and "500" in msg and "acct_band" in msg

    @pytest.mark.parametrize(
        "event_type,obj,expected",
        [
            ("payment_intent.payment_failed", {"id": "pi_9"}, ["pi_9"]),
            ("account.updated", {"id": "acct_7", "charges_enabled": True, "payouts_enabled": False}, ["acct_7", "True", "False"]),
            ("transfer.created", {"id": "tr_1", "amount": 9500, "destination": "acct_7"}, ["tr_1", "9500", "acct_7"]),
            ("payout.paid", {"id": "po_1", "amount": 9000}, ["po_1", "9000"]),
        ],
    )
    def test_known_events(self, client, make_event, caplog, event_type, obj, expected):
        caplog.set_level(logging.INFO)
        payload = make_event(event_type, obj)
        resp = _post(client, payload, sign_payload(payload))

        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}
        msg = _event_records(caplog)[0].getMessage()
        for part in expected:
            assert part in msg

    def test_handler_failure_still_acknowledged(self, client, make_event, monkeypatch):
        def _boom(obj):
            raise RuntimeError("handler broke")

        monkeypatch.setitem(webhook_events.HANDLERS, "charge.refunded", _boom)
        payload = make_event("charge.refunded", {"id": "ch_1"})
        resp = _post(client, payload, sign_payload(payload))

        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}


def test_registry_covers_lifecycle_events():
    assert set(webhook_events.HANDLERS) >= {
        "payment_intent.succeeded",
        "payment_intent.payment_failed",
        "account.updated",
        "transfer.created",
        "payout.paid",
    }
