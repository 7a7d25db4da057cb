# crowdfuel/services/payments.py
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import stripe

from crowdfuel.fees import split_amount
from crowdfuel.schemas import (
    AccountStatus,
    ConnectAccountRequest,
    ConnectAccountResult,
    PaymentIntentRequest,
    PaymentIntentResult,
    WebhookEvent,
)

log = logging.getLogger(__name__)


class PaymentPlatformError(Exception):
    """A Stripe call failed. `message` is the platform's own wording."""

    def __init__(self, message: str, *, operation: str = ""):
        super().__init__(message)
        self.message = message
        self.operation = operation


class PaymentsUnavailable(PaymentPlatformError):
    """No client was configured (STRIPE_SECRET_KEY missing at startup)."""

    def __init__(self, message: str = "Stripe is not configured (STRIPE_SECRET_KEY missing)"):
        super().__init__(message, operation="init")


class WebhookVerificationError(Exception):
    """Webhook payload could not be verified against its signature, or could not be decoded."""


def _stripe_message(err: Exception) -> str:
    return getattr(err, "user_message", None) or str(err)


def _with_query(url: str, params: Dict[str, str]) -> str:
    sep = "&" if "?" in url else "?"
    return f"{url}{sep}{urlencode(params)}"


class PaymentClient:
    """
    Stripe Connect facade. One instance per process, built by the app factory
    and injected; it only holds immutable settings, never request state.
    """

    def __init__(self, api_key: str, *, refresh_url: str, return_url: str):
        if not api_key:
            raise ValueError("api_key is required")
        self.api_key = api_key
        self.refresh_url = refresh_url
        self.return_url = return_url

    @property
    def mode(self) -> str:
        if self.api_key.startswith(("sk_live_", "rk_live_")):
            return "live"
        if self.api_key.startswith(("sk_test_", "rk_test_")):
            return "test"
        return "unknown"

    def _call(self, operation: str, fn, *args: Any, **params: Any) -> Any:
        try:
            return fn(*args, api_key=self.api_key, **params)
        except stripe.StripeError as e:
            msg = _stripe_message(e)
            log.error("stripe: %s failed: %s", operation, msg)
            raise PaymentPlatformError(msg, operation=operation) from e
        except Exception as e:
            # SDK bugs or malformed responses still surface as a facade failure
            msg = str(e) or e.__class__.__name__
            log.exception("stripe: %s failed unexpectedly: %s", operation, msg)
            raise PaymentPlatformError(msg, operation=operation) from e

    # ---------------- CONNECT ----------------
    def create_account(self, email: str, country: str = "US") -> str:
        account = self._call(
            "account.create",
            stripe.Account.create,
            type="express",
            country=country,
            email=email,
            capabilities={
                "card_payments": {"requested": True},
                "transfers": {"requested": True},
            },
            business_type="individual",
        )
        return str(account.id)

    def create_onboarding_link(self, account_id: str, band_id: str) -> str:
        link = self._call(
            "account_link.create",
            stripe.AccountLink.create,
            account=account_id,
            refresh_url=self.refresh_url,
            return_url=_with_query(self.return_url, {"accountId": account_id, "bandId": band_id}),
            type="account_onboarding",
        )
        return str(link.url)

    def onboard_band(self, req: ConnectAccountRequest) -> ConnectAccountResult:
        account_id = self.create_account(req.email, req.country)
        log.info("Created Stripe account %s for band %s", account_id, req.band_id)
        url = self.create_onboarding_link(account_id, req.band_id)
        return ConnectAccountResult(account_id=account_id, onboarding_url=url)

    def account_status(self, account_id: str) -> AccountStatus:
        account = self._call("account.retrieve", stripe.Account.retrieve, account_id)
        return AccountStatus(
            charges_enabled=bool(getattr(account, "charges_enabled", False)),
            payouts_enabled=bool(getattr(account, "payouts_enabled", False)),
            details_submitted=bool(getattr(account, "details_submitted", False)),
        )

    def create_dashboard_link(self, account_id: str) -> str:
        login_link = self._call("account.login_link", stripe.Account.create_login_link, account_id)
        return str(login_link.url)

    # ---------------- PAYMENTS ----------------
    def create_payment_intent(self, req: PaymentIntentRequest) -> PaymentIntentResult:
        fee, net = split_amount(req.amount)

        params: Dict[str, Any] = {
            "amount": req.amount,
            "currency": req.currency,
            "application_fee_amount": fee,
            "transfer_data": {"destination": req.destination_account_id},
            "automatic_payment_methods": {"enabled": True},
            "metadata": {
                "bandStripeAccountId": req.destination_account_id,
                "platformFee": str(fee),
            },
        }
        if req.description:
            params["description"] = req.description

        intent = self._call("payment_intent.create", stripe.PaymentIntent.create, **params)
        return PaymentIntentResult(
            client_secret=str(intent.client_secret),
            payment_intent_id=str(intent.id),
            platform_fee_amount=fee,
            net_amount_to_destination=net,
        )

    # ---------------- WEBHOOKS ----------------
    @staticmethod
    def construct_event(payload: bytes, signature: Optional[str], secret: Optional[str]) -> WebhookEvent:
        """Verify a raw webhook body and decode it. Needs no API key."""
        if not secret:
            raise WebhookVerificationError("No webhook signing secret configured")
        if not signature:
            raise WebhookVerificationError("No stripe-signature header value was provided.")

        try:
            event = stripe.Webhook.construct_event(payload, signature, secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookVerificationError(str(getattr(e, "user_message", None) or e)) from e
        except ValueError as e:
            # undecodable bytes or malformed JSON
            raise WebhookVerificationError(f"Invalid payload: {e}") from e
        except (AttributeError, TypeError) as e:
            # valid JSON, but not an object (list, scalar, null)
            raise WebhookVerificationError("Invalid payload: expected a JSON object") from e

        ev = event.to_dict()
        data = ev.get("data")
        obj = data.get("object") if isinstance(data, dict) else None
        return WebhookEvent(
            type=str(ev.get("type") or ""),
            payload=obj if isinstance(obj, dict) else {},
            id=str(ev.get("id") or ""),
        )
