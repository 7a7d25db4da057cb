# crowdfuel/schemas.py
# Request/response shapes for the HTTP surface. Nothing here is persisted.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class ValidationError(ValueError):
    """A request body is missing a required field or carries a malformed one."""

    status_code = 400


def _str_field(data: Dict[str, Any], key: str) -> str:
    v = data.get(key)
    if v is None or isinstance(v, (dict, list, bool)):
        return ""
    return str(v).strip()


# ----------------------------
# Requests
# ----------------------------
@dataclass(frozen=True)
class ConnectAccountRequest:
    band_id: str
    email: str
    country: str = "US"

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ConnectAccountRequest":
        band_id = _str_field(data, "bandId")
        email = _str_field(data, "email")
        if not band_id or not email:
            raise ValidationError("bandId and email are required")
        country = _str_field(data, "country") or "US"
        return cls(band_id=band_id, email=email, country=country)


@dataclass(frozen=True)
class AccountRequest:
    """Body of the routes that only name an existing connected account."""

    account_id: str

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "AccountRequest":
        account_id = _str_field(data, "accountId")
        if not account_id:
            raise ValidationError("accountId is required")
        return cls(account_id=account_id)


@dataclass(frozen=True)
class PaymentIntentRequest:
    amount: int
    destination_account_id: str
    currency: str = "usd"
    description: Optional[str] = None

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "PaymentIntentRequest":
        raw_amount = data.get("amount")
        destination = _str_field(data, "bandStripeAccountId")
        if raw_amount in (None, "", 0) or not destination:
            raise ValidationError("amount and bandStripeAccountId are required")

        # JSON numbers only; 1.0 is accepted as 1, 1.5 is not.
        if isinstance(raw_amount, bool) or not isinstance(raw_amount, (int, float)):
            raise ValidationError("amount must be a positive integer in the smallest currency unit")
        if isinstance(raw_amount, float) and not raw_amount.is_integer():
            raise ValidationError("amount must be a positive integer in the smallest currency unit")
        amount = int(raw_amount)
        if amount <= 0:
            raise ValidationError("amount must be a positive integer in the smallest currency unit")

        description = _str_field(data, "description") or None
        return cls(
            amount=amount,
            destination_account_id=destination,
            currency=(_str_field(data, "currency") or "usd").lower(),
            description=description,
        )


# ----------------------------
# Results
# ----------------------------
@dataclass(frozen=True)
class ConnectAccountResult:
    account_id: str
    onboarding_url: str

    def to_json(self) -> Dict[str, Any]:
        return {"accountId": self.account_id, "onboardingUrl": self.onboarding_url}


@dataclass(frozen=True)
class AccountStatus:
    charges_enabled: bool
    payouts_enabled: bool
    details_submitted: bool

    def to_json(self) -> Dict[str, Any]:
        return {
            "chargesEnabled": self.charges_enabled,
            "payoutsEnabled": self.payouts_enabled,
            "detailsSubmitted": self.details_submitted,
        }


@dataclass(frozen=True)
class PaymentIntentResult:
    client_secret: str
    payment_intent_id: str
    platform_fee_amount: int
    net_amount_to_destination: int

    def to_json(self) -> Dict[str, Any]:
        return {
            "clientSecret": self.client_secret,
            "paymentIntentId": self.payment_intent_id,
            "platformFee": self.platform_fee_amount,
            "bandAmount": self.net_amount_to_destination,
        }


@dataclass(frozen=True)
class WebhookEvent:
    type: str
    payload: Dict[str, Any] = field(default_factory=dict)
    id: str = ""
