from .payments import PaymentClient, PaymentPlatformError, PaymentsUnavailable, WebhookVerificationError

__all__ = [
    "PaymentClient",
    "PaymentPlatformError",
    "PaymentsUnavailable",
    "WebhookVerificationError",
]
