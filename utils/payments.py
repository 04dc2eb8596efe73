import stripe
from flask import current_app

from core.errors import PaymentFailed

SIMULATED_PREFIX = "sim_"


def _configure():
    stripe.api_key = current_app.config.get("STRIPE_SECRET_KEY")
    if not stripe.api_key:
        raise PaymentFailed("Stripe secret key missing (STRIPE_SECRET_KEY)")


def authorize_or_charge(amount: int, currency: str, metadata: dict) -> tuple[str, str]:
    """
    Creates a PaymentIntent for ``amount`` (already in smallest unit).
    Returns (payment_intent_id, client_secret).
    """
    _configure()
    try:
        intent = stripe.PaymentIntent.create(
            amount=int(amount),
            currency=currency.lower(),
            metadata={k: str(v) for k, v in (metadata or {}).items()},
            automatic_payment_methods={"enabled": True},
        )
    except stripe.StripeError as exc:
        current_app.logger.warning("Stripe intent creation failed: %s", exc)
        raise PaymentFailed(f"Payment provider rejected the charge: {exc}") from exc
    return intent["id"], intent["client_secret"]


def verify_webhook(payload: bytes, signature: str):
    """
    Returns the decoded event when the signature is valid, otherwise None.
    """
    secret = current_app.config.get("STRIPE_WEBHOOK_SECRET")
    if not secret or not signature:
        return None
    try:
        return stripe.Webhook.construct_event(payload, signature, secret)
    except (ValueError, stripe.SignatureVerificationError):
        return None


def refund(reference: str, amount: int) -> str:
    if reference.startswith(SIMULATED_PREFIX):
        return f"{SIMULATED_PREFIX}refund_{reference[len(SIMULATED_PREFIX):]}"

    _configure()
    try:
        result = stripe.Refund.create(payment_intent=reference, amount=int(amount))
    except stripe.StripeError as exc:
        current_app.logger.warning("Stripe refund failed for %s: %s", reference, exc)
        raise PaymentFailed(f"Refund failed: {exc}") from exc
    return result["id"]
