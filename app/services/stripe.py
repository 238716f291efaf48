import logging
from decimal import Decimal
from typing import Optional, Union

import stripe
from stripe import SignatureVerificationError

from app.core.config import settings
from app.core.exceptions import PaymentProviderError
from app.models.customer import Customer
from app.models.formation import Formation
from app.models.payment import Payment

logger = logging.getLogger(__name__)

stripe.api_key = settings.STRIPE_SECRET_KEY


class StripePaymentService:
    """Narrow client over the Stripe SDK: checkout, refunds and webhook parsing."""

    def __init__(self, webhook_secret: Optional[str] = None):
        self.webhook_secret = webhook_secret if webhook_secret is not None else settings.STRIPE_WEBHOOK_SECRET

    async def _make_request(self, stripe_api_call, *args, **kwargs):
        try:
            return stripe_api_call(*args, **kwargs)
        except stripe.StripeError as e:
            logger.error("Stripe request failed: %s", e.user_message or str(e))
            raise PaymentProviderError(f"Stripe error: {e.user_message or str(e)}")

    async def create_checkout_session(self, payment: Payment, customer: Customer, formation: Formation) -> stripe.checkout.Session:
        metadata = {
            "payment_id": str(payment.id),
            "customer_id": str(customer.id),
            "formation_id": str(formation.id),
        }
        return await self._make_request(
            stripe.checkout.Session.create,
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": (payment.currency or settings.DEFAULT_CURRENCY).lower(),
                    "product_data": {
                        "name": formation.title,
                        "description": formation.summary or formation.title,
                    },
                    "unit_amount": payment.amount_in_cents,
                },
                "quantity": 1,
            }],
            mode="payment",
            success_url=f"{settings.APP_URL}/payments/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.APP_URL}/payments/cancel?payment_id={payment.id}",
            customer_email=customer.email,
            client_reference_id=str(payment.id),
            metadata=metadata,
            payment_intent_data={"metadata": metadata},
        )

    async def create_refund(self, payment: Payment, amount: Decimal, reason: Optional[str] = None) -> stripe.Refund:
        params = {
            "payment_intent": payment.stripe_payment_intent_id,
            "amount": int((Decimal(amount) * 100).quantize(Decimal("1"))),
            "metadata": {"payment_id": str(payment.id)},
        }
        if reason:
            params["reason"] = reason
        return await self._make_request(stripe.Refund.create, **params)

    def construct_webhook_event(self, payload: Union[bytes, str], signature: Optional[str]) -> stripe.Event:
        """Parse and authenticate a webhook body. Raises ValueError or SignatureVerificationError."""
        return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)

    def verify_webhook_signature(self, payload: Union[bytes, str], signature: Optional[str]) -> bool:
        if not signature:
            return False
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8")
        try:
            return stripe.WebhookSignature.verify_header(payload, signature, self.webhook_secret)
        except SignatureVerificationError:
            return False


stripe_payment_service = StripePaymentService()
