import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from app.core.constants import PaymentStatusEnum, WebhookOutcomeEnum
from app.crud.payment import payment as crud_payment
from app.models.payment import Payment
from app.schemas.payment import WebhookAck
from app.services.enrollment import EnrollmentService, enrollment_service
from app.services.payment import PaymentService, payment_service

logger = logging.getLogger(__name__)

SETTLED_STATUSES = {
    PaymentStatusEnum.FAILED,
    PaymentStatusEnum.REFUNDED,
    PaymentStatusEnum.PARTIALLY_REFUNDED,
}


class WebhookReconciler:
    """Applies Stripe events to local payments.

    Every handler is safe to run any number of times for the same event and
    tolerates events arriving out of order. A handler returns the outcome it
    reached; unknown payments are acknowledged, not raised.
    """

    def __init__(self, payments: PaymentService = payment_service, enrollments: EnrollmentService = enrollment_service):
        self.payments = payments
        self.enrollments = enrollments
        self._handlers: Dict[str, Callable[[Session, Dict[str, Any]], WebhookOutcomeEnum]] = {
            "payment_intent.succeeded": self.handle_payment_intent_succeeded,
            "payment_intent.payment_failed": self.handle_payment_intent_failed,
            "payment_intent.amount_capturable_updated": self.handle_payment_intent_capturable,
            "checkout.session.completed": self.handle_checkout_session_completed,
            "charge.refunded": self.handle_charge_refunded,
            "charge.refund.updated": self.handle_refund_updated,
        }

    async def handle_event(self, db: Session, event) -> WebhookAck:
        event_type = event["type"]
        event_id = event.get("id")
        handler = self._handlers.get(event_type)

        if handler is None:
            logger.info("Unhandled Stripe event %s (%s)", event_id, event_type)
            outcome = WebhookOutcomeEnum.IGNORED
        else:
            outcome = handler(db, event["data"]["object"])
            log = logger.warning if outcome == WebhookOutcomeEnum.NOT_FOUND else logger.info
            log("Stripe event %s (%s): %s", event_id, event_type, outcome.value)

        return WebhookAck(event_id=event_id, event_type=event_type, outcome=outcome.value)

    def _find_by_intent(self, db: Session, intent: Dict[str, Any]) -> Optional[Payment]:
        payment = crud_payment.get_by_payment_intent(db, intent["id"], for_update=True)
        if payment:
            return payment

        # The intent can arrive before checkout.session.completed recorded its id.
        payment_id = (intent.get("metadata") or {}).get("payment_id")
        if not payment_id:
            return None
        payment = crud_payment.get_for_update(db, id=int(payment_id))
        if payment is None or payment.stripe_payment_intent_id:
            return None
        payment.stripe_payment_intent_id = intent["id"]
        db.flush()
        return payment

    def handle_payment_intent_succeeded(self, db: Session, intent: Dict[str, Any]) -> WebhookOutcomeEnum:
        payment = self._find_by_intent(db, intent)
        if payment is None:
            return WebhookOutcomeEnum.NOT_FOUND
        if payment.is_completed:
            return WebhookOutcomeEnum.DUPLICATE
        if payment.status in SETTLED_STATUSES:
            return WebhookOutcomeEnum.STALE

        method_types = intent.get("payment_method_types") or [None]
        payment = self.payments.mark_completed(db, payment, payment_method_type=method_types[0], commit=False)

        enrollment = payment.enrollment
        if enrollment is not None and enrollment.is_pending:
            self.enrollments.record_payment(
                db, enrollment, amount=payment.amount, reference=intent["id"], commit=False
            )

        db.commit()
        return WebhookOutcomeEnum.PROCESSED

    def handle_payment_intent_failed(self, db: Session, intent: Dict[str, Any]) -> WebhookOutcomeEnum:
        payment = self._find_by_intent(db, intent)
        if payment is None:
            return WebhookOutcomeEnum.NOT_FOUND
        if payment.status == PaymentStatusEnum.FAILED:
            return WebhookOutcomeEnum.DUPLICATE
        if payment.status not in (PaymentStatusEnum.PENDING, PaymentStatusEnum.PROCESSING):
            return WebhookOutcomeEnum.STALE

        error = intent.get("last_payment_error") or {}
        self.payments.mark_failed(
            db, payment,
            reason=error.get("message") or "Payment failed",
            code=error.get("code"),
            commit=False,
        )
        db.commit()
        return WebhookOutcomeEnum.PROCESSED

    def handle_payment_intent_capturable(self, db: Session, intent: Dict[str, Any]) -> WebhookOutcomeEnum:
        payment = self._find_by_intent(db, intent)
        if payment is None:
            return WebhookOutcomeEnum.NOT_FOUND
        if payment.status == PaymentStatusEnum.PROCESSING:
            return WebhookOutcomeEnum.DUPLICATE
        if payment.status != PaymentStatusEnum.PENDING:
            return WebhookOutcomeEnum.STALE

        self.payments.mark_processing(db, payment, commit=False)
        db.commit()
        return WebhookOutcomeEnum.PROCESSED

    def handle_checkout_session_completed(self, db: Session, session: Dict[str, Any]) -> WebhookOutcomeEnum:
        payment = crud_payment.get_by_checkout_session(db, session["id"], for_update=True)
        if payment is None:
            return WebhookOutcomeEnum.NOT_FOUND

        intent_id = session.get("payment_intent")
        if not intent_id or payment.stripe_payment_intent_id:
            return WebhookOutcomeEnum.DUPLICATE

        payment.stripe_payment_intent_id = intent_id
        db.add(payment)
        db.commit()
        return WebhookOutcomeEnum.PROCESSED

    def handle_charge_refunded(self, db: Session, charge: Dict[str, Any]) -> WebhookOutcomeEnum:
        intent_id = charge.get("payment_intent")
        payment = crud_payment.get_by_payment_intent(db, intent_id, for_update=True) if intent_id else None
        if payment is None:
            return WebhookOutcomeEnum.NOT_FOUND
        if payment.status == PaymentStatusEnum.FAILED:
            # A failed payment never becomes refundable, so a retry could not help.
            logger.warning("Refund reported for failed payment %s (intent %s)", payment.id, intent_id)
            return WebhookOutcomeEnum.STALE

        # Stripe reports the cumulative refunded amount in cents.
        provider_total = min(Decimal(payment.amount), Decimal(charge.get("amount_refunded") or 0) / 100)
        delta = provider_total - Decimal(payment.amount_refunded or 0)
        if delta <= 0:
            return WebhookOutcomeEnum.DUPLICATE

        self.payments.apply_refund(db, payment, delta, commit=False)
        db.commit()
        return WebhookOutcomeEnum.PROCESSED

    def handle_refund_updated(self, db: Session, refund: Dict[str, Any]) -> WebhookOutcomeEnum:
        logger.info(
            "Refund %s for intent %s is now %s",
            refund.get("id"), refund.get("payment_intent"), refund.get("status"),
        )
        return WebhookOutcomeEnum.IGNORED


webhook_reconciler = WebhookReconciler()
