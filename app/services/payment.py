import logging
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import PaymentStatusEnum, PaymentTypeEnum
from app.core.exceptions import InvalidInputError, NotFoundError, NotRefundableError
from app.crud.formation import customer as crud_customer, formation as crud_formation
from app.crud.payment import payment as crud_payment
from app.models.enrollment import Enrollment
from app.models.payment import Payment
from app.schemas.payment import PaymentCreate
from app.services.stripe import StripePaymentService, stripe_payment_service
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class PaymentService:
    """Payment lifecycle and refund accounting.

    Every mutation re-reads the payment row with ``SELECT ... FOR UPDATE`` so two
    writers on the same payment serialize instead of interleaving.
    """

    def __init__(self, clock: Clock = system_clock, provider: StripePaymentService = stripe_payment_service):
        self.clock = clock
        self.provider = provider

    def _lock(self, db: Session, payment: Payment) -> Payment:
        locked = crud_payment.get_for_update(db, id=payment.id)
        if locked is None:
            raise NotFoundError("Payment not found", payment_id=payment.id)
        return locked

    def _save(self, db: Session, payment: Payment, commit: bool) -> Payment:
        db.add(payment)
        if commit:
            db.commit()
            db.refresh(payment)
        else:
            db.flush()
        return payment

    def get(self, db: Session, payment_id: int) -> Payment:
        payment = crud_payment.get(db, id=payment_id)
        if not payment:
            raise NotFoundError("Payment not found", payment_id=payment_id)
        return payment

    def create(self, db: Session, payment_in: PaymentCreate) -> Payment:
        data = payment_in.model_dump()
        data["status"] = PaymentStatusEnum.PENDING
        data["amount_refunded"] = Decimal("0")
        payment = crud_payment.create(db, obj_in=data)
        logger.info("Payment %s created for customer %s (%s %s)", payment.id, payment.customer_id, payment.amount, payment.currency)
        return payment

    async def start_checkout(
        self, db: Session, customer_id: int, formation_id: int, enrollment: Optional[Enrollment] = None
    ) -> Tuple[Payment, str]:
        customer = crud_customer.get(db, id=customer_id)
        if not customer:
            raise NotFoundError("Customer not found", customer_id=customer_id)
        formation = crud_formation.get(db, id=formation_id)
        if not formation:
            raise NotFoundError("Formation not found", formation_id=formation_id)

        payment = crud_payment.create(db, obj_in={
            "customer_id": customer.id,
            "formation_id": formation.id,
            "enrollment_id": enrollment.id if enrollment else None,
            "type": PaymentTypeEnum.ENROLLMENT,
            "status": PaymentStatusEnum.PENDING,
            "amount": formation.price,
            "amount_refunded": Decimal("0"),
            "currency": formation.currency or settings.DEFAULT_CURRENCY,
            "description": f"Enrollment: {formation.title}",
        }, commit=False)

        try:
            session = await self.provider.create_checkout_session(payment, customer, formation)
        except Exception:
            db.rollback()
            raise

        payment.stripe_checkout_session_id = session["id"]
        if session.get("payment_intent"):
            payment.stripe_payment_intent_id = session["payment_intent"]
        payment = self._save(db, payment, commit=True)
        logger.info("Checkout session %s opened for payment %s", payment.stripe_checkout_session_id, payment.id)
        return payment, session["url"]

    def mark_processing(self, db: Session, payment: Payment, commit: bool = True) -> Payment:
        payment = self._lock(db, payment)
        payment.transition_to(PaymentStatusEnum.PROCESSING)
        return self._save(db, payment, commit)

    def mark_completed(
        self, db: Session, payment: Payment, payment_method_type: Optional[str] = None, commit: bool = True
    ) -> Payment:
        payment = self._lock(db, payment)
        if payment.is_completed:
            return payment

        payment.transition_to(PaymentStatusEnum.COMPLETED)
        payment.paid_at = self.clock.now()
        if payment_method_type:
            payment.payment_method_type = payment_method_type
        logger.info("Payment %s completed", payment.id)
        return self._save(db, payment, commit)

    def mark_failed(
        self,
        db: Session,
        payment: Payment,
        reason: Optional[str] = None,
        code: Optional[str] = None,
        commit: bool = True,
    ) -> Payment:
        payment = self._lock(db, payment)
        payment.transition_to(PaymentStatusEnum.FAILED)
        payment.failed_at = self.clock.now()
        payment.failure_reason = reason
        payment.failure_code = code
        logger.info("Payment %s failed: %s", payment.id, reason or "no reason given")
        return self._save(db, payment, commit)

    def apply_refund(self, db: Session, payment: Payment, amount: Decimal, commit: bool = True) -> Payment:
        """Book a refund the provider has already made. No provider call."""
        payment = self._lock(db, payment)
        if not payment.can_be_refunded:
            raise NotRefundableError(payment_id=payment.id, status=payment.status.value)

        amount = Decimal(amount).quantize(CENT)
        if amount <= 0:
            raise InvalidInputError("Refund amount must be positive")

        total = Decimal(payment.amount)
        refunded = min(total, Decimal(payment.amount_refunded or 0) + amount)
        target = PaymentStatusEnum.REFUNDED if refunded >= total else PaymentStatusEnum.PARTIALLY_REFUNDED

        payment.transition_to(target)
        payment.amount_refunded = refunded
        payment.refunded_at = self.clock.now()
        logger.info("Payment %s refunded %s (total refunded %s)", payment.id, amount, refunded)
        return self._save(db, payment, commit)

    async def refund(
        self, db: Session, payment: Payment, amount: Optional[Decimal] = None, reason: Optional[str] = None
    ) -> Payment:
        payment = self._lock(db, payment)
        if not payment.can_be_refunded:
            db.rollback()
            raise NotRefundableError(payment_id=payment.id, status=payment.status.value)

        remaining = payment.refundable_amount
        if amount is None:
            amount = remaining
        else:
            amount = Decimal(amount).quantize(CENT)
            if amount <= 0:
                db.rollback()
                raise InvalidInputError("Refund amount must be positive")
            amount = min(amount, remaining)

        try:
            await self.provider.create_refund(payment, amount, reason)
        except Exception:
            db.rollback()
            logger.error("Refund of %s for payment %s failed at the provider", amount, payment.id)
            raise

        return self.apply_refund(db, payment, amount)


payment_service = PaymentService()
