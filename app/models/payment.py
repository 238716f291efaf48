from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import PaymentStatusEnum, PaymentTypeEnum, PAYMENT_TRANSITIONS, REFUNDABLE_PAYMENT_STATUSES
from app.core.exceptions import InvalidStateError

class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), nullable=True, index=True)
    formation_id = Column(Integer, ForeignKey("formations.id"), nullable=True, index=True)
    type = Column(SQLEnum(PaymentTypeEnum), nullable=False, default=PaymentTypeEnum.ENROLLMENT)
    status = Column(SQLEnum(PaymentStatusEnum), nullable=False, default=PaymentStatusEnum.PENDING, index=True)
    stripe_payment_intent_id = Column(String, unique=True, index=True, nullable=True)
    stripe_checkout_session_id = Column(String, unique=True, index=True, nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    amount_refunded = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="EUR")
    payment_method_type = Column(String, nullable=True)
    description = Column(String, nullable=True)
    failure_reason = Column(String, nullable=True)
    failure_code = Column(String, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    paid_at = Column(DateTime, nullable=True)
    refunded_at = Column(DateTime, nullable=True)
    failed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    customer = relationship("Customer", back_populates="payments")
    enrollment = relationship("Enrollment", back_populates="payments")
    formation = relationship("Formation")

    @property
    def refundable_amount(self) -> Decimal:
        remaining = Decimal(self.amount or 0) - Decimal(self.amount_refunded or 0)
        return max(Decimal("0"), remaining)

    @property
    def amount_in_cents(self) -> int:
        return int((Decimal(self.amount or 0) * 100).quantize(Decimal("1")))

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatusEnum.COMPLETED

    @property
    def can_be_refunded(self) -> bool:
        return self.status in REFUNDABLE_PAYMENT_STATUSES and self.refundable_amount > 0

    def transition_to(self, target: PaymentStatusEnum) -> None:
        if target not in PAYMENT_TRANSITIONS[self.status]:
            raise InvalidStateError(
                f"Payment cannot move from {self.status.value} to {target.value}",
                payment_id=self.id,
            )
        self.status = target
