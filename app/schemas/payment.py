from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal
from app.core.constants import PaymentStatusEnum, PaymentTypeEnum


class PaymentCreate(BaseModel):
    customer_id: int
    formation_id: Optional[int] = None
    enrollment_id: Optional[int] = None
    type: PaymentTypeEnum = PaymentTypeEnum.ENROLLMENT
    amount: Decimal = Field(..., ge=0)
    currency: str = "EUR"
    description: Optional[str] = None


class CheckoutCreate(BaseModel):
    customer_id: int
    formation_id: int
    enrollment_id: Optional[int] = None


class RefundCreate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0)
    reason: Optional[str] = None


class Payment(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    customer_id: int
    enrollment_id: Optional[int] = None
    formation_id: Optional[int] = None
    type: PaymentTypeEnum
    status: PaymentStatusEnum
    stripe_payment_intent_id: Optional[str] = None
    stripe_checkout_session_id: Optional[str] = None
    amount: Decimal
    amount_refunded: Decimal
    currency: str
    payment_method_type: Optional[str] = None
    failure_reason: Optional[str] = None
    failure_code: Optional[str] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    failed_at: Optional[datetime] = None


class CheckoutSession(BaseModel):
    payment: Payment
    checkout_url: str


class WebhookAck(BaseModel):
    received: bool = True
    event_id: Optional[str] = None
    event_type: str
    outcome: str
