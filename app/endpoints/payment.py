from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.payment import Payment, PaymentCreate, CheckoutCreate, CheckoutSession, RefundCreate
from app.utils import deps
from app.crud.payment import payment as crud_payment
from app.services.enrollment import enrollment_service
from app.services.payment import payment_service

router = APIRouter()


@router.post("/", response_model=APIResponse[Payment], status_code=201)
def create_payment(
    *,
    db: Session = Depends(deps.get_db),
    payment_in: PaymentCreate,
):
    payment = payment_service.create(db, payment_in)
    return APIResponse(message="Payment created", data=payment)


@router.post("/checkout", response_model=APIResponse[CheckoutSession], status_code=201)
async def create_checkout(
    *,
    db: Session = Depends(deps.get_db),
    checkout_in: CheckoutCreate,
):
    enrollment = enrollment_service.get(db, checkout_in.enrollment_id) if checkout_in.enrollment_id else None
    payment, url = await payment_service.start_checkout(
        db, customer_id=checkout_in.customer_id, formation_id=checkout_in.formation_id, enrollment=enrollment
    )
    return APIResponse(message="Checkout session created", data=CheckoutSession(payment=payment, checkout_url=url))


@router.get("/", response_model=APIResponse[List[Payment]])
def list_customer_payments(
    *,
    db: Session = Depends(deps.get_db),
    customer_id: int = Query(...),
    skip: int = 0,
    limit: int = 100,
):
    payments = crud_payment.get_by_customer(db, customer_id=customer_id, skip=skip, limit=limit)
    return APIResponse(message="Payments retrieved", data=payments)


@router.get("/{payment_id}", response_model=APIResponse[Payment])
def get_payment(*, db: Session = Depends(deps.get_db), payment_id: int):
    payment = payment_service.get(db, payment_id)
    return APIResponse(message="Payment retrieved", data=payment)


@router.post("/{payment_id}/refund", response_model=APIResponse[Payment])
async def refund_payment(
    *,
    db: Session = Depends(deps.get_db),
    payment_id: int,
    refund_in: RefundCreate,
):
    payment = payment_service.get(db, payment_id)
    payment = await payment_service.refund(db, payment, amount=refund_in.amount, reason=refund_in.reason)
    return APIResponse(message="Payment refunded", data=payment)
