import pytest
from decimal import Decimal
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, PaymentStatusEnum, PricingTierEnum
from app.core.exceptions import NotRefundableError
from app.models.payment import Payment


def _event(event_type: str, obj: dict, event_id: str = "evt_1") -> dict:
    return {"id": event_id, "type": event_type, "data": {"object": obj}}


def _succeeded(intent_id: str, **extra) -> dict:
    return _event("payment_intent.succeeded", {"id": intent_id, "payment_method_types": ["card"], **extra})


@pytest.mark.asyncio
async def test_duplicate_success_books_payment_once(db_session: Session, reconciler, payment_factory, clock):
    payment = payment_factory(intent_id="pi_dup")

    first = await reconciler.handle_event(db_session, _succeeded("pi_dup"))
    paid_at = clock.now()
    clock.advance(seconds=30)
    second = await reconciler.handle_event(db_session, _succeeded("pi_dup", payment_method_types=["sepa_debit"]))

    assert first.outcome == "processed"
    assert second.outcome == "duplicate"
    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.COMPLETED
    assert payment.paid_at == paid_at
    assert payment.payment_method_type == "card"


@pytest.mark.asyncio
async def test_success_records_amount_on_pending_enrollment_without_activating(
    db_session: Session, reconciler, payment_factory, enrollment_factory, formation_factory
):
    formation = formation_factory(price=Decimal("100.00"), pricing_tier=PricingTierEnum.PREMIUM)
    enrollment = enrollment_factory(formation=formation, status=EnrollmentStatusEnum.PENDING)
    payment_factory(enrollment=enrollment, intent_id="pi_enrol")

    ack = await reconciler.handle_event(db_session, _succeeded("pi_enrol"))

    assert ack.outcome == "processed"
    db_session.refresh(enrollment)
    assert enrollment.amount_paid == Decimal("100.00")
    assert enrollment.payment_reference == "pi_enrol"
    assert enrollment.status == EnrollmentStatusEnum.PENDING


@pytest.mark.asyncio
async def test_unknown_intent_is_acknowledged(db_session: Session, reconciler):
    ack = await reconciler.handle_event(db_session, _succeeded("pi_missing"))
    assert ack.outcome == "not_found"
    assert ack.event_id == "evt_1"
    assert ack.event_type == "payment_intent.succeeded"


@pytest.mark.asyncio
async def test_intent_found_through_metadata_before_checkout_event(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(session_id="cs_early")

    ack = await reconciler.handle_event(db_session, _succeeded("pi_early", metadata={"payment_id": str(payment.id)}))
    assert ack.outcome == "processed"

    late = await reconciler.handle_event(
        db_session, _event("checkout.session.completed", {"id": "cs_early", "payment_intent": "pi_early"})
    )
    assert late.outcome == "duplicate"

    db_session.refresh(payment)
    assert payment.stripe_payment_intent_id == "pi_early"
    assert payment.status == PaymentStatusEnum.COMPLETED


@pytest.mark.asyncio
async def test_checkout_completed_backfills_intent_only(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(session_id="cs_123")

    ack = await reconciler.handle_event(
        db_session, _event("checkout.session.completed", {"id": "cs_123", "payment_intent": "pi_123"})
    )

    assert ack.outcome == "processed"
    db_session.refresh(payment)
    assert payment.stripe_payment_intent_id == "pi_123"
    assert payment.status == PaymentStatusEnum.PENDING


@pytest.mark.asyncio
async def test_failure_event(db_session: Session, reconciler, payment_factory, clock):
    payment = payment_factory(intent_id="pi_fail")
    event = _event("payment_intent.payment_failed", {
        "id": "pi_fail",
        "last_payment_error": {"message": "Your card has insufficient funds.", "code": "card_declined"},
    })

    assert (await reconciler.handle_event(db_session, event)).outcome == "processed"
    assert (await reconciler.handle_event(db_session, event)).outcome == "duplicate"

    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.FAILED
    assert payment.failure_reason == "Your card has insufficient funds."
    assert payment.failure_code == "card_declined"
    assert payment.failed_at == clock.now()


@pytest.mark.asyncio
async def test_failure_after_success_is_stale(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_late_fail", status=PaymentStatusEnum.COMPLETED)

    ack = await reconciler.handle_event(db_session, _event("payment_intent.payment_failed", {"id": "pi_late_fail"}))

    assert ack.outcome == "stale"
    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.COMPLETED


@pytest.mark.asyncio
async def test_capturable_moves_pending_to_processing(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_cap")
    event = _event("payment_intent.amount_capturable_updated", {"id": "pi_cap"})

    assert (await reconciler.handle_event(db_session, event)).outcome == "processed"
    assert (await reconciler.handle_event(db_session, event)).outcome == "duplicate"
    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.PROCESSING

    assert (await reconciler.handle_event(db_session, _succeeded("pi_cap"))).outcome == "processed"
    assert (await reconciler.handle_event(db_session, event)).outcome == "stale"


@pytest.mark.asyncio
async def test_charge_refunded_applies_only_the_delta(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_ref", status=PaymentStatusEnum.COMPLETED)
    partial = _event("charge.refunded", {"id": "ch_1", "payment_intent": "pi_ref", "amount_refunded": 3000})

    assert (await reconciler.handle_event(db_session, partial)).outcome == "processed"
    assert (await reconciler.handle_event(db_session, partial)).outcome == "duplicate"
    db_session.refresh(payment)
    assert payment.amount_refunded == Decimal("30.00")
    assert payment.status == PaymentStatusEnum.PARTIALLY_REFUNDED

    full = _event("charge.refunded", {"id": "ch_1", "payment_intent": "pi_ref", "amount_refunded": 10000}, event_id="evt_2")
    assert (await reconciler.handle_event(db_session, full)).outcome == "processed"
    assert (await reconciler.handle_event(db_session, full)).outcome == "duplicate"
    db_session.refresh(payment)
    assert payment.amount_refunded == Decimal("100.00")
    assert payment.status == PaymentStatusEnum.REFUNDED


@pytest.mark.asyncio
async def test_refund_over_amount_is_clamped(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_over", status=PaymentStatusEnum.COMPLETED)

    await reconciler.handle_event(
        db_session, _event("charge.refunded", {"payment_intent": "pi_over", "amount_refunded": 25000})
    )

    db_session.refresh(payment)
    assert payment.amount_refunded == Decimal("100.00")
    assert payment.status == PaymentStatusEnum.REFUNDED


@pytest.mark.asyncio
async def test_refund_before_success_is_rejected_for_retry(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_ooo")

    with pytest.raises(NotRefundableError):
        await reconciler.handle_event(
            db_session, _event("charge.refunded", {"payment_intent": "pi_ooo", "amount_refunded": 10000})
        )
    db_session.rollback()

    await reconciler.handle_event(db_session, _succeeded("pi_ooo"))
    ack = await reconciler.handle_event(
        db_session, _event("charge.refunded", {"payment_intent": "pi_ooo", "amount_refunded": 10000})
    )
    assert ack.outcome == "processed"
    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.REFUNDED


@pytest.mark.asyncio
async def test_refund_updates_and_unknown_types_are_ignored(db_session: Session, reconciler):
    updated = await reconciler.handle_event(
        db_session, _event("charge.refund.updated", {"id": "re_1", "payment_intent": "pi_x", "status": "succeeded"})
    )
    unknown = await reconciler.handle_event(db_session, _event("customer.created", {"id": "cus_1"}))

    assert updated.outcome == "ignored"
    assert unknown.outcome == "ignored"
    assert db_session.query(Payment).count() == 0


@pytest.mark.asyncio
async def test_refund_for_failed_payment_is_stale(db_session: Session, reconciler, payment_factory):
    payment = payment_factory(intent_id="pi_failed", status=PaymentStatusEnum.FAILED)

    ack = await reconciler.handle_event(
        db_session, _event("charge.refunded", {"payment_intent": "pi_failed", "amount_refunded": 1000})
    )

    assert ack.outcome == "stale"
    db_session.refresh(payment)
    assert payment.status == PaymentStatusEnum.FAILED
    assert payment.amount_refunded == Decimal("0")


@pytest.mark.asyncio
async def test_refund_for_processing_payment_is_rejected_for_retry(db_session: Session, reconciler, payment_factory):
    payment_factory(intent_id="pi_processing", status=PaymentStatusEnum.PROCESSING)

    with pytest.raises(NotRefundableError):
        await reconciler.handle_event(
            db_session, _event("charge.refunded", {"payment_intent": "pi_processing", "amount_refunded": 1000})
        )
