import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import uuid
import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

import app.models  # noqa: F401
from app.core.config import settings
from app.core.constants import EnrollmentStatusEnum, PaymentStatusEnum, PricingTierEnum
from app.core.database import Base
from app.core.exceptions import PaymentProviderError, RenderingError
from app.crud.formation import customer as crud_customer, formation as crud_formation, module as crud_module
from app.crud.lesson import lesson as crud_lesson
from app.models.customer import Customer
from app.models.enrollment import Enrollment
from app.models.formation import Formation
from app.models.lesson import Lesson
from app.models.module import Module
from app.models.payment import Payment
from app.schemas.certificate import RenderedCertificate
from app.schemas.formation import CustomerCreate, FormationCreate, LessonCreate, ModuleCreate
from app.services.access import AccessGate
from app.services.certificate import CertificateService
from app.services.enrollment import EnrollmentService
from app.services.payment import PaymentService
from app.services.progress import ProgressTracker
from app.services.webhook import WebhookReconciler
from app.utils import deps as deps_utils
from app.utils.clock import Clock, TokenGenerator

test_db_url = settings.TEST_DATABASE_URL or "sqlite://"

FROZEN_NOW = datetime(2026, 3, 14, 9, 30, 0)


class FrozenClock(Clock):
    def __init__(self, start: datetime = FROZEN_NOW):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class ScriptedTokens(TokenGenerator):
    """Hands out queued values first, then falls back to real random strings."""

    def __init__(self, values: Optional[List[str]] = None):
        self.values = list(values or [])
        self.calls = 0

    def queue(self, *values: str) -> None:
        self.values.extend(values)

    def random_string(self, length: int, alphabet: str = None) -> str:
        self.calls += 1
        if self.values:
            return self.values.pop(0)
        if alphabet is None:
            return super().random_string(length)
        return super().random_string(length, alphabet)


class FakeStripe:
    def __init__(self):
        self.checkouts = []
        self.refunds = []
        self.fail_with: Optional[Exception] = None

    async def create_checkout_session(self, payment, customer, formation):
        if self.fail_with:
            raise self.fail_with
        self.checkouts.append((payment.id, customer.id, formation.id))
        return {"id": f"cs_test_{payment.id}", "url": f"https://checkout.stripe.test/{payment.id}", "payment_intent": None}

    async def create_refund(self, payment, amount, reason=None):
        if self.fail_with:
            raise self.fail_with
        self.refunds.append((payment.id, Decimal(amount), reason))
        return {"id": f"re_test_{len(self.refunds)}", "amount": int(Decimal(amount) * 100), "status": "succeeded"}


class FakeRenderer:
    def __init__(self):
        self.rendered = []
        self.fail = False

    def render(self, certificate):
        if self.fail:
            raise RenderingError("renderer is down")
        self.rendered.append(certificate.certificate_number)
        return RenderedCertificate(path=f"certificates/{certificate.artifact_filename}", size_bytes=2048)


@pytest.fixture(scope="function")
def database_engine():
    if test_db_url.startswith("sqlite"):
        engine = create_engine(test_db_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    else:
        engine = create_engine(test_db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture(scope="function")
def db_session(database_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=database_engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()

@pytest.fixture(scope="function")
def client(db_session):
    import main
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


@pytest.fixture
def clock():
    return FrozenClock()

@pytest.fixture
def tokens():
    return ScriptedTokens()

@pytest.fixture
def fake_stripe():
    return FakeStripe()

@pytest.fixture
def fake_renderer():
    return FakeRenderer()

@pytest.fixture
def enrollments(clock):
    return EnrollmentService(clock=clock)

@pytest.fixture
def tracker(clock, enrollments):
    return ProgressTracker(clock=clock, enrollments=enrollments)

@pytest.fixture
def payments(clock, fake_stripe):
    return PaymentService(clock=clock, provider=fake_stripe)

@pytest.fixture
def reconciler(payments, enrollments):
    return WebhookReconciler(payments=payments, enrollments=enrollments)

@pytest.fixture
def certificates(clock, tokens, fake_renderer):
    return CertificateService(clock=clock, tokens=tokens, renderer=fake_renderer)

@pytest.fixture
def gate():
    return AccessGate()


@pytest.fixture
def customer_factory(db_session):
    def _create(first_name: str = "Ada", last_name: str = "Lovelace", email: Optional[str] = None) -> Customer:
        return crud_customer.create(db_session, obj_in=CustomerCreate(
            first_name=first_name,
            last_name=last_name,
            email=email or f"{uuid.uuid4().hex[:10]}@test.com",
        ))
    return _create

@pytest.fixture
def formation_factory(db_session):
    def _create(
        price: Decimal = Decimal("0"),
        pricing_tier: PricingTierEnum = PricingTierEnum.FREE,
        title: str = "Python for Analysts",
        instructor_name: Optional[str] = "Grace Hopper",
    ) -> Formation:
        return crud_formation.create(db_session, obj_in=FormationCreate(
            title=title,
            slug=f"formation-{uuid.uuid4().hex[:10]}",
            pricing_tier=pricing_tier,
            price=price,
            instructor_name=instructor_name,
        ))
    return _create

@pytest.fixture
def module_factory(db_session):
    def _create(formation: Formation, title: str = "Module", order: int = 0) -> Module:
        return crud_module.create(db_session, obj_in=ModuleCreate(formation_id=formation.id, title=title, order=order))
    return _create

@pytest.fixture
def lesson_factory(db_session):
    def _create(
        formation: Formation,
        module: Optional[Module] = None,
        title: str = "Lesson",
        order: int = 0,
        is_published: bool = True,
        is_preview: bool = False,
    ) -> Lesson:
        return crud_lesson.create(db_session, obj_in=LessonCreate(
            formation_id=formation.id,
            module_id=module.id if module else None,
            title=title,
            order=order,
            is_published=is_published,
            is_preview=is_preview,
        ))
    return _create

@pytest.fixture
def enrollment_factory(db_session, customer_factory, formation_factory, clock):
    def _create(
        formation: Optional[Formation] = None,
        customer: Optional[Customer] = None,
        status: EnrollmentStatusEnum = EnrollmentStatusEnum.ACTIVE,
        amount_paid: Decimal = Decimal("0"),
    ) -> Enrollment:
        enrollment = Enrollment(
            customer_id=(customer or customer_factory()).id,
            formation_id=(formation or formation_factory()).id,
            status=status,
            progress_percentage=0,
            access_count=0,
            amount_paid=amount_paid,
            enrolled_at=clock.now(),
            started_at=clock.now() if status != EnrollmentStatusEnum.PENDING else None,
        )
        db_session.add(enrollment)
        db_session.commit()
        db_session.refresh(enrollment)
        return enrollment
    return _create

@pytest.fixture
def payment_factory(db_session, customer_factory):
    def _create(
        amount: Decimal = Decimal("100.00"),
        status: PaymentStatusEnum = PaymentStatusEnum.PENDING,
        customer: Optional[Customer] = None,
        enrollment: Optional[Enrollment] = None,
        intent_id: Optional[str] = None,
        session_id: Optional[str] = None,
        amount_refunded: Decimal = Decimal("0"),
    ) -> Payment:
        if customer is None:
            customer = enrollment.customer if enrollment else customer_factory()
        payment = Payment(
            customer_id=customer.id,
            enrollment_id=enrollment.id if enrollment else None,
            formation_id=enrollment.formation_id if enrollment else None,
            status=status,
            amount=amount,
            amount_refunded=amount_refunded,
            currency="EUR",
            stripe_payment_intent_id=intent_id,
            stripe_checkout_session_id=session_id,
        )
        db_session.add(payment)
        db_session.commit()
        db_session.refresh(payment)
        return payment
    return _create

@pytest.fixture
def provider_error():
    return PaymentProviderError("Stripe error: card_declined")
