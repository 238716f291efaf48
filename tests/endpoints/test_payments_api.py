from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from app.core.constants import PaymentStatusEnum, PricingTierEnum
from app.services.payment import payment_service


@pytest.fixture
def stripe_stub(monkeypatch, fake_stripe):
    monkeypatch.setattr(payment_service, "provider", fake_stripe)
    return fake_stripe


def test_create_and_get_payment(client: TestClient, customer_factory):
    customer = customer_factory()

    created = client.post("/payments/", json={"customer_id": customer.id, "amount": "25.50"})
    assert created.status_code == 201
    payment = created.json()["data"]
    assert payment["status"] == "pending"
    assert Decimal(payment["amount"]) == Decimal("25.50")

    fetched = client.get(f"/payments/{payment['id']}")
    assert fetched.json()["data"]["id"] == payment["id"]
    assert len(client.get("/payments/", params={"customer_id": customer.id}).json()["data"]) == 1
    assert client.get("/payments/999999").status_code == 404


def test_checkout_returns_redirect_url(client: TestClient, customer_factory, formation_factory, stripe_stub):
    customer = customer_factory()
    formation = formation_factory(price=Decimal("120.00"), pricing_tier=PricingTierEnum.PREMIUM)

    response = client.post("/payments/checkout", json={"customer_id": customer.id, "formation_id": formation.id})

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["checkout_url"] == f"https://checkout.stripe.test/{data['payment']['id']}"
    assert data["payment"]["stripe_checkout_session_id"] == f"cs_test_{data['payment']['id']}"


def test_refund_pending_payment_is_refused(client: TestClient, payment_factory, stripe_stub):
    payment = payment_factory()

    response = client.post(f"/payments/{payment.id}/refund", json={})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_REFUNDABLE"
    assert stripe_stub.refunds == []


def test_partial_refund(client: TestClient, payment_factory, stripe_stub):
    payment = payment_factory(status=PaymentStatusEnum.COMPLETED, intent_id="pi_api_refund")

    response = client.post(f"/payments/{payment.id}/refund", json={"amount": "30"})

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "partially_refunded"
    assert Decimal(response.json()["data"]["amount_refunded"]) == Decimal("30.00")
