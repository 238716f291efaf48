from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum, PricingTierEnum


def test_create_enrollment_and_reject_duplicate(client: TestClient, customer_factory, formation_factory):
    customer = customer_factory()
    formation = formation_factory()
    body = {"customer_id": customer.id, "formation_id": formation.id, "metadata": {"source": "newsletter"}}

    response = client.post("/enrollments/", json=body)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "pending"
    assert data["progress_percentage"] == 0
    assert data["metadata"] == {"source": "newsletter"}

    duplicate = client.post("/enrollments/", json=body)
    assert duplicate.status_code == 409
    error = duplicate.json()["error"]
    assert error["code"] == "CONFLICT"
    assert error["details"] == {"customer_id": customer.id, "formation_id": formation.id}


def test_create_enrollment_for_unknown_formation(client: TestClient, customer_factory):
    response = client.post("/enrollments/", json={"customer_id": customer_factory().id, "formation_id": 9999})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_validate_paid_formation_requires_payment(client: TestClient, enrollment_factory, formation_factory):
    formation = formation_factory(price=Decimal("49.00"), pricing_tier=PricingTierEnum.BASIC)
    enrollment = enrollment_factory(formation=formation, status=EnrollmentStatusEnum.PENDING)

    response = client.post(f"/enrollments/{enrollment.id}/validate")

    assert response.status_code == 402
    assert response.json()["error"]["code"] == "PAYMENT_REQUIRED"


def test_validate_free_formation_activates(client: TestClient, enrollment_factory):
    enrollment = enrollment_factory(status=EnrollmentStatusEnum.PENDING)

    response = client.post(f"/enrollments/{enrollment.id}/validate")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "active"
    assert data["started_at"] is not None


def test_cancel_twice_is_invalid_state(client: TestClient, enrollment_factory):
    enrollment = enrollment_factory()

    assert client.post(f"/enrollments/{enrollment.id}/cancel").json()["data"]["status"] == "cancelled"

    again = client.post(f"/enrollments/{enrollment.id}/cancel")
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_STATE"


def test_list_and_get_enrollments(client: TestClient, customer_factory, enrollment_factory):
    customer = customer_factory()
    first = enrollment_factory(customer=customer)
    enrollment_factory(customer=customer)
    enrollment_factory()

    listed = client.get("/enrollments/", params={"customer_id": customer.id})
    assert listed.status_code == 200
    assert len(listed.json()["data"]) == 2

    assert client.get(f"/enrollments/{first.id}").json()["data"]["id"] == first.id
    assert client.get("/enrollments/424242").status_code == 404


def test_lesson_access_endpoint(client: TestClient, db_session: Session, enrollment_factory, formation_factory, module_factory, lesson_factory):
    formation = formation_factory()
    first_module = module_factory(formation, title="Setup", order=1)
    second_module = module_factory(formation, title="Deploy", order=2)
    lesson_factory(formation, first_module, order=1)
    locked = lesson_factory(formation, second_module, order=1)
    enrollment = enrollment_factory(formation=formation)

    response = client.get(f"/enrollments/{enrollment.id}/lessons/{locked.id}/access")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "accessible": False,
        "reason": "Previous modules must be completed first",
        "blocked_by": "Setup",
    }
