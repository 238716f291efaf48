import hashlib
import hmac
import json
import time

import pytest
from stripe import SignatureVerificationError

from app.services.stripe import StripePaymentService

SECRET = "whsec_test_secret"


def _sign(payload: str, secret: str = SECRET, timestamp: int = None) -> str:
    timestamp = timestamp or int(time.time())
    digest = hmac.new(secret.encode("utf-8"), f"{timestamp}.{payload}".encode("utf-8"), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def payload():
    return json.dumps({
        "id": "evt_test_1",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {"object": {"id": "pi_test_1", "object": "payment_intent"}},
    })


def test_verify_webhook_signature(payload):
    service = StripePaymentService(webhook_secret=SECRET)

    assert service.verify_webhook_signature(payload, _sign(payload)) is True
    assert service.verify_webhook_signature(payload.encode("utf-8"), _sign(payload)) is True
    assert service.verify_webhook_signature(payload, _sign(payload, secret="whsec_other")) is False
    assert service.verify_webhook_signature(payload, "") is False


def test_construct_webhook_event(payload):
    service = StripePaymentService(webhook_secret=SECRET)

    event = service.construct_webhook_event(payload, _sign(payload))
    assert event["id"] == "evt_test_1"
    assert event["type"] == "payment_intent.succeeded"

    with pytest.raises(SignatureVerificationError):
        service.construct_webhook_event(payload, _sign(payload, secret="whsec_other"))
