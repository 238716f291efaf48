from typing import Any, Dict, Optional
from fastapi import status


class EngineError(Exception):
    """Base class for lifecycle-engine failures.

    Carries the HTTP status and machine code the API layer reports, so the same
    exception can be raised from a direct service call or surface through a route.
    """
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "ENGINE_ERROR"
    default_detail: str = "Operation failed"

    def __init__(self, detail: Optional[str] = None, **context: Any):
        self.detail = detail or self.default_detail
        self.context: Dict[str, Any] = context
        super().__init__(self.detail)


class ConflictError(EngineError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_detail = "Customer is already enrolled in this formation"


class InvalidStateError(EngineError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_STATE"
    default_detail = "Operation is not valid for the current status"


class PaymentRequiredError(EngineError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "PAYMENT_REQUIRED"
    default_detail = "Enrollment cannot be activated: payment required"


class NotEligibleError(EngineError):
    status_code = 422
    code = "NOT_ELIGIBLE"
    default_detail = "Cannot generate certificate: enrollment is not completed"


class AlreadyRevokedError(EngineError):
    status_code = status.HTTP_409_CONFLICT
    code = "ALREADY_REVOKED"
    default_detail = "Certificate is already revoked"


class NotRefundableError(EngineError):
    status_code = status.HTTP_409_CONFLICT
    code = "NOT_REFUNDABLE"
    default_detail = "Payment cannot be refunded"


class CrossCourseReferenceError(EngineError):
    status_code = 422
    code = "CROSS_COURSE_REFERENCE"
    default_detail = "Lesson does not belong to the enrolled formation"


class NotFoundError(EngineError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_detail = "Resource not found"


class InvalidInputError(EngineError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_INPUT"
    default_detail = "Invalid input"


class PaymentProviderError(EngineError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "PAYMENT_PROVIDER_ERROR"
    default_detail = "Payment provider request failed"


class RenderingError(EngineError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "RENDERING_ERROR"
    default_detail = "Certificate rendering failed"
