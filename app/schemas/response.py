from pydantic import BaseModel, Field
from typing import Generic, TypeVar, Optional, Any, Dict

DataType = TypeVar("DataType")

class APIResponse(BaseModel, Generic[DataType]):
    """Envelope returned by every lifecycle route."""
    message: str = Field(..., description="Short summary of what the operation did.")
    data: Optional[DataType] = Field(None, description="Enrollment, payment, progress or certificate payload.")

class ErrorDetail(BaseModel):
    code: str = Field(..., description="Machine code such as CONFLICT, PAYMENT_REQUIRED or NOT_REFUNDABLE")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Identifiers of the records involved")

class ErrorResponse(BaseModel):
    error: ErrorDetail
    timestamp: str = Field(..., description="ISO 8601 timestamp of error")
    path: str = Field(..., description="Request URL that failed")
    request_id: Optional[str] = Field(None, description="Echoed in the X-Request-ID response header")
