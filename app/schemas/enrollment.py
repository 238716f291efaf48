from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal
from app.core.constants import EnrollmentStatusEnum


class EnrollmentCreate(BaseModel):
    customer_id: int
    formation_id: int
    amount_paid: Decimal = Decimal("0")
    payment_reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class Enrollment(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    customer_id: int
    formation_id: int
    status: EnrollmentStatusEnum
    progress_percentage: int
    enrolled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    access_count: int
    amount_paid: Decimal
    payment_reference: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="meta")


class LessonAccess(BaseModel):
    accessible: bool
    reason: Optional[str] = None
    blocked_by: Optional[str] = None
