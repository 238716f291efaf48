from pydantic import BaseModel, ConfigDict
from typing import Optional, NamedTuple
from datetime import datetime, date
from app.core.constants import CertificateStatusEnum


class RenderedCertificate(NamedTuple):
    path: str
    size_bytes: int


class CertificateRevoke(BaseModel):
    reason: Optional[str] = None


class Certificate(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrollment_id: int
    customer_id: int
    formation_id: int
    certificate_number: str
    verification_code: str
    status: CertificateStatusEnum
    issued_at: datetime
    expires_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_reason: Optional[str] = None
    student_name: str
    formation_title: str
    instructor_name: Optional[str] = None
    completion_date: date
    artifact_path: Optional[str] = None
    artifact_size_bytes: Optional[int] = None


class CertificateVerification(BaseModel):
    valid: bool
    reason: Optional[str] = None
    certificate: Optional[Certificate] = None
