from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import CertificateStatusEnum, CERTIFICATE_TRANSITIONS
from app.core.exceptions import InvalidStateError

class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    formation_id = Column(Integer, ForeignKey("formations.id"), nullable=False, index=True)
    certificate_number = Column(String, unique=True, index=True, nullable=False)
    verification_code = Column(String, unique=True, index=True, nullable=False)
    status = Column(SQLEnum(CertificateStatusEnum), nullable=False, default=CertificateStatusEnum.ACTIVE, index=True)
    issued_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)
    revoked_reason = Column(String, nullable=True)

    # Snapshot taken at issuance; later edits to customer/formation do not alter it.
    student_name = Column(String, nullable=False)
    formation_title = Column(String, nullable=False)
    instructor_name = Column(String, nullable=True)
    completion_date = Column(Date, nullable=False)

    artifact_path = Column(String, nullable=True)
    artifact_size_bytes = Column(Integer, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    enrollment = relationship("Enrollment", back_populates="certificates")
    customer = relationship("Customer", back_populates="certificates")
    formation = relationship("Formation")

    @property
    def is_revoked(self) -> bool:
        return self.status == CertificateStatusEnum.REVOKED

    def is_expired(self, now: datetime) -> bool:
        if self.status == CertificateStatusEnum.EXPIRED:
            return True
        return self.expires_at is not None and self.expires_at < now

    def is_valid(self, now: datetime) -> bool:
        return self.status == CertificateStatusEnum.ACTIVE and not self.is_expired(now)

    @property
    def artifact_filename(self) -> str:
        return f"certificate-{self.certificate_number}.html"

    def transition_to(self, target: CertificateStatusEnum) -> None:
        if target not in CERTIFICATE_TRANSITIONS[self.status]:
            raise InvalidStateError(
                f"Certificate cannot move from {self.status.value} to {target.value}",
                certificate_id=self.id,
            )
        self.status = target
