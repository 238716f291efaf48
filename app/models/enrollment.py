from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, JSON, Index, Enum as SQLEnum, func, text
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.constants import EnrollmentStatusEnum, ENROLLMENT_TRANSITIONS
from app.core.exceptions import InvalidStateError

class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (
        # At most one live enrollment per (customer, formation).
        Index(
            "uq_enrollments_live_customer_formation",
            "customer_id",
            "formation_id",
            unique=True,
            sqlite_where=text("status != 'CANCELLED' AND deleted_at IS NULL"),
            postgresql_where=text("status != 'CANCELLED' AND deleted_at IS NULL"),
        ),
        Index("ix_enrollments_customer_status", "customer_id", "status"),
        Index("ix_enrollments_formation_status", "formation_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    formation_id = Column(Integer, ForeignKey("formations.id"), nullable=False)
    status = Column(SQLEnum(EnrollmentStatusEnum), nullable=False, default=EnrollmentStatusEnum.PENDING)
    progress_percentage = Column(Integer, nullable=False, default=0)
    enrolled_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    last_accessed_at = Column(DateTime, nullable=True)
    access_count = Column(Integer, nullable=False, default=0)
    amount_paid = Column(Numeric(10, 2), nullable=False, default=0)
    payment_reference = Column(String, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    customer = relationship("Customer", back_populates="enrollments")
    formation = relationship("Formation", back_populates="enrollments")
    lesson_progress = relationship("LessonProgress", back_populates="enrollment", cascade="all, delete-orphan")
    certificates = relationship("Certificate", back_populates="enrollment")
    payments = relationship("Payment", back_populates="enrollment")

    @property
    def is_pending(self) -> bool:
        return self.status == EnrollmentStatusEnum.PENDING

    @property
    def is_active(self) -> bool:
        return self.status == EnrollmentStatusEnum.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == EnrollmentStatusEnum.COMPLETED

    @property
    def is_terminal(self) -> bool:
        return not ENROLLMENT_TRANSITIONS[self.status]

    def can_transition_to(self, target: EnrollmentStatusEnum) -> bool:
        return target in ENROLLMENT_TRANSITIONS[self.status]

    def transition_to(self, target: EnrollmentStatusEnum) -> None:
        if not self.can_transition_to(target):
            raise InvalidStateError(
                f"Enrollment cannot move from {self.status.value} to {target.value}",
                enrollment_id=self.id,
            )
        self.status = target
