import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum
from app.core.exceptions import ConflictError, InvalidStateError, NotFoundError, PaymentRequiredError
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.formation import formation as crud_formation, customer as crud_customer
from app.crud.lesson import lesson as crud_lesson
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.models.enrollment import Enrollment
from app.schemas.enrollment import EnrollmentCreate
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class EnrollmentService:

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock

    def _finish(self, db: Session, enrollment: Enrollment, commit: bool) -> Enrollment:
        db.add(enrollment)
        if commit:
            db.commit()
            db.refresh(enrollment)
        else:
            db.flush()
        return enrollment

    def get(self, db: Session, enrollment_id: int) -> Enrollment:
        enrollment = crud_enrollment.get(db, id=enrollment_id)
        if not enrollment:
            raise NotFoundError("Enrollment not found", enrollment_id=enrollment_id)
        return enrollment

    def get_for_customer(self, db: Session, customer_id: int, formation_id: int) -> Optional[Enrollment]:
        return crud_enrollment.get_live(db, customer_id=customer_id, formation_id=formation_id)

    def create(self, db: Session, enrollment_in: EnrollmentCreate) -> Enrollment:
        if not crud_customer.get(db, id=enrollment_in.customer_id):
            raise NotFoundError("Customer not found", customer_id=enrollment_in.customer_id)
        if not crud_formation.get(db, id=enrollment_in.formation_id):
            raise NotFoundError("Formation not found", formation_id=enrollment_in.formation_id)

        if self.get_for_customer(db, enrollment_in.customer_id, enrollment_in.formation_id):
            raise ConflictError(customer_id=enrollment_in.customer_id, formation_id=enrollment_in.formation_id)

        enrollment = Enrollment(
            customer_id=enrollment_in.customer_id,
            formation_id=enrollment_in.formation_id,
            status=EnrollmentStatusEnum.PENDING,
            progress_percentage=0,
            access_count=0,
            amount_paid=enrollment_in.amount_paid or Decimal("0"),
            payment_reference=enrollment_in.payment_reference,
            meta=enrollment_in.metadata,
            enrolled_at=self.clock.now(),
        )
        db.add(enrollment)
        try:
            # The partial unique index settles concurrent creates for the same pair.
            db.flush()
        except IntegrityError:
            db.rollback()
            raise ConflictError(customer_id=enrollment_in.customer_id, formation_id=enrollment_in.formation_id)

        crud_formation.increment_enrollment_count(db, formation_id=enrollment_in.formation_id)
        db.commit()
        db.refresh(enrollment)
        logger.info(
            "Enrollment %s created for customer %s in formation %s",
            enrollment.id, enrollment.customer_id, enrollment.formation_id,
        )
        return enrollment

    def validate(self, db: Session, enrollment: Enrollment) -> Enrollment:
        if not enrollment.is_pending:
            raise InvalidStateError(
                f"Only pending enrollments can be validated (current: {enrollment.status.value})",
                enrollment_id=enrollment.id,
            )

        formation = enrollment.formation
        if not (formation.is_free or Decimal(enrollment.amount_paid or 0) > 0):
            raise PaymentRequiredError(enrollment_id=enrollment.id)

        enrollment.transition_to(EnrollmentStatusEnum.ACTIVE)
        if enrollment.started_at is None:
            enrollment.started_at = self.clock.now()
        logger.info("Enrollment %s activated", enrollment.id)
        return self._finish(db, enrollment, commit=True)

    def record_access(self, db: Session, enrollment: Enrollment, commit: bool = True) -> Enrollment:
        enrollment.last_accessed_at = self.clock.now()
        enrollment.access_count = (enrollment.access_count or 0) + 1
        return self._finish(db, enrollment, commit)

    def compute_progress(self, db: Session, enrollment: Enrollment) -> int:
        total = crud_lesson.count_by_formation(db, formation_id=enrollment.formation_id)
        if total == 0:
            return 0
        completed = crud_lesson_progress.count_completed_in_formation(
            db, enrollment_id=enrollment.id, formation_id=enrollment.formation_id
        )
        return min(100, round(completed / total * 100))

    def refresh_progress(self, db: Session, enrollment: Enrollment, commit: bool = True) -> Enrollment:
        if enrollment.is_completed:
            return enrollment

        progress = self.compute_progress(db, enrollment)
        enrollment.progress_percentage = progress

        if progress >= 100 and enrollment.can_transition_to(EnrollmentStatusEnum.COMPLETED):
            enrollment.transition_to(EnrollmentStatusEnum.COMPLETED)
            enrollment.completed_at = self.clock.now()
            enrollment.progress_percentage = 100
            logger.info("Enrollment %s completed", enrollment.id)

        return self._finish(db, enrollment, commit)

    def record_payment(
        self,
        db: Session,
        enrollment: Enrollment,
        amount: Decimal,
        reference: Optional[str] = None,
        commit: bool = True,
    ) -> Enrollment:
        """Store the amount collected for a pending enrollment. Never activates it."""
        if not enrollment.is_pending:
            return enrollment
        enrollment.amount_paid = amount
        if reference and not enrollment.payment_reference:
            enrollment.payment_reference = reference
        return self._finish(db, enrollment, commit)

    def cancel(self, db: Session, enrollment: Enrollment) -> Enrollment:
        enrollment.transition_to(EnrollmentStatusEnum.CANCELLED)
        enrollment.cancelled_at = self.clock.now()
        logger.info("Enrollment %s cancelled", enrollment.id)
        return self._finish(db, enrollment, commit=True)


enrollment_service = EnrollmentService()
