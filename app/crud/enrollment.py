from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.enrollment import Enrollment
from app.core.constants import EnrollmentStatusEnum
from app.schemas.enrollment import EnrollmentCreate

class CRUDEnrollment(CRUDBase[Enrollment, EnrollmentCreate, EnrollmentCreate]):

    def _query_with_relationships(self, db: Session):
        return self._active(db).options(
            selectinload(Enrollment.customer),
            selectinload(Enrollment.formation),
        )

    def get_live(self, db: Session, customer_id: int, formation_id: int) -> Optional[Enrollment]:
        return (
            self._active(db)
            .filter(Enrollment.customer_id == customer_id)
            .filter(Enrollment.formation_id == formation_id)
            .filter(Enrollment.status != EnrollmentStatusEnum.CANCELLED)
            .first()
        )

    def get_by_customer(self, db: Session, customer_id: int, skip: int = 0, limit: int = 100) -> List[Enrollment]:
        return (
            self._query_with_relationships(db)
            .filter(Enrollment.customer_id == customer_id)
            .order_by(Enrollment.enrolled_at.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


enrollment = CRUDEnrollment(Enrollment)
