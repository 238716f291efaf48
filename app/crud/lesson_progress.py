from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.core.constants import LessonProgressStatusEnum
from app.schemas.lesson_progress import LessonProgressUpdate

class CRUDLessonProgress(CRUDBase[LessonProgress, LessonProgressUpdate, LessonProgressUpdate]):

    def get_by_enrollment_and_lesson(self, db: Session, enrollment_id: int, lesson_id: int) -> Optional[LessonProgress]:
        return (
            self._active(db)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .filter(LessonProgress.lesson_id == lesson_id)
            .first()
        )

    def get_all_by_enrollment(self, db: Session, enrollment_id: int) -> List[LessonProgress]:
        return (
            self._active(db)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .order_by(LessonProgress.lesson_id)
            .all()
        )

    def get_completed_lesson_ids(self, db: Session, enrollment_id: int) -> List[int]:
        rows = (
            db.query(LessonProgress.lesson_id)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .filter(LessonProgress.deleted_at.is_(None))
            .filter(LessonProgress.status == LessonProgressStatusEnum.COMPLETED)
            .all()
        )
        return [row.lesson_id for row in rows]

    def count_completed_in_formation(self, db: Session, enrollment_id: int, formation_id: int) -> int:
        """Completed rows whose lesson is still part of the formation."""
        return (
            db.query(LessonProgress)
            .join(Lesson, Lesson.id == LessonProgress.lesson_id)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .filter(LessonProgress.deleted_at.is_(None))
            .filter(LessonProgress.status == LessonProgressStatusEnum.COMPLETED)
            .filter(Lesson.formation_id == formation_id)
            .filter(Lesson.deleted_at.is_(None))
            .count()
        )


lesson_progress = CRUDLessonProgress(LessonProgress)
