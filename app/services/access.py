from typing import Set

from sqlalchemy.orm import Session

from app.core.constants import EnrollmentStatusEnum
from app.crud.formation import module as crud_module
from app.crud.lesson import lesson as crud_lesson
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson
from app.models.module import Module
from app.schemas.enrollment import LessonAccess

INACTIVE_REASONS = {
    EnrollmentStatusEnum.PENDING: "Enrollment is pending activation",
    EnrollmentStatusEnum.CANCELLED: "Enrollment has been cancelled",
    EnrollmentStatusEnum.SUSPENDED: "Enrollment has been suspended",
}


class AccessGate:
    """Read-only policy deciding whether an enrollment may open a lesson.

    Modules are unlocked in order: a lesson is reachable once every lesson of
    every earlier module is completed. Preview lessons get no special treatment here.
    """

    def _is_module_completed(self, db: Session, module: Module, completed_ids: Set[int]) -> bool:
        lesson_ids = crud_lesson.get_ids_by_module(db, module_id=module.id)
        return all(lesson_id in completed_ids for lesson_id in lesson_ids)

    def can_access_lesson(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> LessonAccess:
        if not enrollment.is_active:
            reason = INACTIVE_REASONS.get(enrollment.status, "Enrollment is not active")
            return LessonAccess(accessible=False, reason=reason)

        if lesson.formation_id != enrollment.formation_id:
            return LessonAccess(accessible=False, reason="Lesson does not belong to the enrolled formation")

        if not lesson.is_published:
            return LessonAccess(accessible=False, reason="Lesson is not published")

        if lesson.module_id is None:
            return LessonAccess(accessible=False, reason="Lesson is not assigned to a module")

        modules = crud_module.get_ordered_by_formation(db, formation_id=enrollment.formation_id)
        position = next((i for i, m in enumerate(modules) if m.id == lesson.module_id), None)
        if position is None:
            return LessonAccess(accessible=False, reason="Module not found in formation")

        if position > 0:
            completed_ids = set(crud_lesson_progress.get_completed_lesson_ids(db, enrollment_id=enrollment.id))
            for previous in modules[:position]:
                if not self._is_module_completed(db, previous, completed_ids):
                    return LessonAccess(
                        accessible=False,
                        reason="Previous modules must be completed first",
                        blocked_by=previous.title,
                    )

        return LessonAccess(accessible=True)


access_gate = AccessGate()
