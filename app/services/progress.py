import logging
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.constants import LessonProgressStatusEnum
from app.core.exceptions import CrossCourseReferenceError, InvalidInputError
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.schemas.lesson_progress import LessonNotes
from app.services.enrollment import EnrollmentService, enrollment_service
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Per-lesson progress for an enrollment. Rows are created on first touch."""

    def __init__(self, clock: Clock = system_clock, enrollments: EnrollmentService = enrollment_service):
        self.clock = clock
        self.enrollments = enrollments

    def _ensure_membership(self, enrollment: Enrollment, lesson: Lesson) -> None:
        if lesson.formation_id != enrollment.formation_id:
            raise CrossCourseReferenceError(enrollment_id=enrollment.id, lesson_id=lesson.id)

    def _get_or_create(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> Tuple[LessonProgress, bool]:
        self._ensure_membership(enrollment, lesson)
        progress = crud_lesson_progress.get_by_enrollment_and_lesson(
            db, enrollment_id=enrollment.id, lesson_id=lesson.id
        )
        if progress:
            return progress, False

        progress = LessonProgress(
            enrollment_id=enrollment.id,
            lesson_id=lesson.id,
            status=LessonProgressStatusEnum.NOT_STARTED,
            progress_percentage=0,
            time_spent_seconds=0,
            access_count=0,
            is_favorite=False,
        )
        db.add(progress)
        try:
            db.flush()
        except IntegrityError:
            # Another request created the row first.
            db.rollback()
            progress = crud_lesson_progress.get_by_enrollment_and_lesson(
                db, enrollment_id=enrollment.id, lesson_id=lesson.id
            )
            if progress is None:
                raise
            return progress, False
        return progress, True

    def _save(self, db: Session, progress: LessonProgress) -> LessonProgress:
        db.add(progress)
        db.commit()
        db.refresh(progress)
        return progress

    def _mark_in_progress(self, progress: LessonProgress) -> None:
        now = self.clock.now()
        progress.status = LessonProgressStatusEnum.IN_PROGRESS
        if progress.started_at is None:
            progress.started_at = now
        progress.last_accessed_at = now

    def _mark_completed(self, progress: LessonProgress) -> None:
        now = self.clock.now()
        progress.status = LessonProgressStatusEnum.COMPLETED
        progress.progress_percentage = 100
        if progress.started_at is None:
            progress.started_at = now
        if progress.completed_at is None:
            progress.completed_at = now
        progress.last_accessed_at = now

    def _touch(self, progress: LessonProgress) -> None:
        if progress.is_not_started:
            self._mark_in_progress(progress)
        else:
            progress.last_accessed_at = self.clock.now()
        progress.access_count = (progress.access_count or 0) + 1

    def get_lesson_progress(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> Optional[LessonProgress]:
        self._ensure_membership(enrollment, lesson)
        return crud_lesson_progress.get_by_enrollment_and_lesson(db, enrollment_id=enrollment.id, lesson_id=lesson.id)

    def list_for_enrollment(self, db: Session, enrollment: Enrollment) -> List[LessonProgress]:
        return crud_lesson_progress.get_all_by_enrollment(db, enrollment_id=enrollment.id)

    def completed_lesson_ids(self, db: Session, enrollment: Enrollment) -> List[int]:
        return crud_lesson_progress.get_completed_lesson_ids(db, enrollment_id=enrollment.id)

    def record_access(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> LessonProgress:
        progress, _ = self._get_or_create(db, enrollment, lesson)
        self._touch(progress)
        return self._save(db, progress)

    def start(self, db: Session, enrollment: Enrollment, lesson: Lesson, position: Optional[int] = None) -> LessonProgress:
        progress, _ = self._get_or_create(db, enrollment, lesson)
        self._touch(progress)
        if position is not None:
            progress.current_position = position

        self.enrollments.record_access(db, enrollment, commit=False)
        return self._save(db, progress)

    def update_progress(
        self,
        db: Session,
        enrollment: Enrollment,
        lesson: Lesson,
        percentage: int,
        position: Optional[int] = None,
        time_spent_seconds: Optional[int] = None,
    ) -> LessonProgress:
        if time_spent_seconds is not None and time_spent_seconds < 0:
            raise InvalidInputError("Time spent must be a non-negative number of seconds")

        progress, _ = self._get_or_create(db, enrollment, lesson)
        percentage = max(0, min(100, int(percentage)))

        if progress.is_not_started and percentage > 0:
            self._mark_in_progress(progress)

        # A completed lesson keeps its 100%.
        if not progress.is_completed:
            progress.progress_percentage = percentage
        if position is not None:
            progress.current_position = position
        if time_spent_seconds:
            progress.time_spent_seconds = (progress.time_spent_seconds or 0) + time_spent_seconds

        if percentage >= 100 and not progress.is_completed:
            self._mark_completed(progress)
            logger.info("Lesson %s completed for enrollment %s", lesson.id, enrollment.id)
        else:
            progress.last_accessed_at = self.clock.now()

        db.add(progress)
        db.flush()
        self.enrollments.refresh_progress(db, enrollment, commit=False)
        return self._save(db, progress)

    def complete(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> LessonProgress:
        progress, _ = self._get_or_create(db, enrollment, lesson)
        if not progress.is_completed:
            logger.info("Lesson %s completed for enrollment %s", lesson.id, enrollment.id)
        self._mark_completed(progress)

        db.add(progress)
        db.flush()
        self.enrollments.refresh_progress(db, enrollment, commit=False)
        return self._save(db, progress)

    def add_time_spent(self, db: Session, enrollment: Enrollment, lesson: Lesson, seconds: int) -> LessonProgress:
        if seconds is None or seconds < 0:
            raise InvalidInputError("Time spent must be a non-negative number of seconds")
        progress, _ = self._get_or_create(db, enrollment, lesson)
        progress.time_spent_seconds = (progress.time_spent_seconds or 0) + seconds
        return self._save(db, progress)

    def toggle_favorite(self, db: Session, enrollment: Enrollment, lesson: Lesson) -> LessonProgress:
        progress, _ = self._get_or_create(db, enrollment, lesson)
        progress.is_favorite = not progress.is_favorite
        return self._save(db, progress)

    def update_notes(self, db: Session, enrollment: Enrollment, lesson: Lesson, notes: Union[LessonNotes, dict]) -> LessonProgress:
        try:
            notes = notes if isinstance(notes, LessonNotes) else LessonNotes.model_validate(notes)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid notes: {e.errors()[0]['msg']}")
        progress, _ = self._get_or_create(db, enrollment, lesson)
        progress.notes = notes.model_dump()
        return self._save(db, progress)


progress_tracker = ProgressTracker()
