from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.lesson_progress import LessonProgress, LessonProgressUpdate, LessonStart, LessonNotes, TimeSpentUpdate
from app.utils import deps
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson
from app.services.progress import progress_tracker

router = APIRouter()


@router.get("/enrollments/{enrollment_id}/progress", response_model=APIResponse[List[LessonProgress]])
def list_lesson_progress(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
):
    records = progress_tracker.list_for_enrollment(db, enrollment)
    return APIResponse(message="Lesson progress retrieved", data=records)


@router.post("/enrollments/{enrollment_id}/lessons/{lesson_id}/start", response_model=APIResponse[LessonProgress])
def start_lesson(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
    start_in: Optional[LessonStart] = None,
):
    progress = progress_tracker.start(db, enrollment, lesson, position=start_in.position if start_in else None)
    return APIResponse(message="Lesson started", data=progress)


@router.put("/enrollments/{enrollment_id}/lessons/{lesson_id}/progress", response_model=APIResponse[LessonProgress])
def update_lesson_progress(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
    progress_in: LessonProgressUpdate,
):
    progress = progress_tracker.update_progress(
        db, enrollment, lesson,
        percentage=progress_in.progress_percentage,
        position=progress_in.current_position,
        time_spent_seconds=progress_in.time_spent_seconds,
    )
    return APIResponse(message="Lesson progress updated", data=progress)


@router.post("/enrollments/{enrollment_id}/lessons/{lesson_id}/complete", response_model=APIResponse[LessonProgress])
def complete_lesson(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
):
    progress = progress_tracker.complete(db, enrollment, lesson)
    return APIResponse(message="Lesson completed", data=progress)


@router.post("/enrollments/{enrollment_id}/lessons/{lesson_id}/time", response_model=APIResponse[LessonProgress])
def add_time_spent(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
    time_in: TimeSpentUpdate,
):
    progress = progress_tracker.add_time_spent(db, enrollment, lesson, time_in.seconds)
    return APIResponse(message="Time spent recorded", data=progress)


@router.post("/enrollments/{enrollment_id}/lessons/{lesson_id}/favorite", response_model=APIResponse[LessonProgress])
def toggle_favorite(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
):
    progress = progress_tracker.toggle_favorite(db, enrollment, lesson)
    return APIResponse(message="Favorite toggled", data=progress)


@router.put("/enrollments/{enrollment_id}/lessons/{lesson_id}/notes", response_model=APIResponse[LessonProgress])
def update_notes(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
    notes_in: LessonNotes,
):
    progress = progress_tracker.update_notes(db, enrollment, lesson, notes_in)
    return APIResponse(message="Notes updated", data=progress)
