from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.enrollment import Enrollment, EnrollmentCreate, LessonAccess
from app.utils import deps
from app.crud.enrollment import enrollment as crud_enrollment
from app.models.enrollment import Enrollment as EnrollmentModel
from app.models.lesson import Lesson
from app.services.enrollment import enrollment_service
from app.services.access import access_gate

router = APIRouter()


@router.post("/", response_model=APIResponse[Enrollment], status_code=201)
def create_enrollment(
    *,
    db: Session = Depends(deps.get_db),
    enrollment_in: EnrollmentCreate,
):
    enrollment = enrollment_service.create(db, enrollment_in)
    return APIResponse(message="Enrollment created", data=enrollment)


@router.get("/", response_model=APIResponse[List[Enrollment]])
def list_customer_enrollments(
    *,
    db: Session = Depends(deps.get_db),
    customer_id: int = Query(...),
    skip: int = 0,
    limit: int = 100,
):
    enrollments = crud_enrollment.get_by_customer(db, customer_id=customer_id, skip=skip, limit=limit)
    return APIResponse(message="Enrollments retrieved", data=enrollments)


@router.get("/{enrollment_id}", response_model=APIResponse[Enrollment])
def get_enrollment(enrollment: EnrollmentModel = Depends(deps.get_enrollment)):
    return APIResponse(message="Enrollment retrieved", data=enrollment)


@router.post("/{enrollment_id}/validate", response_model=APIResponse[Enrollment])
def validate_enrollment(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: EnrollmentModel = Depends(deps.get_enrollment),
):
    enrollment = enrollment_service.validate(db, enrollment)
    return APIResponse(message="Enrollment activated", data=enrollment)


@router.post("/{enrollment_id}/cancel", response_model=APIResponse[Enrollment])
def cancel_enrollment(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: EnrollmentModel = Depends(deps.get_enrollment),
):
    enrollment = enrollment_service.cancel(db, enrollment)
    return APIResponse(message="Enrollment cancelled", data=enrollment)


@router.post("/{enrollment_id}/refresh-progress", response_model=APIResponse[Enrollment])
def refresh_enrollment_progress(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: EnrollmentModel = Depends(deps.get_enrollment),
):
    enrollment = enrollment_service.refresh_progress(db, enrollment)
    return APIResponse(message="Enrollment progress refreshed", data=enrollment)


@router.get("/{enrollment_id}/lessons/{lesson_id}/access", response_model=APIResponse[LessonAccess])
def check_lesson_access(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: EnrollmentModel = Depends(deps.get_enrollment),
    lesson: Lesson = Depends(deps.get_lesson),
):
    access = access_gate.can_access_lesson(db, enrollment, lesson)
    return APIResponse(message="Lesson access evaluated", data=access)
