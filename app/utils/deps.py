from fastapi import Depends
from sqlalchemy.orm import Session
from app.core.database import SessionLocal
from app.core.exceptions import NotFoundError
from app.crud.enrollment import enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.models.enrollment import Enrollment
from app.models.lesson import Lesson

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_enrollment(enrollment_id: int, db: Session = Depends(get_db)) -> Enrollment:
    enrollment = crud_enrollment.get(db, id=enrollment_id)
    if not enrollment:
        raise NotFoundError("Enrollment not found", enrollment_id=enrollment_id)
    return enrollment

def get_lesson(lesson_id: int, db: Session = Depends(get_db)) -> Lesson:
    lesson = crud_lesson.get(db, id=lesson_id)
    if not lesson:
        raise NotFoundError("Lesson not found", lesson_id=lesson_id)
    return lesson
