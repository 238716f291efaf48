from sqlalchemy import Column, Integer, ForeignKey, DateTime, Boolean, JSON, UniqueConstraint, Index, Enum as SQLEnum, func
from sqlalchemy.orm import relationship
from app.core.database import Base
from app.core.constants import LessonProgressStatusEnum


class LessonProgress(Base):
    __tablename__ = "lesson_progress"
    __table_args__ = (
        UniqueConstraint("enrollment_id", "lesson_id", name="uq_lesson_progress_enrollment_lesson"),
        Index("ix_lesson_progress_enrollment_status", "enrollment_id", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id"), nullable=False)
    lesson_id = Column(Integer, ForeignKey("lessons.id"), nullable=False)
    status = Column(SQLEnum(LessonProgressStatusEnum), nullable=False, default=LessonProgressStatusEnum.NOT_STARTED)
    progress_percentage = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    last_accessed_at = Column(DateTime, nullable=True)
    time_spent_seconds = Column(Integer, nullable=False, default=0)
    access_count = Column(Integer, nullable=False, default=0)
    current_position = Column(Integer, nullable=True)
    is_favorite = Column(Boolean, nullable=False, default=False)
    notes = Column(JSON, nullable=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)

    enrollment = relationship("Enrollment", back_populates="lesson_progress")
    lesson = relationship("Lesson", back_populates="progress_records")

    @property
    def is_not_started(self) -> bool:
        return self.status is None or self.status == LessonProgressStatusEnum.NOT_STARTED

    @property
    def is_completed(self) -> bool:
        return self.status == LessonProgressStatusEnum.COMPLETED

    @property
    def time_spent(self) -> str:
        seconds = self.time_spent_seconds or 0
        hours, remainder = divmod(seconds, 3600)
        minutes, secs = divmod(remainder, 60)
        if hours:
            return f"{hours}h {minutes}m"
        if minutes:
            return f"{minutes}m {secs}s"
        return f"{secs}s"
