from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base

class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(Integer, primary_key=True, index=True)
    formation_id = Column(Integer, ForeignKey("formations.id"), nullable=False, index=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=True, index=True)
    title = Column(String, index=True, nullable=False)
    duration_seconds = Column(Integer, nullable=True)
    order = Column(Integer, nullable=False, default=0)
    is_preview = Column(Boolean, default=False)
    is_published = Column(Boolean, default=True)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    formation = relationship("Formation", back_populates="lessons")
    module = relationship("Module", back_populates="lessons")
    progress_records = relationship("LessonProgress", primaryjoin="and_(Lesson.id == LessonProgress.lesson_id, LessonProgress.deleted_at == None)", back_populates="lesson")
