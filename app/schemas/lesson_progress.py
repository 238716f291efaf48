from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime
from app.core.constants import LessonProgressStatusEnum


class LessonNotes(BaseModel):
    highlights: List[str] = Field(default_factory=list)
    bookmarks: List[int] = Field(default_factory=list)
    text: str = ""


class LessonStart(BaseModel):
    position: Optional[int] = Field(None, ge=0)


class LessonProgressUpdate(BaseModel):
    progress_percentage: int
    current_position: Optional[int] = Field(None, ge=0)
    time_spent_seconds: Optional[int] = Field(None, ge=0)


class TimeSpentUpdate(BaseModel):
    seconds: int = Field(..., ge=0)


class LessonProgress(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    enrollment_id: int
    lesson_id: int
    status: LessonProgressStatusEnum
    progress_percentage: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None
    time_spent_seconds: int
    access_count: int
    current_position: Optional[int] = None
    is_favorite: bool
    notes: Optional[LessonNotes] = None
