from sqlalchemy.orm import Session, selectinload
from typing import Any, List, Optional

from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.schemas.formation import LessonCreate

class CRUDLesson(CRUDBase[Lesson, LessonCreate, LessonCreate]):
    def get(self, db: Session, id: Any) -> Optional[Lesson]:
        return self._active(db).filter(self.model.id == id).options(selectinload(self.model.module)).first()

    def get_ids_by_module(self, db: Session, *, module_id: int) -> List[int]:
        rows = db.query(self.model.id).filter(self.model.module_id == module_id, self.model.deleted_at == None).all()
        return [row.id for row in rows]

    def count_by_formation(self, db: Session, *, formation_id: int) -> int:
        return db.query(self.model).filter(self.model.formation_id == formation_id, self.model.deleted_at == None).count()

lesson = CRUDLesson(Lesson)
