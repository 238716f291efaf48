from sqlalchemy.orm import Session
from typing import List

from app.crud.base import CRUDBase
from app.models.customer import Customer
from app.models.formation import Formation
from app.models.module import Module
from app.schemas.formation import CustomerCreate, FormationCreate, ModuleCreate


class CRUDFormation(CRUDBase[Formation, FormationCreate, FormationCreate]):

    def increment_enrollment_count(self, db: Session, *, formation_id: int) -> None:
        db.query(Formation).filter(Formation.id == formation_id).update(
            {Formation.enrollment_count: Formation.enrollment_count + 1},
            synchronize_session=False,
        )


class CRUDModule(CRUDBase[Module, ModuleCreate, ModuleCreate]):

    def get_ordered_by_formation(self, db: Session, *, formation_id: int) -> List[Module]:
        return (
            self._active(db)
            .filter(Module.formation_id == formation_id)
            .order_by(Module.order, Module.id)
            .all()
        )


class CRUDCustomer(CRUDBase[Customer, CustomerCreate, CustomerCreate]):
    pass


formation = CRUDFormation(Formation)
module = CRUDModule(Module)
customer = CRUDCustomer(Customer)
