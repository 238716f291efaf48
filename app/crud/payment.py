from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.payment import Payment
from app.schemas.payment import PaymentCreate

class CRUDPayment(CRUDBase[Payment, PaymentCreate, PaymentCreate]):

    def _by(self, db: Session, column, value, for_update: bool):
        query = db.query(Payment).filter(column == value)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()

    def get_by_payment_intent(self, db: Session, payment_intent_id: str, for_update: bool = False) -> Optional[Payment]:
        return self._by(db, Payment.stripe_payment_intent_id, payment_intent_id, for_update)

    def get_by_checkout_session(self, db: Session, session_id: str, for_update: bool = False) -> Optional[Payment]:
        return self._by(db, Payment.stripe_checkout_session_id, session_id, for_update)

    def get_by_customer(self, db: Session, customer_id: int, skip: int = 0, limit: int = 100) -> List[Payment]:
        return (
            db.query(Payment)
            .filter(Payment.customer_id == customer_id)
            .order_by(Payment.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )


payment = CRUDPayment(Payment)
