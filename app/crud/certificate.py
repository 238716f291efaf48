from sqlalchemy.orm import Session
from typing import Optional

from app.crud.base import CRUDBase
from app.models.certificate import Certificate
from app.schemas.certificate import CertificateRevoke

class CRUDCertificate(CRUDBase[Certificate, CertificateRevoke, CertificateRevoke]):

    def get_by_enrollment(self, db: Session, enrollment_id: int) -> Optional[Certificate]:
        return (
            db.query(Certificate)
            .filter(Certificate.enrollment_id == enrollment_id)
            .order_by(Certificate.id.desc())
            .first()
        )

    def get_by_number(self, db: Session, certificate_number: str) -> Optional[Certificate]:
        return db.query(Certificate).filter(Certificate.certificate_number == certificate_number).first()

    def get_by_code(self, db: Session, verification_code: str) -> Optional[Certificate]:
        return db.query(Certificate).filter(Certificate.verification_code == verification_code).first()

    def number_exists(self, db: Session, certificate_number: str) -> bool:
        return db.query(Certificate.id).filter(Certificate.certificate_number == certificate_number).first() is not None

    def code_exists(self, db: Session, verification_code: str) -> bool:
        return db.query(Certificate.id).filter(Certificate.verification_code == verification_code).first() is not None


certificate = CRUDCertificate(Certificate)
