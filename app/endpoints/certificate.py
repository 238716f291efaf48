from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.schemas.certificate import Certificate, CertificateRevoke, CertificateVerification
from app.utils import deps
from app.models.enrollment import Enrollment
from app.services.certificate import certificate_service

router = APIRouter()


@router.post("/enrollments/{enrollment_id}/certificate", response_model=APIResponse[Certificate], status_code=201)
def generate_certificate(
    *,
    db: Session = Depends(deps.get_db),
    enrollment: Enrollment = Depends(deps.get_enrollment),
):
    certificate = certificate_service.generate(db, enrollment)
    return APIResponse(message="Certificate issued", data=certificate)


@router.get("/certificates/verify/{verification_code}", response_model=APIResponse[CertificateVerification])
def verify_certificate(*, db: Session = Depends(deps.get_db), verification_code: str):
    result = certificate_service.verify(db, verification_code)
    return APIResponse(message="Certificate verification completed", data=result)


@router.get("/certificates/number/{certificate_number}/verify", response_model=APIResponse[CertificateVerification])
def verify_certificate_by_number(*, db: Session = Depends(deps.get_db), certificate_number: str):
    result = certificate_service.verify_by_number(db, certificate_number)
    return APIResponse(message="Certificate verification completed", data=result)


@router.post("/certificates/{certificate_id}/revoke", response_model=APIResponse[Certificate])
def revoke_certificate(
    *,
    db: Session = Depends(deps.get_db),
    certificate_id: int,
    revoke_in: CertificateRevoke,
):
    certificate = certificate_service.get(db, certificate_id)
    certificate = certificate_service.revoke(db, certificate, reason=revoke_in.reason)
    return APIResponse(message="Certificate revoked", data=certificate)


@router.post("/certificates/{certificate_id}/reactivate", response_model=APIResponse[Certificate])
def reactivate_certificate(*, db: Session = Depends(deps.get_db), certificate_id: int):
    certificate = certificate_service.get(db, certificate_id)
    certificate = certificate_service.reactivate(db, certificate)
    return APIResponse(message="Certificate reactivated", data=certificate)


@router.post("/certificates/{certificate_id}/regenerate", response_model=APIResponse[Certificate])
def regenerate_certificate(*, db: Session = Depends(deps.get_db), certificate_id: int):
    certificate = certificate_service.get(db, certificate_id)
    certificate = certificate_service.regenerate_artifact(db, certificate)
    return APIResponse(message="Certificate regenerated", data=certificate)
