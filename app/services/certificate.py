import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import CertificateStatusEnum, VerificationFailureEnum
from app.core.exceptions import AlreadyRevokedError, EngineError, NotEligibleError, NotFoundError, RenderingError
from app.crud.certificate import certificate as crud_certificate
from app.models.certificate import Certificate
from app.models.enrollment import Enrollment
from app.schemas.certificate import Certificate as CertificateSchema, CertificateVerification
from app.services.certificate_renderer import HtmlCertificateRenderer, certificate_renderer, verification_url
from app.utils.clock import Clock, TokenGenerator, system_clock, token_generator

logger = logging.getLogger(__name__)


class CertificateService:

    def __init__(
        self,
        clock: Clock = system_clock,
        tokens: TokenGenerator = token_generator,
        renderer: HtmlCertificateRenderer = certificate_renderer,
    ):
        self.clock = clock
        self.tokens = tokens
        self.renderer = renderer

    def _unique_number(self, db: Session) -> str:
        while True:
            number = settings.CERTIFICATE_NUMBER_PREFIX + self.tokens.random_string(settings.CERTIFICATE_NUMBER_LENGTH)
            if not crud_certificate.number_exists(db, number):
                return number

    def _unique_code(self, db: Session) -> str:
        while True:
            code = self.tokens.random_string(settings.VERIFICATION_CODE_LENGTH)
            if not crud_certificate.code_exists(db, code):
                return code

    def _render(self, certificate: Certificate) -> None:
        try:
            rendered = self.renderer.render(certificate)
        except EngineError:
            raise
        except Exception as e:
            raise RenderingError(f"Could not render certificate: {e}", certificate_number=certificate.certificate_number)
        certificate.artifact_path = rendered.path
        certificate.artifact_size_bytes = rendered.size_bytes

    def get(self, db: Session, certificate_id: int) -> Certificate:
        certificate = crud_certificate.get(db, id=certificate_id)
        if not certificate:
            raise NotFoundError("Certificate not found", certificate_id=certificate_id)
        return certificate

    def generate(self, db: Session, enrollment: Enrollment) -> Certificate:
        if not enrollment.is_completed:
            raise NotEligibleError(enrollment_id=enrollment.id, status=enrollment.status.value)

        existing = crud_certificate.get_by_enrollment(db, enrollment.id)
        if existing and existing.is_valid(self.clock.now()):
            return existing

        enrollment_id = enrollment.id
        while True:
            now = self.clock.now()
            customer = enrollment.customer
            formation = enrollment.formation
            certificate = Certificate(
                enrollment_id=enrollment.id,
                customer_id=enrollment.customer_id,
                formation_id=enrollment.formation_id,
                certificate_number=self._unique_number(db),
                verification_code=self._unique_code(db),
                status=CertificateStatusEnum.ACTIVE,
                issued_at=now,
                student_name=customer.full_name,
                formation_title=formation.title,
                instructor_name=formation.instructor_name,
                completion_date=(enrollment.completed_at or now).date(),
            )
            db.add(certificate)
            try:
                db.flush()
            except IntegrityError:
                # Lost a race on one of the identifiers; draw again.
                db.rollback()
                logger.info("Certificate identifier collision for enrollment %s, retrying", enrollment_id)
                continue
            break

        try:
            self._render(certificate)
        except EngineError:
            db.rollback()
            logger.error("Certificate for enrollment %s not issued: rendering failed", enrollment_id)
            raise

        db.commit()
        db.refresh(certificate)
        logger.info("Certificate %s issued for enrollment %s", certificate.certificate_number, enrollment_id)
        return certificate

    def revoke(self, db: Session, certificate: Certificate, reason: Optional[str] = None) -> Certificate:
        if certificate.is_revoked:
            raise AlreadyRevokedError(certificate_id=certificate.id)
        certificate.transition_to(CertificateStatusEnum.REVOKED)
        certificate.revoked_at = self.clock.now()
        certificate.revoked_reason = reason
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
        logger.info("Certificate %s revoked", certificate.certificate_number)
        return certificate

    def reactivate(self, db: Session, certificate: Certificate) -> Certificate:
        certificate.transition_to(CertificateStatusEnum.ACTIVE)
        certificate.revoked_at = None
        certificate.revoked_reason = None
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
        logger.info("Certificate %s reactivated", certificate.certificate_number)
        return certificate

    def expire(self, db: Session, certificate: Certificate) -> Certificate:
        now = self.clock.now()
        certificate.transition_to(CertificateStatusEnum.EXPIRED)
        if certificate.expires_at is None or certificate.expires_at > now:
            certificate.expires_at = now
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
        return certificate

    def regenerate_artifact(self, db: Session, certificate: Certificate) -> Certificate:
        # Renders over the existing artifact; on failure the stored one stays in place.
        self._render(certificate)
        db.add(certificate)
        db.commit()
        db.refresh(certificate)
        return certificate

    def verification_url(self, certificate: Certificate) -> str:
        return verification_url(certificate)

    def _verification_result(self, certificate: Optional[Certificate]) -> CertificateVerification:
        if certificate is None:
            return CertificateVerification(valid=False, reason=VerificationFailureEnum.NOT_FOUND.value)

        snapshot = CertificateSchema.model_validate(certificate)
        if certificate.is_revoked:
            return CertificateVerification(valid=False, reason=VerificationFailureEnum.REVOKED.value, certificate=snapshot)
        if certificate.is_expired(self.clock.now()):
            return CertificateVerification(valid=False, reason=VerificationFailureEnum.EXPIRED.value, certificate=snapshot)
        return CertificateVerification(valid=True, certificate=snapshot)

    def verify(self, db: Session, verification_code: str) -> CertificateVerification:
        return self._verification_result(crud_certificate.get_by_code(db, verification_code.strip().upper()))

    def verify_by_number(self, db: Session, certificate_number: str) -> CertificateVerification:
        return self._verification_result(crud_certificate.get_by_number(db, certificate_number.strip().upper()))


certificate_service = CertificateService()
