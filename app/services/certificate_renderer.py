import os
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape, TemplateError

from app.core.config import settings
from app.core.exceptions import RenderingError
from app.models.certificate import Certificate
from app.schemas.certificate import RenderedCertificate

logger = logging.getLogger(__name__)


def verification_url(certificate: Certificate) -> str:
    return f"{settings.APP_URL}/certificates/verify/{certificate.verification_code}"


class HtmlCertificateRenderer:
    """Renders certificates to standalone HTML files under the storage directory."""
    _template_env = None
    template_name = "certificate.html"

    def __init__(self, storage_dir: Optional[str] = None):
        self.storage_dir = Path(storage_dir or settings.CERTIFICATE_STORAGE_DIR)

    @classmethod
    def _get_template_env(cls):
        if cls._template_env is None:
            template_dir = os.path.join(
                os.path.dirname(os.path.abspath(__file__)),
                '..',
                'templates'
            )
            cls._template_env = Environment(
                loader=FileSystemLoader(template_dir),
                autoescape=select_autoescape(['html']),
            )
        return cls._template_env

    def path_for(self, certificate: Certificate) -> Path:
        return self.storage_dir / certificate.artifact_filename

    def render_html(self, certificate: Certificate) -> str:
        context = {
            'company_name': settings.PROJECT_NAME,
            'current_year': datetime.utcnow().year,
            'certificate_number': certificate.certificate_number,
            'verification_code': certificate.verification_code,
            'verification_url': verification_url(certificate),
            'student_name': certificate.student_name,
            'formation_title': certificate.formation_title,
            'instructor_name': certificate.instructor_name,
            'completion_date': certificate.completion_date,
        }
        template = self._get_template_env().get_template(self.template_name)
        return template.render(**context)

    def render(self, certificate: Certificate) -> RenderedCertificate:
        try:
            html = self.render_html(certificate)
            path = self.path_for(certificate)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except (TemplateError, OSError) as e:
            logger.error(f"Error rendering certificate {certificate.certificate_number}: {e}")
            raise RenderingError(f"Could not render certificate: {e}", certificate_number=certificate.certificate_number)

        return RenderedCertificate(path=str(path), size_bytes=path.stat().st_size)

    def delete(self, certificate: Certificate) -> None:
        path = self.path_for(certificate)
        try:
            path.unlink()
        except FileNotFoundError:
            pass


certificate_renderer = HtmlCertificateRenderer()
