from app.models.customer import Customer
from app.models.formation import Formation
from app.models.module import Module
from app.models.lesson import Lesson
from app.models.enrollment import Enrollment
from app.models.lesson_progress import LessonProgress
from app.models.payment import Payment
from app.models.certificate import Certificate

__all__ = [
    "Customer",
    "Formation",
    "Module",
    "Lesson",
    "Enrollment",
    "LessonProgress",
    "Payment",
    "Certificate",
]
