from sqlalchemy import Column, Integer, String, Boolean, DateTime, Numeric, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import PricingTierEnum

class Formation(Base):
    __tablename__ = "formations"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    summary = Column(String, nullable=True)
    pricing_tier = Column(Enum(PricingTierEnum), nullable=False, default=PricingTierEnum.FREE)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String, nullable=False, default="EUR")
    instructor_name = Column(String, nullable=True)
    is_published = Column(Boolean, default=False)
    enrollment_count = Column(Integer, nullable=False, default=0)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    modules = relationship(
        "Module",
        primaryjoin="and_(Formation.id == Module.formation_id, Module.deleted_at == None)",
        order_by="Module.order",
        back_populates="formation",
    )
    lessons = relationship(
        "Lesson",
        primaryjoin="and_(Formation.id == Lesson.formation_id, Lesson.deleted_at == None)",
        order_by="Lesson.order",
        back_populates="formation",
    )
    enrollments = relationship("Enrollment", back_populates="formation")

    @property
    def is_free(self) -> bool:
        return self.pricing_tier == PricingTierEnum.FREE or not self.price
