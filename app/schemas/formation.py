from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from app.core.constants import PricingTierEnum


class CustomerCreate(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None


class FormationCreate(BaseModel):
    title: str
    slug: str
    summary: Optional[str] = None
    pricing_tier: PricingTierEnum = PricingTierEnum.FREE
    price: Decimal = Decimal("0")
    currency: str = "EUR"
    instructor_name: Optional[str] = None
    is_published: bool = True


class ModuleCreate(BaseModel):
    formation_id: int
    title: str
    description: Optional[str] = None
    order: int = 0
    is_published: bool = True


class LessonCreate(BaseModel):
    formation_id: int
    module_id: Optional[int] = None
    title: str
    duration_seconds: Optional[int] = None
    order: int = 0
    is_preview: bool = False
    is_published: bool = True
