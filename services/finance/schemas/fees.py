# services/finance/schemas/fees.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class Recurrence(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"
    ONE_TIME = "one-time"


class FeeComponentIn(BaseModel):
    name: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    due_date: Optional[date] = None
    recurring: Recurrence = Recurrence.ONE_TIME


class FeeComponentOut(FeeComponentIn):
    id: UUID

    class Config:
        from_attributes = True


class FeeStructureCreate(BaseModel):
    school_id: str
    academic_year_id: UUID
    name: str = Field(..., min_length=1)
    components: List[FeeComponentIn] = Field(default_factory=list)


class FeeStructureUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    academic_year_id: Optional[UUID] = None
    # None keeps the current components, a list replaces them all
    components: Optional[List[FeeComponentIn]] = None


class FeeStructureOut(BaseModel):
    id: UUID
    school_id: str
    academic_year_id: UUID
    name: str
    total_amount: Decimal
    components: List[FeeComponentOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
