# services/finance/models/fees.py
from sqlalchemy import Column, String, ForeignKey, Date, DateTime, Numeric, Index, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from shared.db import Base
import uuid


class FeeStructure(Base):
    """A named set of fee components charged in one academic year."""
    __tablename__ = "fee_structures"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey("schools.id"), nullable=False)
    academic_year_id = Column(Uuid, ForeignKey("academic_years.id"), nullable=False)
    name = Column(String(100), nullable=False)
    # sum of the component amounts, kept in step on every save
    total_amount = Column(Numeric(12, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("school_id", "academic_year_id", "name", name="uq_fee_structure_name"),
    )


class FeeComponent(Base):
    __tablename__ = "fee_components"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    fee_structure_id = Column(Uuid, ForeignKey("fee_structures.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    due_date = Column(Date, nullable=True)
    recurring = Column(String(20), nullable=False, default="one-time")

    __table_args__ = (
        Index("idx_fee_component_structure", "fee_structure_id"),
    )
