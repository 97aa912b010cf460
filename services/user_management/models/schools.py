# services/user_management/models/schools.py
from sqlalchemy import Column, String, DateTime, Index, UniqueConstraint
from sqlalchemy.sql import func
from shared.db import Base, JSONType


class School(Base):
    """A tenant. Every other table carries its id as ``school_id``."""
    __tablename__ = "schools"

    id = Column(String, primary_key=True)
    name = Column(String(200), nullable=False)
    address = Column(String, nullable=False)
    board = Column(String(50), nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    # free-form preferences (grading scale, week start, logo url ...)
    settings = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("name", "address", name="uq_school_name_address"),
        Index("idx_school_email", "email"),
    )
