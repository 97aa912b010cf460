# services/user_management/models/staff.py
from sqlalchemy import Column, String, ForeignKey, DateTime, Index, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from shared.db import Base
import uuid


class StaffDetails(Base):
    __tablename__ = "staff_details"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey('schools.id'), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    employee_id = Column(String(50), nullable=True)
    designation = Column(String(100), nullable=True)
    profile_id = Column(Uuid, ForeignKey('profiles.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_staff_school', 'school_id'),
        UniqueConstraint('school_id', 'employee_id', name='uq_staff_employee_id'),
    )
