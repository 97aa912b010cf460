# services/user_management/models/students.py
from sqlalchemy import Column, String, ForeignKey, DateTime, Index, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from shared.db import Base
import uuid


class StudentDetails(Base):
    __tablename__ = "student_details"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    school_id = Column(String, ForeignKey('schools.id'), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    admission_number = Column(String(50), nullable=True)
    profile_id = Column(Uuid, ForeignKey('profiles.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_student_school', 'school_id'),
        UniqueConstraint('school_id', 'admission_number', name='uq_student_admission_number'),
    )
