# services/user_management/models/profiles.py
from sqlalchemy import Column, String, ForeignKey, DateTime, Boolean, Index, Uuid
from sqlalchemy.sql import func
from shared.db import Base, JSONType
import uuid


class Identity(Base):
    """Login credentials. Shares its id with the profile it signs in as."""
    __tablename__ = "auth_identities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    user_metadata = Column(JSONType, nullable=True)
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    # list of role names, never empty
    roles = Column(JSONType, nullable=False, default=list)
    school_id = Column(String, ForeignKey('schools.id'), nullable=True)
    avatar_url = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index('idx_profile_school', 'school_id'),
    )

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
