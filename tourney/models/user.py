from sqlalchemy import Column, Integer, String, Boolean, DateTime, Index

from ..db import Base
from ..core.clock import utcnow


class User(Base):
    """Identity record keyed by E.164 phone. Credential columns are never serialized."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    phone = Column(String(20), unique=True, nullable=False, index=True)  # E.164 format
    name = Column(String(50), nullable=True)
    age = Column(Integer, nullable=True)
    consent_given = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Live one-time credential; all three are cleared together on verification
    otp_code_hash = Column(String, nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)
    otp_request_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_users_created_at", "created_at"),
    )

    def has_live_credential(self, now) -> bool:
        return bool(self.otp_code_hash) and self.otp_expires_at is not None and now < self.otp_expires_at

    def public_profile(self) -> dict:
        return {
            "phone": self.phone,
            "name": self.name,
            "consentGiven": bool(self.consent_given),
        }

    def profile_snapshot(self) -> dict:
        return {
            "phone": self.phone,
            "name": self.name,
            "age": self.age,
            "consentGiven": bool(self.consent_given),
        }
