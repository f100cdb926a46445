"""
Chiropractor listing model

Standard delete flips `is_active` to False; only the admin permanent-delete
path removes the row.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, Index

from justchiro.core.database import Base
from justchiro.core.utils import utcnow

# Columns shown on public list endpoints (no description)
LISTING_SUMMARY_FIELDS = (
    "id", "name", "state", "address", "phone", "email",
    "website", "specialty", "is_featured", "created_at",
)


class Chiropractor(Base):
    __tablename__ = "chiropractors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    state = Column(String(100), nullable=False)
    address = Column(Text, nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    website = Column(String(500), nullable=True)
    specialty = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_chiropractors_state", "state"),
        Index("ix_chiropractors_name", "name"),
        Index("ix_chiropractors_specialty", "specialty"),
        Index("ix_chiropractors_active", "is_active"),
    )

    def __repr__(self):
        return f"<Chiropractor(id={self.id}, name='{self.name}', state='{self.state}')>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "state": self.state,
            "address": self.address,
            "phone": self.phone,
            "email": self.email,
            "website": self.website,
            "specialty": self.specialty,
            "description": self.description,
            "is_featured": self.is_featured,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_summary(self) -> dict:
        full = self.to_dict()
        return {key: full[key] for key in LISTING_SUMMARY_FIELDS}
