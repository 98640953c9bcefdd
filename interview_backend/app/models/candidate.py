# interview_backend/app/models/candidate.py
"""
Candidate record.

Holds the contact data confirmed before the interview, the résumé text and
the single most recent interview result (JSON, camelCase keys). Older rows may
carry the result as a JSON string or a one-element list; the result persister
normalizes those shapes when reading.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, String, Text

from ..database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Candidate(Base):
    """Candidate row"""
    __tablename__ = "candidates"

    id = Column(String(36), primary_key=True, default=_new_id)

    name = Column(String(255), nullable=False, comment="Full name")
    email = Column(String(255), nullable=False, index=True, comment="Email")
    phone = Column(String(50), nullable=True, comment="Phone")

    resume_content = Column(Text, nullable=True, comment="Résumé text")

    # overwritten on every attach; no history of attempts
    interview_result = Column(JSON, nullable=True, comment="Latest InterviewResult")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Candidate(id={self.id}, name={self.name})>"

    def __str__(self):
        return self.name
