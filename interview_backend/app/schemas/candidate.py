# interview_backend/app/schemas/candidate.py
"""Pydantic v2 schemas for candidate records and résumé parsing"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .interview import InterviewResult


class ResultStatus(str, Enum):
    ALL = "all"
    COMPLETED = "completed"
    PENDING = "pending"


class ParseConfidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ParsedResume(BaseModel):
    """Best-effort résumé extraction; every contact field may be empty."""
    name: str = ""
    email: str = ""
    phone: str = ""
    text: str = ""
    confidence: ParseConfidence = ParseConfidence.HIGH
    missing_fields: List[str] = Field(default_factory=list)


class CandidateCreate(BaseModel):
    """Contact data confirmed by the candidate before the interview starts"""
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = Field(default="", max_length=50)
    resume_content: str = ""


class CandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: Optional[str] = None
    resume_content: Optional[str] = None
    interview_result: Optional[InterviewResult] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class DashboardStats(BaseModel):
    total_candidates: int = 0
    completed_interviews: int = 0
    pending_interviews: int = 0
    average_score: float = 0.0


class ResultStats(BaseModel):
    questions_answered: int
    completed: int
    average_time_spent: int
    verdict: str


class ResultDetail(BaseModel):
    """Stored result of one candidate plus the figures shown next to it."""
    candidate_id: str
    result: Optional[InterviewResult] = None
    stats: Optional[ResultStats] = None
