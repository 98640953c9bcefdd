# interview_backend/app/schemas/__init__.py
from .candidate import CandidateCreate, CandidateResponse, ParsedResume
from .evaluation import EvaluationRequest, EvaluationResponse, IndividualScore
from .interview import (
    AnsweredQuestion,
    InterviewResult,
    InterviewSession,
    Question,
    SessionView,
)

__all__ = [
    "CandidateCreate",
    "CandidateResponse",
    "ParsedResume",
    "EvaluationRequest",
    "EvaluationResponse",
    "IndividualScore",
    "AnsweredQuestion",
    "InterviewResult",
    "InterviewSession",
    "Question",
    "SessionView",
]
