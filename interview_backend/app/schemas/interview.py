# interview_backend/app/schemas/interview.py
"""Pydantic v2 schemas for the timed interview session."""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class Recommendation(str, Enum):
    HIRE = "Hire"
    MAYBE = "Maybe"
    NO_HIRE = "No Hire"


class AppStage(str, Enum):
    """Candidate-facing navigation stage."""
    UPLOAD = "upload"
    INTERVIEW = "interview"
    RESULTS = "results"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Question(_CamelModel):
    """One interview question; the list is fixed when the session starts."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    question: str
    difficulty: Difficulty
    time_limit: int = Field(gt=0, description="Seconds allowed for the answer")


class AnsweredQuestion(_CamelModel):
    """Answer record, created exactly once per question."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question: str
    answer: str
    time_spent: int = Field(ge=0)


class InterviewSession(_CamelModel):
    """The resumable unit. Timestamps are epoch seconds."""

    candidate_id: str
    candidate_name: str
    resume_content: str = ""
    current_question_index: int = 0
    questions: List[Question] = Field(default_factory=list)
    current_answer: str = ""
    time_left: int = 0
    answers: List[AnsweredQuestion] = Field(default_factory=list)
    interview_started: bool = False
    interview_completed: bool = False
    exited_fullscreen: bool = False
    started_at: float = 0.0
    last_active_at: float = 0.0
    question_started_at: float = 0.0

    @property
    def is_active(self) -> bool:
        return self.interview_started and not self.interview_completed

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None


class InterviewResult(_CamelModel):
    """Final outcome of an interview, success or fallback."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    score: float = Field(ge=0, le=100)
    summary: str
    answers: List[AnsweredQuestion]
    ai_evaluation: Optional[Dict[str, Any]] = None
    completed_at: str
    recommendation: str = Recommendation.NO_HIRE.value


class SessionView(_CamelModel):
    """What the candidate UI needs to render the interview screen."""

    session: InterviewSession
    awaiting_resume_decision: bool = False
    restored: bool = False
    evaluating: bool = False
    result: Optional[InterviewResult] = None


class AnswerDraft(BaseModel):
    text: str = ""


class SubmitAnswerRequest(BaseModel):
    text: Optional[str] = Field(default=None, description="Candidate answer; the draft is used when omitted")
    question_index: Optional[int] = Field(default=None, ge=0, description="Index of the question being answered")


class UnloadResponse(BaseModel):
    saved: bool
    confirm_message: Optional[str] = None


class NavigationState(_CamelModel):
    stage: AppStage = AppStage.UPLOAD
    candidate_id: Optional[str] = None
