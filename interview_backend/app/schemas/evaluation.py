# interview_backend/app/schemas/evaluation.py
"""Pydantic v2 schemas for the AI scoring contract."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .interview import AnsweredQuestion


class IndividualScore(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_index: int
    score: float = Field(ge=0, le=100, allow_inf_nan=False)
    feedback: str


class EvaluationRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    answers: List[AnsweredQuestion]
    candidate_name: str
    resume_content: str = ""


class EvaluationResponse(BaseModel):
    """Scorer output after sanitizing and structural validation."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    overall_score: float = Field(allow_inf_nan=False)
    individual_scores: List[IndividualScore]
    strengths: List[str] = Field(default_factory=list)
    improvements: List[str] = Field(default_factory=list)
    recommendation: str
    summary: str
