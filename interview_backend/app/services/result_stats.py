from __future__ import annotations

from typing import Iterable, List, Optional

from interview_backend.app.schemas.candidate import DashboardStats, ResultStats
from interview_backend.app.schemas.interview import InterviewResult
from interview_backend.app.services.answer_collector import is_timed_out


def verdict_for(score: float) -> str:
    if score >= 70:
        return "PASS"
    if score >= 50:
        return "AVERAGE"
    return "NEEDS WORK"


def result_stats(result: InterviewResult) -> ResultStats:
    answers = result.answers
    completed = sum(1 for a in answers if not is_timed_out(a.answer))
    average = round(sum(a.time_spent for a in answers) / len(answers)) if answers else 0
    return ResultStats(
        questions_answered=len(answers),
        completed=completed,
        average_time_spent=average,
        verdict=verdict_for(result.score),
    )


def dashboard_stats(results: Iterable[Optional[InterviewResult]]) -> DashboardStats:
    """Totals for the interviewer dashboard; ``None`` marks a pending candidate."""
    items = list(results)
    scores: List[float] = [r.score for r in items if r is not None]
    average = round(sum(scores) / len(scores), 1) if scores else 0.0
    return DashboardStats(
        total_candidates=len(items),
        completed_interviews=len(scores),
        pending_interviews=len(items) - len(scores),
        average_score=average,
    )
