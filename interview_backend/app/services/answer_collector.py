from __future__ import annotations

import math
from typing import Callable, Optional

from interview_backend.app.schemas.interview import AnsweredQuestion, InterviewSession
from interview_backend.app.services.errors import EmptyAnswerError, InvalidSessionStateError

TIMEOUT_SENTINEL = "No answer provided (time ran out)"


def is_timed_out(answer: str) -> bool:
    return answer == TIMEOUT_SENTINEL


class AnswerCollector:
    """Turns the candidate's current text into an immutable answer record."""

    def __init__(self, session: InterviewSession, clock: Callable[[], float]) -> None:
        self.session = session
        self._clock = clock

    def submit(self, text: str, auto_submit: bool = False, at: Optional[float] = None) -> AnsweredQuestion:
        session = self.session
        question = session.current_question
        if question is None:
            raise InvalidSessionStateError("No active question")
        if len(session.answers) != session.current_question_index:
            raise InvalidSessionStateError(
                f"Question {session.current_question_index + 1} was already answered"
            )

        text = text or ""
        if not text.strip():
            if not auto_submit:
                raise EmptyAnswerError("Answer must not be empty")
            text = TIMEOUT_SENTINEL

        at = self._clock() if at is None else at
        time_spent = max(0, math.floor(at - session.question_started_at))

        record = AnsweredQuestion(question=question.question, answer=text, time_spent=time_spent)
        session.answers.append(record)
        return record
