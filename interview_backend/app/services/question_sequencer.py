from __future__ import annotations

import logging
from typing import Callable, List, Sequence

from interview_backend.app.schemas.interview import Difficulty, InterviewSession, Question
from interview_backend.app.services.errors import InvalidSessionStateError
from interview_backend.app.services.timer_engine import CountdownTimer

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS: tuple[Question, ...] = (
    Question(
        id="1",
        question="What does JSX stand for?",
        difficulty=Difficulty.EASY,
        time_limit=20,
    ),
    Question(
        id="2",
        question="Explain the difference between npm and yarn package managers.",
        difficulty=Difficulty.EASY,
        time_limit=20,
    ),
    Question(
        id="3",
        question="How would you implement user authentication in a React/Node.js application? Describe the flow.",
        difficulty=Difficulty.MEDIUM,
        time_limit=60,
    ),
    Question(
        id="4",
        question="Explain React hooks like useState and useEffect. When would you use each?",
        difficulty=Difficulty.MEDIUM,
        time_limit=60,
    ),
    Question(
        id="5",
        question=(
            "Design a real-time chat application architecture using React and Node.js. "
            "What technologies would you use and why?"
        ),
        difficulty=Difficulty.HARD,
        time_limit=120,
    ),
    Question(
        id="6",
        question=(
            "How would you optimize a React application for performance? "
            "Explain lazy loading, memoization, and other techniques."
        ),
        difficulty=Difficulty.HARD,
        time_limit=120,
    ),
)


def default_questions() -> List[Question]:
    return list(DEFAULT_QUESTIONS)


def validate_questions(questions: Sequence[Question]) -> List[Question]:
    items = list(questions)
    if not items:
        raise ValueError("An interview needs at least one question")
    return items


class QuestionSequencer:
    """Walks the session through its question list and keeps the timer in step."""

    def __init__(
        self,
        session: InterviewSession,
        timer: CountdownTimer,
        clock: Callable[[], float],
    ) -> None:
        self.session = session
        self.timer = timer
        self._clock = clock

    @property
    def is_last(self) -> bool:
        return self.session.current_question_index >= len(self.session.questions) - 1

    def start(self) -> Question:
        if not self.session.questions:
            raise InvalidSessionStateError("Session has no questions")
        self.session.current_question_index = 0
        return self._activate()

    def advance(self) -> bool:
        """
        Move past the current question.

        Returns True when the question just answered was the last one; the
        caller must then finalize the interview. Otherwise the next question is
        activated and False is returned.
        """
        if self.is_last:
            self.timer.cancel()
            return True
        self.session.current_question_index += 1
        self._activate()
        return False

    def _activate(self) -> Question:
        question = self.session.questions[self.session.current_question_index]
        now = self._clock()
        self.session.current_answer = ""
        self.session.time_left = question.time_limit
        self.session.question_started_at = now
        self.timer.reset(question.time_limit, now)
        logger.info(
            f"Candidate {self.session.candidate_id}: question "
            f"{self.session.current_question_index + 1}/{len(self.session.questions)} "
            f"({question.difficulty.value}, {question.time_limit}s)"
        )
        return question
