import pytest

from interview_backend.app.schemas.interview import Difficulty, InterviewSession
from interview_backend.app.services.question_sequencer import (
    DEFAULT_QUESTIONS,
    QuestionSequencer,
    validate_questions,
)
from interview_backend.app.services.timer_engine import CountdownTimer, TimerState


def test_default_questions_layout():
    assert [q.difficulty for q in DEFAULT_QUESTIONS] == [
        Difficulty.EASY,
        Difficulty.EASY,
        Difficulty.MEDIUM,
        Difficulty.MEDIUM,
        Difficulty.HARD,
        Difficulty.HARD,
    ]
    assert [q.time_limit for q in DEFAULT_QUESTIONS] == [20, 20, 60, 60, 120, 120]
    assert DEFAULT_QUESTIONS[0].question == "What does JSX stand for?"


def test_empty_question_list_is_rejected():
    with pytest.raises(ValueError):
        validate_questions([])


def _sequencer(clock):
    session = InterviewSession(
        candidate_id="cand-1",
        candidate_name="Jane Doe",
        questions=list(DEFAULT_QUESTIONS),
        current_answer="left over",
    )
    timer = CountdownTimer()
    return session, timer, QuestionSequencer(session, timer, clock)


def test_start_activates_first_question(clock):
    session, timer, sequencer = _sequencer(clock)
    sequencer.start()

    assert session.current_question_index == 0
    assert session.time_left == 20
    assert session.current_answer == ""
    assert session.question_started_at == clock.now
    assert timer.state == TimerState.RUNNING
    assert timer.remaining == 20


def test_advance_resets_timer_for_next_question(clock):
    session, timer, sequencer = _sequencer(clock)
    sequencer.start()
    clock.advance(7)
    session.current_answer = "typed"

    assert sequencer.advance() is False
    assert session.current_question_index == 1
    assert session.current_answer == ""
    assert session.question_started_at == clock.now
    assert timer.remaining == 20

    sequencer.advance()
    assert session.time_left == 60


def test_advance_on_last_question_signals_finish(clock):
    session, timer, sequencer = _sequencer(clock)
    sequencer.start()
    for _ in range(5):
        assert sequencer.advance() is False

    assert sequencer.is_last
    assert sequencer.advance() is True
    assert session.current_question_index == 5
    assert timer.armed is False
