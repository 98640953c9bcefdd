import pytest

from interview_backend.app.schemas.interview import InterviewSession
from interview_backend.app.services.answer_collector import (
    TIMEOUT_SENTINEL,
    AnswerCollector,
    is_timed_out,
)
from interview_backend.app.services.errors import EmptyAnswerError, InvalidSessionStateError
from interview_backend.app.services.question_sequencer import default_questions


def _session(started_at: float = 100.0) -> InterviewSession:
    return InterviewSession(
        candidate_id="cand-1",
        candidate_name="Jane Doe",
        questions=default_questions(),
        interview_started=True,
        question_started_at=started_at,
    )


def test_manual_blank_answer_is_rejected(clock):
    session = _session()
    collector = AnswerCollector(session, clock)

    with pytest.raises(EmptyAnswerError):
        collector.submit("   ")
    assert session.answers == []


@pytest.mark.parametrize("text", ["", "  \n "])
def test_auto_submit_substitutes_sentinel(clock, text):
    session = _session()
    record = AnswerCollector(session, clock).submit(text, auto_submit=True, at=120.0)

    assert record.answer == TIMEOUT_SENTINEL
    assert is_timed_out(record.answer)
    assert record.time_spent == 20


def test_auto_submit_keeps_partial_answer(clock):
    session = _session()
    record = AnswerCollector(session, clock).submit("JavaScript XML", auto_submit=True, at=120.0)
    assert record.answer == "JavaScript XML"
    assert not is_timed_out(record.answer)


def test_time_spent_is_floored(clock):
    session = _session(started_at=100.0)
    record = AnswerCollector(session, clock).submit("answer", at=112.7)

    assert record.time_spent == 12
    assert record.question == session.questions[0].question
    assert session.answers == [record]


def test_time_spent_never_negative(clock):
    session = _session(started_at=100.0)
    record = AnswerCollector(session, clock).submit("answer", at=99.0)
    assert record.time_spent == 0


def test_question_is_answered_once(clock):
    session = _session()
    collector = AnswerCollector(session, clock)
    collector.submit("first", at=105.0)

    with pytest.raises(InvalidSessionStateError):
        collector.submit("second", at=106.0)
    assert [a.answer for a in session.answers] == ["first"]
