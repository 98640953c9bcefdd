import json
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["CLOCK_ENABLED"] = "false"
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest

import interview_backend.app.models  # noqa: E402,F401
from interview_backend.app.database import Base, engine


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedScorer:
    """Returns the queued replies in order; an Exception instance is raised instead."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts: list[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        return reply


class RecordingPersister:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list = []

    def attach_result(self, candidate_id, result):
        self.calls.append((candidate_id, result))
        if self.fail:
            raise RuntimeError("database unavailable")
        return result


def evaluation_json(score=82, recommendation="Hire", count=6, summary="Solid fundamentals."):
    return json.dumps(
        {
            "overallScore": score,
            "individualScores": [
                {"questionIndex": i, "score": score, "feedback": f"feedback {i}"} for i in range(count)
            ],
            "strengths": ["React basics", "Clear communication"],
            "improvements": ["System design depth"],
            "recommendation": recommendation,
            "summary": summary,
        }
    )


@pytest.fixture(autouse=True)
def db_schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    return []
