import pytest

from interview_backend.app.schemas.interview import (
    AnsweredQuestion,
    AppStage,
    InterviewSession,
    NavigationState,
)
from interview_backend.app.services import session_store
from interview_backend.app.services.question_sequencer import default_questions
from interview_backend.app.services.session_store import (
    APP_STATE_KEY,
    LocalJsonStorage,
    MemoryStorage,
    RestoreStatus,
    SessionStore,
)

DAY = 24 * 3600


def _active_session(clock) -> InterviewSession:
    return InterviewSession(
        candidate_id="cand-1",
        candidate_name="Jane Doe",
        resume_content="React developer",
        questions=default_questions(),
        current_question_index=2,
        current_answer="JWT in an httpOnly cookie",
        time_left=41,
        answers=[
            AnsweredQuestion(question="What does JSX stand for?", answer="JavaScript XML", time_spent=6),
            AnsweredQuestion(question="npm vs yarn", answer="No answer provided (time ran out)", time_spent=20),
        ],
        interview_started=True,
        exited_fullscreen=True,
        started_at=clock.now - 60,
        question_started_at=clock.now - 19,
    )


def _store(clock, storage=None):
    return SessionStore(storage or MemoryStorage(), ttl_seconds=DAY, autosave_interval=5, clock=clock)


def test_round_trip_restores_every_field(clock):
    store = _store(clock)
    session = _active_session(clock)

    assert store.save(session) is True
    outcome = store.load("cand-1")

    assert outcome.status == RestoreStatus.RESTORED
    assert outcome.session.model_dump(exclude={"last_active_at"}) == session.model_dump(
        exclude={"last_active_at"}
    )
    assert outcome.session.last_active_at == clock.now


def test_snapshot_uses_candidate_key(clock):
    storage = MemoryStorage()
    _store(clock, storage).save(_active_session(clock))
    assert storage.get("interview_session_cand-1") is not None


def test_inactive_sessions_are_not_written(clock):
    storage = MemoryStorage()
    store = _store(clock, storage)
    session = _active_session(clock)

    session.interview_started = False
    assert store.save(session) is False

    session.interview_started = True
    session.interview_completed = True
    assert store.save(session) is False
    assert storage.get(SessionStore.key_for("cand-1")) is None


def test_missing_snapshot_is_fresh(clock):
    outcome = _store(clock).load("nobody")
    assert outcome.status == RestoreStatus.FRESH
    assert outcome.session is None


def test_expired_snapshot_is_discarded(clock):
    storage = MemoryStorage()
    store = _store(clock, storage)
    store.save(_active_session(clock))

    clock.advance(DAY + 1)
    outcome = store.load("cand-1")

    assert outcome.status == RestoreStatus.EXPIRED
    assert storage.get(SessionStore.key_for("cand-1")) is None


def test_snapshot_within_ttl_is_restored(clock):
    store = _store(clock)
    store.save(_active_session(clock))
    clock.advance(DAY - 1)
    assert store.load("cand-1").restored


def test_completed_snapshot_is_never_restored(clock):
    storage = MemoryStorage()
    session = _active_session(clock)
    session.interview_completed = True
    session.last_active_at = clock.now
    storage.set(SessionStore.key_for("cand-1"), session.model_dump_json(by_alias=True))

    outcome = _store(clock, storage).load("cand-1")
    assert outcome.status == RestoreStatus.DISCARDED
    assert storage.get(SessionStore.key_for("cand-1")) is None


def test_corrupt_snapshot_is_discarded(clock):
    storage = MemoryStorage()
    storage.set(SessionStore.key_for("cand-1"), "{not json")

    outcome = _store(clock, storage).load("cand-1")
    assert outcome.status == RestoreStatus.DISCARDED
    assert storage.get(SessionStore.key_for("cand-1")) is None


def test_heartbeat_respects_interval(clock):
    store = _store(clock)
    session = _active_session(clock)
    store.save(session)

    clock.advance(2)
    assert store.heartbeat(session) is False
    clock.advance(4)
    assert store.heartbeat(session) is True


def test_clear_removes_snapshot(clock):
    storage = MemoryStorage()
    store = _store(clock, storage)
    store.save(_active_session(clock))
    store.clear("cand-1")
    assert store.load("cand-1").status == RestoreStatus.FRESH


def test_storage_failure_does_not_raise(clock):
    class BrokenStorage(MemoryStorage):
        def set(self, key, value):
            raise OSError("disk full")

    assert _store(clock, BrokenStorage()).save(_active_session(clock)) is False


def test_navigation_state_round_trip(clock):
    storage = MemoryStorage()
    store = _store(clock, storage)
    assert store.load_navigation() == NavigationState()

    store.save_navigation(NavigationState(stage=AppStage.INTERVIEW, candidate_id="cand-1"))
    state = store.load_navigation()
    assert state.stage == AppStage.INTERVIEW
    assert state.candidate_id == "cand-1"

    storage.set(APP_STATE_KEY, "garbage")
    assert store.load_navigation().stage == AppStage.UPLOAD


def test_local_json_storage(tmp_path):
    storage = LocalJsonStorage(tmp_path)
    assert storage.get("interview_session_a") is None

    storage.set("interview_session_a", '{"x": 1}')
    assert storage.get("interview_session_a") == '{"x": 1}'
    assert (tmp_path / "interview_session_a.json").exists()

    storage.remove("interview_session_a")
    storage.remove("interview_session_a")
    assert storage.get("interview_session_a") is None


def test_get_storage_backends(monkeypatch, tmp_path):
    monkeypatch.setattr(session_store.settings, "STORAGE_BACKEND", "memory")
    assert isinstance(session_store.get_storage(), MemoryStorage)

    monkeypatch.setattr(session_store.settings, "STORAGE_BACKEND", "local")
    monkeypatch.setattr(session_store.settings, "SESSION_STORAGE_DIR", tmp_path)
    assert isinstance(session_store.get_storage(), LocalJsonStorage)

    monkeypatch.setattr(session_store.settings, "STORAGE_BACKEND", "redis")
    with pytest.raises(RuntimeError):
        session_store.get_storage()
