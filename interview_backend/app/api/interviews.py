# interview_backend/app/api/interviews.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional, Tuple, TypeVar

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from interview_backend.app.schemas.interview import (
    AnswerDraft,
    AppStage,
    NavigationState,
    SessionView,
    SubmitAnswerRequest,
    UnloadResponse,
)
from interview_backend.app.services.errors import (
    CandidateNotFoundError,
    EmptyAnswerError,
    InvalidSessionStateError,
)
from interview_backend.app.services.evaluation_client import EvaluationClient
from interview_backend.app.services.integrity_monitor import get_fullscreen_controller
from interview_backend.app.services.interview_session import InterviewSessionEngine, SessionRegistry
from interview_backend.app.services.result_persister import (
    DatabaseResultPersister,
    ResultPersister,
    get_candidate,
    load_result,
)
from interview_backend.app.services.session_store import SessionStore, get_storage

logger = logging.getLogger(__name__)

router = APIRouter()
navigation_router = APIRouter()

registry = SessionRegistry()

_store: Optional[SessionStore] = None
_evaluator: Optional[EvaluationClient] = None

T = TypeVar("T")


def get_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore(get_storage())
    return _store


def get_evaluator() -> EvaluationClient:
    global _evaluator
    if _evaluator is None:
        _evaluator = EvaluationClient()
    return _evaluator


def get_persister() -> ResultPersister:
    return DatabaseResultPersister()


def _build_engine(candidate_id: str, candidate_name: str, resume_content: str) -> InterviewSessionEngine:
    engine = InterviewSessionEngine(
        candidate_id,
        candidate_name,
        resume_content,
        store=get_store(),
        evaluator=get_evaluator(),
        persister=get_persister(),
        fullscreen=get_fullscreen_controller(),
        defer_completion=True,
    )
    outcome = engine.restore()
    logger.info(f"Session engine for {candidate_id} created ({outcome.status.value})")
    return engine


def _engine_for(candidate_id: str, db: Session) -> Tuple[InterviewSessionEngine, threading.RLock]:
    entry = registry.get(candidate_id)
    if entry is not None:
        return entry
    try:
        candidate = get_candidate(db, candidate_id)
    except CandidateNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")

    stored = load_result(candidate.interview_result)
    if stored is not None:
        # finished interviews are read from the database and not kept in the registry
        engine = InterviewSessionEngine(
            candidate.id,
            candidate.name,
            candidate.resume_content or "",
            store=get_store(),
            evaluator=get_evaluator(),
            persister=get_persister(),
        )
        engine.load_finished(stored)
        return engine, threading.RLock()
    return registry.get_or_create(
        candidate_id,
        lambda: _build_engine(candidate.id, candidate.name, candidate.resume_content or ""),
    )


def _guarded(engine: InterviewSessionEngine, lock: threading.RLock, action: Callable[[], T]) -> T:
    try:
        with lock:
            try:
                return action()
            except EmptyAnswerError as exc:
                raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=exc.message)
            except InvalidSessionStateError as exc:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    finally:
        # scoring runs outside the lock so other requests see the evaluating state
        if engine.claim_completion():
            registry.complete(engine)


def _remember_stage(stage: AppStage, candidate_id: Optional[str]) -> None:
    get_store().save_navigation(NavigationState(stage=stage, candidate_id=candidate_id))


def _finished_view(engine: InterviewSessionEngine, candidate_id: str) -> SessionView:
    view = engine.view()
    if view.result is not None:
        _remember_stage(AppStage.RESULTS, candidate_id)
    return view


@router.get("/{candidate_id}", response_model=SessionView)
def get_session(candidate_id: str, db: Session = Depends(get_db)):
    """Current session state; a saved interview is offered for resumption."""
    engine, lock = _engine_for(candidate_id, db)
    _guarded(engine, lock, engine.poll)
    return _finished_view(engine, candidate_id)


@router.post("/{candidate_id}/start", response_model=SessionView)
def start_interview(candidate_id: str, db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)
    _guarded(engine, lock, engine.start)
    _remember_stage(AppStage.INTERVIEW, candidate_id)
    return engine.view()


@router.post("/{candidate_id}/continue", response_model=SessionView)
def continue_interview(candidate_id: str, db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)
    _guarded(engine, lock, engine.continue_session)
    _remember_stage(AppStage.INTERVIEW, candidate_id)
    return engine.view()


@router.post("/{candidate_id}/restart", response_model=SessionView)
def restart_interview(candidate_id: str, db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)
    _guarded(engine, lock, engine.restart)
    return engine.view()


@router.put("/{candidate_id}/answer", response_model=SessionView)
def update_answer(candidate_id: str, draft: AnswerDraft = Body(...), db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)

    def _update() -> None:
        # a draft that arrives after its question timed out is dropped
        if engine.poll() is None:
            engine.update_answer(draft.text)

    _guarded(engine, lock, _update)
    return _finished_view(engine, candidate_id)


@router.post("/{candidate_id}/submit", response_model=SessionView)
def submit_answer(
    candidate_id: str,
    payload: Optional[SubmitAnswerRequest] = Body(default=None),
    db: Session = Depends(get_db),
):
    """Manual submit. Finishing the last question returns the final result."""
    engine, lock = _engine_for(candidate_id, db)
    request = payload or SubmitAnswerRequest()
    _guarded(engine, lock, lambda: engine.submit(request.text, question_index=request.question_index))
    return _finished_view(engine, candidate_id)


@router.post("/{candidate_id}/events/fullscreen-exit", response_model=SessionView)
def fullscreen_exit(candidate_id: str, db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)
    _guarded(engine, lock, engine.on_fullscreen_exit)
    return engine.view()


@router.post("/{candidate_id}/events/unload", response_model=UnloadResponse)
def unload(candidate_id: str, db: Session = Depends(get_db)):
    engine, lock = _engine_for(candidate_id, db)
    prompt = _guarded(engine, lock, engine.on_unload)
    return UnloadResponse(saved=prompt is not None, confirm_message=prompt)


@navigation_router.get("/navigation", response_model=NavigationState)
def get_navigation():
    return get_store().load_navigation()
