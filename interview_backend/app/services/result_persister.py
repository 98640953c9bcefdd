from __future__ import annotations

import json
import logging
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Protocol

from pydantic import ValidationError
from sqlalchemy import or_
from sqlalchemy.orm import Session

from interview_backend.app.database import get_db_session
from interview_backend.app.models import Candidate
from interview_backend.app.schemas.candidate import CandidateCreate, CandidateResponse, ResultStatus
from interview_backend.app.schemas.interview import InterviewResult
from interview_backend.app.services.errors import CandidateNotFoundError

logger = logging.getLogger(__name__)


class ResultPersister(Protocol):
    def attach_result(self, candidate_id: str, result: InterviewResult) -> Any:
        ...


def load_result(raw: Any) -> Optional[InterviewResult]:
    """
    Read a stored result into an ``InterviewResult``.

    Rows written by older clients hold the result as a JSON string or as a
    one-element list; both are accepted. Anything unreadable reads as no result.
    """
    if raw is None or raw == "":
        return None
    if isinstance(raw, (bytes, str)):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("Stored interview result is not valid JSON; ignoring it")
            return None
    if isinstance(raw, list):
        raw = raw[0] if raw else None
    if not isinstance(raw, Mapping):
        return None
    try:
        return InterviewResult.model_validate(raw)
    except ValidationError as exc:
        logger.warning(f"Stored interview result is malformed; ignoring it: {exc}")
        return None


def dump_result(result: InterviewResult) -> dict:
    return result.model_dump(mode="json", by_alias=True)


def to_candidate_response(candidate: Candidate) -> CandidateResponse:
    return CandidateResponse(
        id=candidate.id,
        name=candidate.name,
        email=candidate.email,
        phone=candidate.phone,
        resume_content=candidate.resume_content,
        interview_result=load_result(candidate.interview_result),
        created_at=candidate.created_at,
        updated_at=candidate.updated_at,
    )


def create_candidate(db: Session, data: CandidateCreate) -> Candidate:
    candidate = Candidate(
        name=data.name.strip(),
        email=data.email.strip(),
        phone=data.phone.strip(),
        resume_content=data.resume_content,
    )
    db.add(candidate)
    db.commit()
    db.refresh(candidate)
    logger.info(f"Added candidate {candidate.id} ({candidate.name})")
    return candidate


def get_candidate(db: Session, candidate_id: str) -> Candidate:
    candidate = db.query(Candidate).filter(Candidate.id == candidate_id).first()
    if candidate is None:
        raise CandidateNotFoundError(candidate_id)
    return candidate


def list_candidates(
    db: Session,
    search: Optional[str] = None,
    status: ResultStatus = ResultStatus.ALL,
) -> List[Candidate]:
    """Newest first, optionally filtered by a name/email substring and result status."""
    query = db.query(Candidate)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(Candidate.name.ilike(pattern), Candidate.email.ilike(pattern)))
    candidates = query.order_by(Candidate.created_at.desc()).all()

    if status == ResultStatus.COMPLETED:
        return [c for c in candidates if load_result(c.interview_result) is not None]
    if status == ResultStatus.PENDING:
        return [c for c in candidates if load_result(c.interview_result) is None]
    return candidates


def attach_result(db: Session, candidate_id: str, result: InterviewResult) -> Candidate:
    """Overwrite the candidate's stored result."""
    candidate = get_candidate(db, candidate_id)
    candidate.interview_result = dump_result(result)
    candidate.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(candidate)
    logger.info(
        f"Saved interview result for {candidate.name}: {result.score} ({result.recommendation})"
    )
    return candidate


def get_result(db: Session, candidate_id: str) -> Optional[InterviewResult]:
    return load_result(get_candidate(db, candidate_id).interview_result)


class DatabaseResultPersister:
    """Result persister backed by the candidates table; one DB session per call."""

    def __init__(
        self,
        session_factory: Callable[[], AbstractContextManager[Session]] = get_db_session,
    ) -> None:
        self._session_factory = session_factory

    def attach_result(self, candidate_id: str, result: InterviewResult) -> CandidateResponse:
        with self._session_factory() as db:
            candidate = attach_result(db, candidate_id, result)
            return to_candidate_response(candidate)
