# interview_backend/app/api/candidates.py
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from interview_backend.app.schemas.candidate import (
    CandidateCreate,
    CandidateResponse,
    DashboardStats,
    ResultDetail,
    ResultStatus,
)
from interview_backend.app.schemas.interview import InterviewResult
from interview_backend.app.services import result_persister
from interview_backend.app.services.errors import CandidateNotFoundError
from interview_backend.app.services.result_stats import dashboard_stats, result_stats
from interview_backend.app.services.resume_parser import validate_contact


router = APIRouter()


@router.post("", response_model=CandidateResponse, status_code=status.HTTP_201_CREATED)
def create_candidate(payload: CandidateCreate = Body(...), db: Session = Depends(get_db)):
    problems = validate_contact(payload.name, payload.email, payload.phone)
    if problems:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": "Please fill in all required fields", "fields": problems},
        )
    candidate = result_persister.create_candidate(db, payload)
    return result_persister.to_candidate_response(candidate)


@router.get("", response_model=List[CandidateResponse])
def list_candidates(
    search: Optional[str] = Query(default=None, max_length=255),
    status_filter: ResultStatus = Query(default=ResultStatus.ALL, alias="status"),
    db: Session = Depends(get_db),
):
    candidates = result_persister.list_candidates(db, search=search, status=status_filter)
    return [result_persister.to_candidate_response(c) for c in candidates]


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(db: Session = Depends(get_db)):
    candidates = result_persister.list_candidates(db)
    return dashboard_stats(result_persister.load_result(c.interview_result) for c in candidates)


@router.post("/{candidate_id}/results", response_model=CandidateResponse)
def save_results(candidate_id: str, result: InterviewResult = Body(...), db: Session = Depends(get_db)):
    try:
        candidate = result_persister.attach_result(db, candidate_id, result)
    except CandidateNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return result_persister.to_candidate_response(candidate)


@router.get("/{candidate_id}/results", response_model=ResultDetail)
def get_results(candidate_id: str, db: Session = Depends(get_db)):
    try:
        result = result_persister.get_result(db, candidate_id)
    except CandidateNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Candidate not found")
    return ResultDetail(
        candidate_id=candidate_id,
        result=result,
        stats=result_stats(result) if result is not None else None,
    )
