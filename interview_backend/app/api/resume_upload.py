# interview_backend/app/api/resume_upload.py
from fastapi import APIRouter, File, HTTPException, UploadFile

from interview_backend.app.schemas.candidate import ParsedResume
from interview_backend.app.services.resume_parser import parse_resume

router = APIRouter()

MAX_RESUME_BYTES = 10 * 1024 * 1024


@router.post("/parse", response_model=ParsedResume)
async def parse_uploaded_resume(file: UploadFile = File(...)):
    """Extract contact details from a résumé for the candidate to confirm."""
    content = await file.read()
    if len(content) > MAX_RESUME_BYTES:
        raise HTTPException(status_code=413, detail="Resume file is too large")
    return parse_resume(content, file.filename or "resume")
