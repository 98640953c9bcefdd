from __future__ import annotations

import io
import logging
import re
from pathlib import Path
from typing import List, Optional

from docx import Document  # type: ignore[reportMissingTypeStubs]
from pdfminer.high_level import extract_text as pdf_extract_text

from interview_backend.app.schemas.candidate import ParseConfidence, ParsedResume

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_RE = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
NAME_RE = re.compile(r"^[A-Z][a-z]+(?:\s+[A-Z][a-z]+)+")
STRICT_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

MIN_PHONE_DIGITS = 10


class ResumeParseError(ValueError):
    pass


def _normalize_text(text: str) -> str:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    normalized = normalized.replace("\u00A0", " ").replace("\u202F", " ")
    normalized = re.sub(r"[ \t]+", " ", normalized)
    normalized = re.sub(r"\n[ \t]+", "\n", normalized)
    normalized = re.sub(r"\n{3,}", "\n\n", normalized)
    return normalized.strip()


def _is_pdf_bytes(blob: bytes) -> bool:
    return blob[:4] == b"%PDF"


def _is_docx_bytes(blob: bytes) -> bool:
    # docx is a zip container
    return blob[:2] == b"PK"


def _docx_text_from_bytes(blob: bytes) -> str:
    document = Document(io.BytesIO(blob))
    parts: list[str] = []
    for paragraph in document.paragraphs:
        if paragraph.text:
            parts.append(str(paragraph.text))
    for table in document.tables:
        for row in table.rows:
            cell_text = " ".join(str(cell.text) for cell in row.cells if cell.text)
            if cell_text:
                parts.append(cell_text)
    return "\n".join(parts)


def extract_text(data: bytes, filename: str = "") -> str:
    suffix = Path(filename).suffix.lower()
    if suffix == ".pdf" or _is_pdf_bytes(data):
        text = pdf_extract_text(io.BytesIO(data))
    elif suffix == ".docx" or _is_docx_bytes(data):
        text = _docx_text_from_bytes(data)
    elif suffix in {".txt", ".md", ""}:
        text = data.decode("utf-8", errors="ignore")
    else:
        raise ResumeParseError(f"Unsupported résumé format: {suffix}")
    return _normalize_text(text)


def extract_name(text: str) -> str:
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    for line in lines[:5]:
        if 3 < len(line) < 50 and "@" not in line and "http" not in line:
            match = NAME_RE.match(line)
            if match:
                return match.group(0)
    return ""


def extract_email(text: str) -> str:
    match = EMAIL_RE.search(text)
    return match.group(0) if match else ""


def extract_phone(text: str) -> str:
    match = PHONE_RE.search(text)
    return match.group(0).strip() if match else ""


def validate_and_enhance(name: str, email: str, phone: str, text: str) -> ParsedResume:
    """Record which contact fields are missing and grade the extraction."""
    missing: List[str] = []
    confidence = ParseConfidence.HIGH
    if not name:
        missing.append("name")
        confidence = ParseConfidence.MEDIUM
    if not email:
        missing.append("email")
        confidence = ParseConfidence.MEDIUM if confidence == ParseConfidence.HIGH else ParseConfidence.LOW
    if not phone:
        missing.append("phone")
        confidence = ParseConfidence.MEDIUM if confidence == ParseConfidence.HIGH else ParseConfidence.LOW
    return ParsedResume(
        name=name,
        email=email,
        phone=phone,
        text=text,
        confidence=confidence,
        missing_fields=missing,
    )


def manual_entry(filename: str) -> ParsedResume:
    return ParsedResume(
        text=f"Resume uploaded: {filename}. Please enter your details manually.",
        confidence=ParseConfidence.LOW,
        missing_fields=["name", "email", "phone"],
    )


def parse_resume(data: bytes, filename: str = "") -> ParsedResume:
    """
    Best-effort contact extraction from an uploaded résumé.

    Never raises for bad input: an unreadable or empty file yields the
    manual-entry result so the candidate can type the details in.
    """
    try:
        text = extract_text(data, filename)
    except Exception as exc:
        logger.warning(f"Resume parsing failed for {filename!r}: {exc}")
        return manual_entry(filename)
    if not text:
        return manual_entry(filename)
    return validate_and_enhance(extract_name(text), extract_email(text), extract_phone(text), text)


def validate_contact(name: Optional[str], email: Optional[str], phone: Optional[str]) -> List[str]:
    """
    Problems with confirmed contact data; empty when it is acceptable.

    Missing fields are reported first, by label; format checks only run once
    all three are present.
    """
    name, email, phone = (name or "").strip(), (email or "").strip(), (phone or "").strip()
    missing: List[str] = []
    if not name:
        missing.append("Full Name")
    if not email:
        missing.append("Email Address")
    if not phone:
        missing.append("Phone Number")
    if missing:
        return missing

    problems: List[str] = []
    if not STRICT_EMAIL_RE.match(email):
        problems.append("Please provide a valid email address.")
    if len(re.sub(r"\D", "", phone)) < MIN_PHONE_DIGITS:
        problems.append("Please provide a valid phone number (at least 10 digits).")
    return problems
