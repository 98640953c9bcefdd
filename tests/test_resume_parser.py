import io

import pytest
from docx import Document

from interview_backend.app.schemas.candidate import ParseConfidence
from interview_backend.app.services.resume_parser import (
    parse_resume,
    validate_and_enhance,
    validate_contact,
)

RESUME_TEXT = (
    "Jane Doe\n"
    "Senior Full-Stack Developer\n"
    "jane.doe@example.com | +1 555 123 4567\n"
    "https://github.com/janedoe\n"
    "React, Node.js, PostgreSQL\n"
)


def test_plain_text_resume():
    parsed = parse_resume(RESUME_TEXT.encode(), "resume.txt")

    assert parsed.name == "Jane Doe"
    assert parsed.email == "jane.doe@example.com"
    assert parsed.phone == "+1 555 123 4567"
    assert parsed.confidence == ParseConfidence.HIGH
    assert parsed.missing_fields == []
    assert "React" in parsed.text


def test_docx_resume():
    document = Document()
    for line in RESUME_TEXT.splitlines():
        document.add_paragraph(line)
    buffer = io.BytesIO()
    document.save(buffer)

    parsed = parse_resume(buffer.getvalue(), "resume.docx")
    assert parsed.name == "Jane Doe"
    assert parsed.email == "jane.doe@example.com"


@pytest.mark.parametrize(
    "content, filename",
    [
        (b"%PDF-1.4 this is not really a pdf", "resume.pdf"),
        (b"MZ\x90\x00binary", "resume.exe"),
        (b"", "empty.txt"),
    ],
)
def test_unreadable_files_fall_back_to_manual_entry(content, filename):
    parsed = parse_resume(content, filename)

    assert parsed.text == f"Resume uploaded: {filename}. Please enter your details manually."
    assert parsed.name == parsed.email == parsed.phone == ""
    assert parsed.missing_fields == ["name", "email", "phone"]
    assert parsed.confidence == ParseConfidence.LOW


def test_confidence_grading():
    assert validate_and_enhance("", "a@b.io", "5551234567", "t").confidence == ParseConfidence.MEDIUM
    assert validate_and_enhance("Jane", "", "5551234567", "t").confidence == ParseConfidence.MEDIUM
    assert validate_and_enhance("", "", "5551234567", "t").confidence == ParseConfidence.LOW
    only_name = validate_and_enhance("Jane", "", "", "t")
    assert only_name.confidence == ParseConfidence.LOW
    assert only_name.missing_fields == ["email", "phone"]


def test_validate_contact_lists_missing_fields():
    assert validate_contact("", " ", None) == ["Full Name", "Email Address", "Phone Number"]
    assert validate_contact("Jane Doe", "", "5551234567") == ["Email Address"]


def test_validate_contact_formats():
    assert validate_contact("Jane Doe", "jane@example.com", "(555) 123-4567") == []
    assert validate_contact("Jane Doe", "jane@example", "555-1234") == [
        "Please provide a valid email address.",
        "Please provide a valid phone number (at least 10 digits).",
    ]
