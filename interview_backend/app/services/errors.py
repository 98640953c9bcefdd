from typing import Any, Dict, Optional


class InterviewError(Exception):
    """Base class for interview domain errors raised by the services layer."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidSessionStateError(InterviewError):
    """The operation is not allowed in the session's current state."""


class EmptyAnswerError(InterviewError):
    """A manual submit arrived with a blank answer."""


class EvaluationError(InterviewError):
    """The scorer did not produce a valid evaluation within the attempt budget."""

    def __init__(self, message: str, attempts: int, details: Optional[Dict[str, Any]] = None):
        self.attempts = attempts
        super().__init__(message, details)


class CandidateNotFoundError(InterviewError, LookupError):
    def __init__(self, candidate_id: str):
        self.candidate_id = candidate_id
        super().__init__(f"Candidate {candidate_id} not found")
