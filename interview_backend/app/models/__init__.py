# interview_backend/app/models/__init__.py
from .candidate import Candidate

__all__ = ["Candidate"]
