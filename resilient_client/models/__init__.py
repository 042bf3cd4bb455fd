"""Domain models shared across the client services."""

from .jobs import JobEvent, JobRecord, JobStatus
from .tokens import Session, TokenInfo, TokenPair

__all__ = [
    "JobEvent",
    "JobRecord",
    "JobStatus",
    "Session",
    "TokenInfo",
    "TokenPair",
]
