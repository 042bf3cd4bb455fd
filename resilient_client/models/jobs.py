"""
Models describing the single long-running job tracked per session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


class JobRecord(BaseModel):
    """Persisted identity and last known state of a server-side job."""

    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(..., alias="jobId")
    status: JobStatus = JobStatus.PENDING
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="startedAt"
    )
    last_polled_at: Optional[datetime] = Field(None, alias="lastPolledAt")
    result_ref: Optional[str] = Field(None, alias="resultRef")
    error_message: Optional[str] = Field(None, alias="errorMessage")
    result: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(slots=True)
class JobEvent:
    """Notification handed to subscribers once a job reaches a terminal state."""

    kind: Literal["completed", "failed"]
    record: JobRecord


__all__ = ["JobEvent", "JobRecord", "JobStatus"]
