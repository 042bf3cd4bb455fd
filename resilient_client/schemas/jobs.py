"""Schema for the job status endpoint."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from resilient_client.models import JobStatus


class JobStatusResponse(BaseModel):
    """``GET /{resource}/{jobId}/status``; extra result fields are preserved."""

    model_config = ConfigDict(extra="allow")

    status: JobStatus
    error: Optional[str] = None

    def result_fields(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


__all__ = ["JobStatusResponse"]
