"""
Tracks the one long-running server-side job a session may have in flight.

The job's identity is written to durable storage as soon as it is accepted so
that a restarted client can pick polling back up through ``recover()``.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

from pydantic import ValidationError

from resilient_client.core.config import JobSettings
from resilient_client.core.errors import JobAlreadyActiveError, SessionInvalidError
from resilient_client.models import JobEvent, JobRecord, JobStatus
from resilient_client.schemas import JobStatusResponse
from resilient_client.services.gateway import Gateway
from resilient_client.services.token_store import DurableStorage

logger = logging.getLogger(__name__)

ACTIVE_JOB_KEY = "activeGeneration"

JobSubscriber = Callable[[JobEvent], Union[Awaitable[None], None]]


class JobTracker:
    """Poll a single job until it completes or fails, surviving restarts."""

    def __init__(
        self,
        gateway: Gateway,
        storage: DurableStorage,
        settings: JobSettings,
    ) -> None:
        self._gateway = gateway
        self._storage = storage
        self._settings = settings
        self._record: JobRecord | None = None
        self._task: asyncio.Task[None] | None = None
        self._subscribers: list[JobSubscriber] = []
        self._finishing: set[asyncio.Task[Any]] = set()

    @property
    def active(self) -> Optional[JobRecord]:
        return self._record

    @property
    def polling(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: JobSubscriber) -> None:
        self._subscribers.append(callback)

    async def start(self, job_id: str) -> JobRecord:
        """Begin tracking ``job_id``; rejects while another job is unfinished."""
        existing = self._record or self._read_persisted()
        if existing is not None and not existing.is_terminal:
            raise JobAlreadyActiveError(existing.job_id)

        record = JobRecord(job_id=job_id, status=JobStatus.PENDING)
        self._record = record
        self._persist(record)
        logger.info("Tracking job", extra={"job_id": job_id})
        self._start_polling(immediate=False)
        return record

    async def recover(self) -> Optional[JobRecord]:
        """Resume a job persisted by a previous run; call once at start-up."""
        record = self._read_persisted()
        if record is None:
            return None
        self._record = record
        if record.is_terminal:
            # The previous run stopped between the terminal poll and cleanup.
            await self._finish(record, delay=0)
            return record
        logger.info(
            "Resuming job after restart",
            extra={"job_id": record.job_id, "status": record.status.value},
        )
        self._start_polling(immediate=True)
        return record

    async def cancel(self) -> None:
        """Stop polling and forget the job; the remote job keeps running."""
        await self.stop()
        if self._record is not None:
            logger.info("Job tracking cancelled", extra={"job_id": self._record.job_id})
        self._record = None
        self._remove_persisted()

    async def stop(self) -> None:
        """Stop polling but keep the persisted record for a later ``recover()``."""
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        await asyncio.wait({task})

    async def join(self) -> None:
        """Wait until the polling loop ends."""
        if self._task is not None:
            await asyncio.wait({self._task})

    async def poll(self) -> bool:
        """Issue one status request; returns True once polling should stop."""
        record = self._record
        if record is None:
            return True

        path = f"/{self._settings.resource}/{record.job_id}/status"
        result = await self._gateway.get(path)
        if not result.ok:
            if isinstance(result.error, SessionInvalidError):
                logger.warning(
                    "Session ended while polling; job kept for recovery",
                    extra={"job_id": record.job_id},
                )
                return True
            logger.warning(
                "Status poll failed; retrying next interval",
                extra={"job_id": record.job_id, "error": str(result.error)},
            )
            return False

        try:
            status = JobStatusResponse.model_validate(result.data)
        except ValidationError:
            logger.warning(
                "Unrecognised status payload; retrying next interval",
                extra={"job_id": record.job_id},
            )
            return False

        self._apply_status(record, status)
        self._persist(record)
        if not record.is_terminal:
            return False

        logger.info(
            "Job reached terminal state",
            extra={"job_id": record.job_id, "status": record.status.value},
        )
        current = asyncio.current_task()
        if current is not None:
            self._finishing.add(current)
        try:
            await self._finish(record, delay=self._settings.completion_delay_seconds)
        finally:
            self._finishing.discard(current)  # type: ignore[arg-type]
        return True

    def _start_polling(self, *, immediate: bool) -> None:
        task = self._task
        # A loop that is delivering a terminal event is left to finish on its own.
        if (
            task is not None
            and not task.done()
            and task is not asyncio.current_task()
            and task not in self._finishing
        ):
            task.cancel()
        self._task = asyncio.create_task(self._poll_loop(immediate=immediate))

    async def _poll_loop(self, *, immediate: bool) -> None:
        interval = self._settings.poll_interval_seconds
        if not immediate:
            await asyncio.sleep(interval)
        while not await self.poll():
            await asyncio.sleep(interval)

    @staticmethod
    def _apply_status(record: JobRecord, status: JobStatusResponse) -> None:
        fields = status.result_fields()
        record.status = status.status
        record.last_polled_at = datetime.now(timezone.utc)
        record.result = fields
        if fields.get("id") is not None:
            record.result_ref = str(fields["id"])
        if status.status is JobStatus.FAILED:
            record.error_message = status.error or "Job failed"

    async def _finish(self, record: JobRecord, *, delay: float) -> None:
        if delay:
            await asyncio.sleep(delay)
        kind = "completed" if record.status is JobStatus.COMPLETED else "failed"
        await self._emit(JobEvent(kind=kind, record=record))
        # A subscriber may already have cancelled or replaced this job.
        if self._record is record:
            self._record = None
            self._remove_persisted()

    async def _emit(self, event: JobEvent) -> None:
        for callback in list(self._subscribers):
            try:
                outcome: Any = callback(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(
                    "Job subscriber failed", extra={"job_id": event.record.job_id}
                )

    def _read_persisted(self) -> Optional[JobRecord]:
        raw = self._storage.get_item(ACTIVE_JOB_KEY)
        if not raw:
            return None
        try:
            return JobRecord.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            logger.warning("Discarding unreadable persisted job record")
            self._remove_persisted()
            return None

    def _persist(self, record: JobRecord) -> None:
        try:
            self._storage.set_item(
                ACTIVE_JOB_KEY, record.model_dump_json(by_alias=True)
            )
        except (sqlite3.Error, OSError):
            logger.exception(
                "Failed to persist job record", extra={"job_id": record.job_id}
            )

    def _remove_persisted(self) -> None:
        try:
            self._storage.remove_item(ACTIVE_JOB_KEY)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to remove persisted job record")


__all__ = ["ACTIVE_JOB_KEY", "JobSubscriber", "JobTracker"]
