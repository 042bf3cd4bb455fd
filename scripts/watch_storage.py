"""Watch the durable client storage to visualize session and job state."""

from __future__ import annotations

import json
import sqlite3
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from resilient_client.clients.storage import SQLiteStorage
from resilient_client.core.config import get_settings
from resilient_client.services.job_tracker import ACTIVE_JOB_KEY
from resilient_client.services.token_store import TOKENS_KEY, USER_ID_KEY


def _print_header(title: str) -> None:
    line = "=" * len(title)
    print(f"\n{title}\n{line}")


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _describe_session(storage: SQLiteStorage) -> str:
    raw_tokens = storage.get_item(TOKENS_KEY)
    user_id = storage.get_item(USER_ID_KEY) or "-"
    if not raw_tokens:
        return "signed out"
    try:
        tokens = json.loads(raw_tokens)
        expires = tokens["access"]["expires"]
    except (ValueError, KeyError, TypeError):
        return f"user={user_id} | tokens unreadable"
    return f"user={user_id} | access expires {expires}"


def _describe_job(storage: SQLiteStorage) -> Optional[str]:
    raw = storage.get_item(ACTIVE_JOB_KEY)
    if not raw:
        return None
    try:
        record = json.loads(raw)
    except ValueError:
        return "unreadable job record"
    status = str(record.get("status", "unknown"))
    polled = record.get("lastPolledAt")
    return (
        f"job={record.get('jobId')} status → {status.upper()}"
        + (f" | last polled {polled}" if polled else "")
    )


def watch(poll_interval: float = 1.0) -> None:
    settings = get_settings()
    db_path = Path(settings.storage.db_path).expanduser()
    storage = SQLiteStorage(str(db_path))

    _print_header(f"Watching client storage at {db_path} (Ctrl+C to exit)")
    seen: Dict[str, Optional[str]] = {"session": None, "job": None}

    while True:
        try:
            session = _describe_session(storage)
            job = _describe_job(storage)
        except sqlite3.Error as exc:
            print(f"[{_timestamp()}] SQLite error: {exc}")
        else:
            if session != seen["session"]:
                print(f"[{_timestamp()}] SESSION {session}")
                seen["session"] = session
            if job != seen["job"]:
                print(f"[{_timestamp()}] JOB {job or 'none'}")
                seen["job"] = job

        time.sleep(poll_interval)


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        watch()
    except KeyboardInterrupt:
        print("\nStopped watching.")
