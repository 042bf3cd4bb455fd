"""
Single source of truth for the current credentials.

The in-memory copy is authoritative for the running process; durable storage
is a mirror that lets a restarted client resume the session.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Optional, Protocol

from pydantic import ValidationError

from resilient_client.models import Session, TokenPair

logger = logging.getLogger(__name__)

TOKENS_KEY = "tokens"
USER_ID_KEY = "userId"


class DurableStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class TokenStore:
    """Holds the current ``TokenPair`` and mirrors it to durable storage."""

    def __init__(self, storage: DurableStorage) -> None:
        self._storage = storage
        self._tokens: TokenPair | None = None
        self._user_id: str | None = None

    def load(self) -> Optional[Session]:
        """Hydrate memory from durable storage; call once on start-up."""
        self._tokens, self._user_id = self._read_storage()
        if self._tokens is not None:
            logger.info("Restored persisted session", extra={"user_id": self._user_id})
        return self.session

    def sync_from_storage(self) -> Optional[Session]:
        """Adopt whatever another client instance last wrote to storage."""
        return self.load()

    def get(self) -> Optional[TokenPair]:
        return self._tokens

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def access_token(self) -> Optional[str]:
        return self._tokens.access_token if self._tokens else None

    @property
    def refresh_token(self) -> Optional[str]:
        return self._tokens.refresh_token if self._tokens else None

    @property
    def session(self) -> Optional[Session]:
        if self._tokens is None or not self._user_id:
            return None
        return Session(user_id=self._user_id, tokens=self._tokens)

    def set(self, tokens: TokenPair, user_id: Optional[str] = None) -> None:
        """Store a new pair; the in-memory copy is updated even if persisting fails."""
        self._tokens = tokens
        if user_id:
            self._user_id = user_id
        try:
            self._storage.set_item(TOKENS_KEY, tokens.model_dump_json())
            if self._user_id:
                self._storage.set_item(USER_ID_KEY, self._user_id)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to persist tokens; session will not survive a restart")

    def clear(self) -> None:
        self._tokens = None
        self._user_id = None
        try:
            self._storage.remove_item(TOKENS_KEY)
            self._storage.remove_item(USER_ID_KEY)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to remove persisted tokens")

    def _read_storage(self) -> tuple[Optional[TokenPair], Optional[str]]:
        raw_tokens = self._storage.get_item(TOKENS_KEY)
        user_id = self._storage.get_item(USER_ID_KEY) or None
        if not raw_tokens:
            return None, user_id
        try:
            tokens = TokenPair.model_validate(json.loads(raw_tokens))
        except (ValueError, ValidationError):
            logger.warning("Discarding unreadable persisted tokens")
            self._storage.remove_item(TOKENS_KEY)
            return None, user_id
        return tokens, user_id


__all__ = ["DurableStorage", "TOKENS_KEY", "TokenStore", "USER_ID_KEY"]
