# Copyright (c) 2026 Harsh Dwivedi
# Licensed under the Harsh Non-Commercial Attribution License (HNCAL) v1.0
# Commercial use requires written permission. See LICENSE for details.

"""
PromptSeg: Interactive Session Registry
Thread-safe in-process map of session_id → InteractiveSession.

Sessions hold image embeddings in memory, so the registry is bounded:
once max_sessions is reached the least recently created session is
evicted. All data is lost on process restart.
"""

from __future__ import annotations

import threading
import uuid
from collections import OrderedDict

from promptseg.api.middleware.error_handler import SessionNotFoundError
from promptseg.core.interactive_session import InteractiveSession
from promptseg.utils.logger import get_logger

log = get_logger(__name__)


class SessionStore:
    def __init__(self, max_sessions: int = 16) -> None:
        if max_sessions <= 0:
            raise ValueError(f"max_sessions must be positive, got {max_sessions}")
        self._max_sessions = max_sessions
        self._store: OrderedDict[str, InteractiveSession] = OrderedDict()
        self._lock = threading.RLock()

    def add(self, session: InteractiveSession) -> str:
        """Register a session and return its new id."""
        session_id = str(uuid.uuid4())
        with self._lock:
            while len(self._store) >= self._max_sessions:
                evicted, _ = self._store.popitem(last=False)
                log.info("session_evicted", session_id=evicted)
            self._store[session_id] = session
        log.info("session_created", session_id=session_id, active=len(self._store))
        return session_id

    def get(self, session_id: str) -> InteractiveSession:
        with self._lock:
            session = self._store.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._store.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        log.info("session_deleted", session_id=session_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._store
