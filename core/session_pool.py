"""
Session Pool - one long-lived chat gateway session per bot credential.

Sessions are created on first use and kept for the life of the process.
Keepalive and reconnects belong to the session itself, not the pool.

Concurrent first use of the same credential connects exactly once: callers
take a per-credential init lock, re-check the registry, and only then connect.
Different credentials connect in parallel.
"""

import threading
from typing import Optional

from core.errors import PublishFailure
from core.logging_utils import get_logger
from core.ticker_interfaces import IChatSession, SessionConnector

logger = get_logger(__name__)


def _mask(credential: str) -> str:
    """Short, log-safe label for a bot token."""
    if len(credential) <= 8:
        return "***"
    return f"{credential[:4]}...{credential[-4:]}"


class SessionPool:
    def __init__(self, connector: SessionConnector):
        self._connector = connector
        self._sessions: dict[str, IChatSession] = {}
        self._init_locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)

    def _peek(self, credential: str) -> Optional[IChatSession]:
        with self._registry_lock:
            return self._sessions.get(credential)

    def _init_lock_for(self, credential: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._init_locks.get(credential)
            if lock is None:
                lock = threading.Lock()
                self._init_locks[credential] = lock
            return lock

    def get_or_create(self, credential: str) -> IChatSession:
        """Cached session for ``credential``, connecting on first use."""
        session = self._peek(credential)
        if session is not None:
            return session

        with self._init_lock_for(credential):
            # Another caller may have connected while we waited
            session = self._peek(credential)
            if session is not None:
                return session

            logger.info("[POOL] No session for %s, connecting...", _mask(credential))
            try:
                session = self._connector(credential)
            except PublishFailure:
                raise
            except Exception as e:
                raise PublishFailure("open gateway session", str(e)) from e

            with self._registry_lock:
                self._sessions[credential] = session
            logger.info("[POOL] Session ready for %s (%d cached)", _mask(credential), len(self))
            return session

    def close_all(self) -> None:
        """Close every cached session. Only used at process shutdown."""
        with self._registry_lock:
            sessions = list(self._sessions.items())
        for credential, session in sessions:
            try:
                session.close()
            except Exception as e:
                logger.warning("[POOL] Close failed for %s: %s", _mask(credential), e)
