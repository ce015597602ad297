"""
In-memory per-call session store.

Each call ID maps to an entry holding the Session and its own lock. The
store-wide lock is held only while an entry is looked up, created or
removed, never while a turn runs, so distinct calls proceed in parallel
while overlapping requests for the same call (for example a webhook
redelivered after a transport timeout) are serialized.

Call-end notifications are best-effort, so idle entries are evicted after
``idle_timeout_sec``. Eviction runs opportunistically on checkout, at most
once per ``sweep_interval_sec``, and skips entries that are checked out.

Usage:
    store = SessionStore(idle_timeout_sec=900)
    with store.checkout("CA123") as (session, created):
        session.stage = ConversationStage.AFTER_DELIVERY
    store.delete("CA123")
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, Optional

from delivery_agent.schemas.session_schema import Session

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    session: Session
    lock: threading.Lock = field(default_factory=threading.Lock)
    in_use: int = 0


class SessionStore:
    """Keyed, mutable per-call state with per-key mutual exclusion."""

    def __init__(
        self,
        idle_timeout_sec: float = 900.0,
        sweep_interval_sec: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._map_lock = threading.Lock()
        self._idle_timeout = idle_timeout_sec
        self._sweep_interval = sweep_interval_sec
        self._clock = clock
        self._last_sweep = clock()

    @contextmanager
    def checkout(self, call_id: str) -> Iterator[tuple[Session, bool]]:
        """
        Hold the session for ``call_id`` exclusively for one request.

        Creates a fresh session if none exists. Yields ``(session, created)``;
        the session must not be retained after the block exits.
        """
        now = self._clock()
        with self._map_lock:
            self._maybe_sweep(now)
            entry = self._entries.get(call_id)
            created = entry is None
            if entry is None:
                entry = _Entry(Session(call_id=call_id, created_at=now, last_seen_at=now))
                self._entries[call_id] = entry
                logger.debug("Session created for call %s", call_id)
            entry.in_use += 1

        try:
            with entry.lock:
                yield entry.session, created
                entry.session.last_seen_at = self._clock()
        finally:
            with self._map_lock:
                entry.in_use -= 1

    def get(self, call_id: str) -> Optional[Session]:
        """Return a snapshot copy of the session, or None. Never creates."""
        with self._map_lock:
            entry = self._entries.get(call_id)
        if entry is None:
            return None
        with entry.lock:
            return replace(entry.session)

    def delete(self, call_id: str) -> bool:
        """Remove the session for ``call_id``. Unknown IDs are a no-op."""
        with self._map_lock:
            removed = self._entries.pop(call_id, None)
        if removed is not None:
            logger.debug("Session deleted for call %s", call_id)
        return removed is not None

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Evict sessions idle longer than the timeout. Returns the count evicted."""
        with self._map_lock:
            return self._evict_locked(self._clock() if now is None else now)

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self._sweep_interval:
            self._evict_locked(now)

    def _evict_locked(self, now: float) -> int:
        self._last_sweep = now
        stale = [
            call_id
            for call_id, entry in self._entries.items()
            if entry.in_use == 0 and now - entry.session.last_seen_at > self._idle_timeout
        ]
        for call_id in stale:
            del self._entries[call_id]
        if stale:
            logger.info("Evicted %d idle session(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._entries)

    def __contains__(self, call_id: object) -> bool:
        with self._map_lock:
            return call_id in self._entries
