"""
Session Store - in-memory map of session id → WorkflowState.

Provides:
  - get()            - snapshot of the session's state, created lazily
  - exists()         - whether a live (non-expired) state is held
  - update()         - atomic read-modify-write under the session's lock
  - delete(), count()
  - sweep()          - evict states idle for longer than the TTL
  - start_sweeper()  - background daemon thread calling sweep()

Concurrency:
  Each session id has its own ``threading.Lock``; ``_map_lock`` only guards
  the two dicts. ``update`` runs the caller's closure against a deep copy
  and swaps it in once the closure returns, so a closure that raises leaves
  the committed state untouched and no reader ever observes a half-applied
  update. Writes to one session are totally ordered by lock acquisition.

Optional write-through persistence (``SnapshotPersistence``) lets a session
survive a process restart. Persistence failures are logged and never
surface to callers.

One instance is created per application in ``create_app`` and handed to
request handlers through ``flask.g`` (see middleware/session_context.py).
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable

from complaint_flow.models.workflow import WorkflowState

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


def _utcnow():
    return datetime.now(timezone.utc)


class SessionStore:
    """Thread-safe, TTL-bounded store of workflow states."""

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        sweep_interval: timedelta | None = None,
        persistence=None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.ttl = ttl
        self.sweep_interval = sweep_interval or ttl / 10
        self._persistence = persistence
        self._clock = clock or _utcnow

        self._states: dict[str, WorkflowState] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._map_lock = threading.Lock()

        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    # ── Locking ──────────────────────────────────────────────────────────

    @contextmanager
    def _locked(self, session_id: str):
        """Hold the lock for *session_id*.

        The sweeper may drop a lock entry while another thread waits on it;
        after acquiring we re-check that the lock is still the registered one
        and retry otherwise. A lock whose session has no state left is
        unregistered on release, so lookups of unknown ids leave nothing behind.
        """
        while True:
            with self._map_lock:
                lock = self._locks.setdefault(session_id, threading.Lock())
            lock.acquire()
            with self._map_lock:
                current = self._locks.get(session_id)
                if current is None:
                    self._locks[session_id] = lock
                    current = lock
            if current is lock:
                break
            lock.release()
        try:
            yield
        finally:
            with self._map_lock:
                if session_id not in self._states and self._locks.get(session_id) is lock:
                    del self._locks[session_id]
            lock.release()

    # ── Internal state access (caller holds the session lock) ────────────

    def _is_expired(self, state: WorkflowState, now: datetime) -> bool:
        return now - state.last_updated > self.ttl

    def _peek_locked(self, session_id: str) -> WorkflowState | None:
        now = self._clock()
        with self._map_lock:
            state = self._states.get(session_id)
            if state is not None and self._is_expired(state, now):
                logger.info("Session %s expired (idle > %s)", session_id, self.ttl)
                del self._states[session_id]
                state = None
        if state is None and self._persistence is not None:
            state = self._restore(session_id, now)
            if state is not None:
                with self._map_lock:
                    self._states[session_id] = state
        return state

    def _load_locked(self, session_id: str) -> WorkflowState:
        state = self._peek_locked(session_id)
        if state is None:
            state = WorkflowState(last_updated=self._clock())
            with self._map_lock:
                self._states[session_id] = state
            logger.debug("Created workflow state for session %s", session_id)
        return state

    def _restore(self, session_id: str, now: datetime) -> WorkflowState | None:
        try:
            return self._persistence.load(session_id, now)
        except Exception as exc:
            logger.warning("Could not restore session %s from snapshot: %s", session_id, exc)
            return None

    def _persist(self, session_id: str, state: WorkflowState) -> None:
        if self._persistence is None:
            return
        try:
            self._persistence.save(session_id, state, state.last_updated + self.ttl)
        except Exception as exc:
            logger.warning("Could not persist session %s: %s", session_id, exc)

    # ── Public API ───────────────────────────────────────────────────────

    def get(self, session_id: str) -> WorkflowState:
        """Return a copy of the session's state, creating it if absent."""
        with self._locked(session_id):
            return self._load_locked(session_id).snapshot()

    def exists(self, session_id: str) -> bool:
        with self._locked(session_id):
            return self._peek_locked(session_id) is not None

    def update(self, session_id: str, fn: Callable[[WorkflowState], None]) -> WorkflowState:
        """Apply *fn* to the session's state atomically.

        *fn* mutates the state it receives in place. If it raises, nothing is
        committed and the exception propagates. Returns a copy of the
        committed state.
        """
        with self._locked(session_id):
            working = self._load_locked(session_id).snapshot()
            fn(working)
            working.last_updated = self._clock()
            with self._map_lock:
                self._states[session_id] = working
            self._persist(session_id, working)
            return working.snapshot()

    def delete(self, session_id: str) -> None:
        with self._locked(session_id):
            with self._map_lock:
                self._states.pop(session_id, None)
            if self._persistence is not None:
                try:
                    self._persistence.delete(session_id)
                except Exception as exc:
                    logger.warning("Could not delete snapshot for session %s: %s", session_id, exc)

    def count(self) -> int:
        with self._map_lock:
            return len(self._states)

    # ── TTL eviction ─────────────────────────────────────────────────────

    def sweep(self) -> int:
        """Remove states idle for longer than the TTL. Returns the number removed.

        Sessions whose lock is currently held are skipped; they are being
        used right now and will be looked at on the next sweep.
        """
        now = self._clock()
        with self._map_lock:
            candidates = [
                (sid, self._locks.get(sid))
                for sid, state in self._states.items()
                if self._is_expired(state, now)
            ]

        removed = 0
        for session_id, lock in candidates:
            if lock is None or not lock.acquire(blocking=False):
                continue
            try:
                with self._map_lock:
                    state = self._states.get(session_id)
                    if state is not None and self._is_expired(state, now):
                        del self._states[session_id]
                        if self._locks.get(session_id) is lock:
                            del self._locks[session_id]
                        removed += 1
            finally:
                lock.release()

        if self._persistence is not None:
            try:
                self._persistence.purge_expired(now)
            except Exception as exc:
                logger.warning("Snapshot purge failed: %s", exc)

        if removed:
            logger.info("Session sweep: removed %d expired sessions, %d active",
                        removed, self.count())
        return removed

    def start_sweeper(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_sweeper, name="session-sweeper", daemon=True,
        )
        self._thread.start()
        logger.info("Session sweeper started (ttl=%s, interval=%s)", self.ttl, self.sweep_interval)

    def stop_sweeper(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None

    def _run_sweeper(self) -> None:
        interval = self.sweep_interval.total_seconds()
        while not self._stop_event.wait(interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Session sweep failed")
