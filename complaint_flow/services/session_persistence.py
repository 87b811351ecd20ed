"""
Session snapshot persistence - write-through backing for SessionStore.

Keeps a JSON copy of each session's navigation fields in
``workflow_session_snapshots`` so a user who comes back after a process
restart resumes at the same step. Processing results and case models are
not stored; the step dispatcher regenerates them on step-3 access.

Every call pushes its own application context, so the store can use it from
request handlers and from the sweeper thread alike.

Functions:
  load()           - restore a live snapshot (expired rows are deleted)
  save()           - upsert the snapshot for a session id
  delete()         - drop a session's snapshot
  purge_expired()  - remove every expired snapshot, return the count
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Flask
from sqlalchemy import delete, select

from complaint_flow.models import db
from complaint_flow.models.session_snapshot import WorkflowSessionSnapshot
from complaint_flow.models.workflow import WorkflowState

logger = logging.getLogger(__name__)


def _to_utc(dt: datetime) -> datetime:
    """SQLite returns naive datetimes; treat them as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class SnapshotPersistence:
    """SQLAlchemy-backed snapshot repository bound to one Flask app."""

    def __init__(self, app: Flask) -> None:
        self._app = app

    def load(self, session_id: str, now: datetime) -> WorkflowState | None:
        with self._app.app_context():
            row = db.session.get(WorkflowSessionSnapshot, session_id)
            if row is None:
                return None
            if _to_utc(row.expires_at) < now:
                logger.info("Snapshot for session %s has expired, removing", session_id)
                db.session.delete(row)
                db.session.commit()
                return None
            try:
                state = WorkflowState.from_dict(row.state or {})
            except (TypeError, ValueError) as exc:
                logger.error("Corrupt snapshot for session %s: %s", session_id, exc)
                db.session.delete(row)
                db.session.commit()
                return None
            logger.debug("Restored session %s at step %d from snapshot",
                         session_id, state.current_step)
            return state

    def save(self, session_id: str, state: WorkflowState, expires_at: datetime) -> None:
        with self._app.app_context():
            row = db.session.get(WorkflowSessionSnapshot, session_id)
            if row is None:
                row = WorkflowSessionSnapshot(session_id=session_id)
                db.session.add(row)
            row.state = state.to_dict()
            row.expires_at = expires_at
            db.session.commit()

    def delete(self, session_id: str) -> None:
        with self._app.app_context():
            db.session.execute(
                delete(WorkflowSessionSnapshot).where(
                    WorkflowSessionSnapshot.session_id == session_id
                )
            )
            db.session.commit()

    def purge_expired(self, now: datetime) -> int:
        with self._app.app_context():
            rows = db.session.execute(select(WorkflowSessionSnapshot)).scalars().all()
            expired = [r for r in rows if _to_utc(r.expires_at) < now]
            for row in expired:
                db.session.delete(row)
            if expired:
                db.session.commit()
                logger.info("Purged %d expired session snapshots", len(expired))
            return len(expired)
