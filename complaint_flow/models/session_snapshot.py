"""Durable copy of a session's WorkflowState navigation fields."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, String

from complaint_flow.models import db


def _utcnow():
    return datetime.now(timezone.utc)


class WorkflowSessionSnapshot(db.Model):
    """One row per session id; overwritten on every committed update."""

    __tablename__ = "workflow_session_snapshots"

    session_id = Column(String(255), primary_key=True)
    state = Column(JSON, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self):
        return {
            "session_id": self.session_id,
            "state": self.state,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
        }
