"""
Complaint Workflow - model package.

``db`` is the Flask-SQLAlchemy handle used for session snapshots; the
workflow value types (WorkflowState, documents, analysis) are plain
dataclasses and live alongside it.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
