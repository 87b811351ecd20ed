"""
Workflow-wide exception hierarchy.

Services and integrations raise these types; the workflow blueprint and the
application factory register handlers against them once, so every endpoint
maps the same failure to the same response.

Propagation policy:
  - AdapterError subclasses are caught at the dispatcher boundary and
    rendered into the page (``PageData.error`` + ``retry_action``).
  - PrerequisiteError never leaves the dispatcher.
  - DocumentStorageError  → HTTP 500.
  - MalformedRequestError → HTTP 400.

Usage:
    from complaint_flow.core.exceptions import CloudDriveError

    raise CloudDriveError("folder does not exist: /Cases/Smith")
"""


class WorkflowError(Exception):
    """Base class for all errors raised by the complaint workflow."""


class AdapterError(WorkflowError):
    """Raised when an external collaborator (drive, catalog) fails.

    Args:
        message: Human-readable reason, safe to show in an error fragment.
        source: Short collaborator name used in logs (e.g. "cloud_drive").
    """

    source = "adapter"

    def __init__(self, message: str, source: str | None = None) -> None:
        if source is not None:
            self.source = source
        super().__init__(message)


class CloudDriveError(AdapterError):
    """Raised by cloud-drive adapters when a folder cannot be listed."""

    source = "cloud_drive"


class ProcessingError(AdapterError):
    """Raised by the template catalog / document processor."""

    source = "processor"


class PrerequisiteError(WorkflowError):
    """Raised when a step is requested before its prerequisite is met.

    Args:
        message: Inline error shown on the rendered step.
        fallback_step: Step the dispatcher should render instead, or None
                       to keep the requested step.
    """

    def __init__(self, message: str, fallback_step: int | None = None) -> None:
        self.fallback_step = fallback_step
        super().__init__(message)


class DocumentStorageError(WorkflowError):
    """Raised when the saved-document directory or canonical file cannot be written.

    Maps to HTTP 500. Alias-file failures are NOT reported through this
    type; they are logged and ignored by the materializer.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class MalformedRequestError(WorkflowError):
    """Raised when a request body or required form field is missing/invalid.

    Maps to HTTP 400.

    Args:
        message: Human-readable explanation.
        field: Name of the offending field, when there is one.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)
