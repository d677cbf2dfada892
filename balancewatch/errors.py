"""Error taxonomy shared by the pipeline and the HTTP layer.

Every failure a caller can see is a ``PipelineError`` carrying a
machine-readable ``kind`` and the HTTP status the API maps it to. An empty
lookup window is never an error: it shows up as a ``None`` field.
"""


class PipelineError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"ok": False, "kind": self.kind, "message": self.message}


class InvalidInput(PipelineError):
    """Missing or non-coercible required field. Not worth retrying."""

    kind = "invalid_input"
    status_code = 400


class StorageError(PipelineError):
    """The store was unavailable or rejected the operation. Safe to retry."""

    kind = "storage_error"
    status_code = 500


class NotificationError(PipelineError):
    """The webhook sink was unreachable or answered with an error."""

    kind = "notification_error"
    status_code = 502


class Unauthorized(PipelineError):
    kind = "unauthorized"
    status_code = 401
