"""
Error Taxonomy Module

Domain errors raised by the ordering core, the document store and the
persistence gateway. Each error carries the HTTP status and a stable code so
the API layer can translate it without knowing every subclass.
"""
from typing import Any, Dict, Optional


class TaskboardError(Exception):
    """Base class for all board errors."""

    status_code: int = 400
    code: str = "TASKBOARD_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.code}


class ProjectNotFound(TaskboardError):
    status_code = 404
    code = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")
        self.project_id = project_id


class TaskNotFound(TaskboardError):
    status_code = 404
    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class CommentNotFound(TaskboardError):
    status_code = 404
    code = "COMMENT_NOT_FOUND"

    def __init__(self, comment_id: str):
        super().__init__(f"Comment not found: {comment_id}")
        self.comment_id = comment_id


class InvalidTarget(TaskboardError):
    """A move referenced a column or anchor task that cannot receive it."""

    status_code = 400
    code = "INVALID_TARGET"


class PermissionDenied(TaskboardError):
    status_code = 403
    code = "PERMISSION_DENIED"


class ConcurrentWriteConflict(TaskboardError):
    """
    The project document changed between read and write.

    Raised when the version supplied by the caller (or read by the gateway)
    no longer matches the stored one.
    """

    status_code = 409
    code = "CONCURRENT_WRITE_CONFLICT"

    def __init__(self, project_id: str, expected_version: int, actual_version: Optional[int] = None):
        detail = f"Project {project_id} was modified concurrently (expected version {expected_version}"
        if actual_version is not None:
            detail += f", found {actual_version}"
        super().__init__(detail + ")")
        self.project_id = project_id
        self.expected_version = expected_version
        self.actual_version = actual_version

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["expectedVersion"] = self.expected_version
        data["actualVersion"] = self.actual_version
        return data


class MalformedDocument(TaskboardError):
    """A stored document failed schema validation on read."""

    status_code = 500
    code = "MALFORMED_DOCUMENT"
