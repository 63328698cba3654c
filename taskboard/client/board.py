"""
Optimistic Board Client

Holds a local copy of one project's tasks and applies moves to it immediately,
before the server has answered. The move is computed with the same
``apply_move`` the server runs, then sent as the task's settled index in the
destination column together with the version the local copy was read at.

- success: the local copy keeps the move and adopts the returned version
- version conflict (409): the project is fetched again, the same placement is
  re-applied to the fresh tasks and the request resent, a bounded number of times
- anything else: the local copy is restored and ``MoveRejected`` is raised
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from taskboard.core.errors import TaskboardError
from taskboard.schemas.board import ProjectDocument, Task
from taskboard.services import ordering
from taskboard.services.ordering import MoveResult, Placement

logger = logging.getLogger("taskboard.client")


class MoveRejected(Exception):
    """A move was undone locally because the server (or the network) refused it."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None, cause: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.cause = cause


class OptimisticBoard:
    """
    Local, optimistically updated view of a project board.

    ``session`` is anything with requests' ``get``/``post`` signature; a
    ``requests.Session`` is created when none is given.
    """

    def __init__(
        self,
        project_id: str,
        base_url: str = "http://localhost:8000",
        api_prefix: str = "/api/v1",
        token: Optional[str] = None,
        session: Optional[Any] = None,
        max_conflict_retries: int = 2,
        timeout: float = 10.0,
    ):
        self.project_id = project_id
        self.base_url = base_url.rstrip("/") + api_prefix
        self.token = token
        self.session = session if session is not None else requests.Session()
        self.max_conflict_retries = max_conflict_retries
        self.timeout = timeout

        self.tasks: List[Task] = []
        self.column_ids: List[str] = []
        self.version: Optional[int] = None

    # ------------------------------------------------------------------

    @property
    def _headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def load(self, document: ProjectDocument) -> None:
        """Replace the local state with a project document."""
        self.tasks = list(document.tasks)
        self.column_ids = list(document.column_ids)
        self.version = document.version

    def refresh(self) -> ProjectDocument:
        """Fetch the project from the server and adopt it as local state."""
        response = self.session.get(
            f"{self.base_url}/projects/{self.project_id}",
            headers=self._headers,
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            message, code = _error_details(response)
            raise MoveRejected(message, status_code=response.status_code, code=code)
        document = ProjectDocument.model_validate(response.json())
        self.load(document)
        return document

    def column(self, column_id: str) -> List[Task]:
        """Tasks of a column as currently shown, top to bottom."""
        return ordering.column_tasks(self.tasks, column_id)

    # ------------------------------------------------------------------

    def move(self, task_id: str, new_column_id: str, placement: Optional[Placement] = None) -> Task:
        """
        Move a task locally, then confirm it with the server.

        Returns the moved task as the server settled it.

        Raises:
            MoveRejected: the local state has been rolled back
        """
        placement = placement or Placement()
        snapshot = list(self.tasks)
        snapshot_version = self.version

        try:
            self._apply_locally(task_id, new_column_id, placement)
        except TaskboardError as e:
            # Nothing changed locally yet
            raise MoveRejected(e.message, status_code=e.status_code, code=e.code, cause=e)

        conflicts = 0
        while True:
            try:
                response = self._send_move(task_id, new_column_id)
            except requests.RequestException as e:
                self._rollback(snapshot, snapshot_version)
                logger.warning(f"Move of {task_id} failed to reach the server: {e}")
                raise MoveRejected(f"Network error: {e}", cause=e)

            if response.status_code < 400:
                body = response.json()
                self.version = body["version"]
                if body.get("task"):
                    confirmed = Task.model_validate(body["task"])
                    self.tasks = [confirmed if t.id == task_id else t for t in self.tasks]
                return ordering.find_task(self.tasks, task_id)

            message, code = _error_details(response)
            if response.status_code == 409 and conflicts < self.max_conflict_retries:
                conflicts += 1
                logger.info(
                    f"Version conflict moving {task_id}, retrying ({conflicts}/{self.max_conflict_retries})",
                    extra={"extra_fields": {"project_id": self.project_id, "task_id": task_id}},
                )
                try:
                    self.refresh()
                    # The fresh server state is now the state to fall back to
                    snapshot, snapshot_version = list(self.tasks), self.version
                    self._apply_locally(task_id, new_column_id, placement)
                except (MoveRejected, TaskboardError, requests.RequestException) as e:
                    self._rollback(snapshot, snapshot_version)
                    raise MoveRejected(f"Could not re-apply move after conflict: {e}", status_code=409, cause=e)
                continue

            self._rollback(snapshot, snapshot_version)
            logger.warning(
                f"Move of {task_id} rejected with {response.status_code}: {message}",
                extra={"extra_fields": {"project_id": self.project_id, "task_id": task_id, "code": code}},
            )
            raise MoveRejected(message, status_code=response.status_code, code=code)

    # ------------------------------------------------------------------

    def _apply_locally(self, task_id: str, new_column_id: str, placement: Placement) -> MoveResult:
        result = ordering.apply_move(
            self.tasks,
            task_id,
            new_column_id,
            placement,
            column_ids=self.column_ids or None,
        )
        self.tasks = result.apply_to(self.tasks)
        return result

    def _send_move(self, task_id: str, new_column_id: str):
        # The settled index is the same on both sides because both run apply_move
        new_order = ordering.column_sequence(self.tasks, new_column_id).index(task_id)
        payload = {
            "projectId": self.project_id,
            "taskId": task_id,
            "newColumnId": new_column_id,
            "newOrder": new_order,
            "expectedVersion": self.version,
        }
        return self.session.post(
            f"{self.base_url}/move-task",
            json=payload,
            headers=self._headers,
            timeout=self.timeout,
        )

    def _rollback(self, snapshot: List[Task], version: Optional[int]) -> None:
        self.tasks = snapshot
        self.version = version


def _error_details(response) -> tuple:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}", None
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body), body.get("code")
    return str(body), None
