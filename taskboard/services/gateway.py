"""
Persistence Gateway

The authoritative side of every board mutation. Each operation reads the
whole project document, checks the caller's rights, recomputes the result
against the current server state with the same ordering functions the client
uses, and writes the whole task array back with a compare-and-set on the
document version.

When the caller passes ``expected_version`` and the stored document has moved
on, the operation fails with ``ConcurrentWriteConflict`` before computing
anything. Nothing is retried here; the client decides whether to re-fetch.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from taskboard.core.config import settings
from taskboard.core.errors import CommentNotFound, ConcurrentWriteConflict, InvalidTarget, PermissionDenied
from taskboard.core.logging_config import log_operation
from taskboard.schemas.board import (
    Comment,
    ProjectDocument,
    Task,
    TeamDocument,
    default_columns,
    parse_timestamp,
    utc_now_iso,
)
from taskboard.schemas.task import TaskCreate, TaskUpdate
from taskboard.services import ordering
from taskboard.services.ordering import Placement
from taskboard.services.permissions import (
    guard_project_access,
    guard_task_creation,
    guard_task_management,
)
from taskboard.services.store import DocumentStore

logger = logging.getLogger("taskboard.gateway")


@dataclass
class MutationResult:
    project: ProjectDocument
    task: Optional[Task] = None
    comment: Optional[Comment] = None
    added_count: Optional[int] = None

    @property
    def version(self) -> int:
        return self.project.version


class TaskGateway:
    """Server-side task, move and comment operations on one project document."""

    def __init__(self, store: DocumentStore, comment_edit_window_minutes: Optional[int] = None):
        self.store = store
        if comment_edit_window_minutes is None:
            comment_edit_window_minutes = settings.COMMENT_EDIT_WINDOW_MINUTES
        self.comment_edit_window = timedelta(minutes=comment_edit_window_minutes)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(
        self,
        name: str,
        owner_id: str,
        description: Optional[str] = None,
        team_id: Optional[str] = None,
        member_ids: Optional[List[str]] = None,
        member_roles: Optional[Dict[str, str]] = None,
    ) -> ProjectDocument:
        project_id = str(uuid.uuid4())
        document = ProjectDocument(
            id=project_id,
            name=name,
            description=description,
            owner_id=owner_id,
            team_id=team_id,
            member_ids=member_ids or [],
            member_roles=member_roles or {},
            columns=default_columns(project_id),
            tasks=[],
        )
        created = self.store.create_project(document)
        logger.info(f"Project {project_id} created by {owner_id}")
        return created

    def get_project(self, project_id: str, user_id: str) -> ProjectDocument:
        project, team = self._load(project_id)
        guard_project_access(user_id, project, team)
        return project

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def move_task(
        self,
        project_id: str,
        task_id: str,
        new_column_id: str,
        user_id: str,
        placement: Optional[Placement] = None,
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        """
        Move a task to ``new_column_id`` at the given placement.

        Raises:
            ProjectNotFound, TaskNotFound, InvalidTarget, PermissionDenied,
            ConcurrentWriteConflict
        """
        placement = placement or Placement()
        with log_operation(
            "move_task",
            project_id=project_id,
            task_id=task_id,
            new_column_id=new_column_id,
            placement=placement.mode,
            user_id=user_id,
        ):
            project, team = self._load(project_id)
            guard_task_management(user_id, project, team)
            self._check_version(project, expected_version)

            result = ordering.apply_move(
                project.tasks,
                task_id,
                new_column_id,
                placement,
                column_ids=project.column_ids,
            )
            saved = self._write(project, result.apply_to(project.tasks))
            return MutationResult(project=saved, task=saved.find_task(task_id))

    # ------------------------------------------------------------------
    # Task CRUD
    # ------------------------------------------------------------------

    def add_task(
        self,
        project_id: str,
        data: TaskCreate,
        user_id: str,
        column_id: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        """Append a new task to the end of ``column_id`` (first column when omitted)."""
        with log_operation("add_task", project_id=project_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_task_creation(user_id, project, team)
            self._check_version(project, expected_version)

            target = column_id or data.column_id or self._first_column(project)
            if target not in project.column_ids:
                raise InvalidTarget(f"Column {target} does not exist in this project")

            task = self._build_task(project, data, target, user_id, project.tasks)
            saved = self._write(project, list(project.tasks) + [task])
            return MutationResult(project=saved, task=saved.find_task(task.id))

    def add_approved_tasks(self, project_id: str, tasks: Sequence[TaskCreate], user_id: str) -> MutationResult:
        """
        Add a batch of reviewed tasks in a single write.

        A task naming an unknown column (or none) lands in the first column.
        """
        with log_operation("add_approved_tasks", project_id=project_id, user_id=user_id, count=len(tasks)):
            project, team = self._load(project_id)
            guard_task_creation(user_id, project, team)

            fallback = self._first_column(project)
            current = list(project.tasks)
            for data in tasks:
                target = data.column_id if data.column_id in project.column_ids else fallback
                current.append(self._build_task(project, data, target, user_id, current))

            saved = self._write(project, current)
            return MutationResult(project=saved, added_count=len(tasks))

    def update_task(
        self,
        project_id: str,
        task_id: str,
        fields: TaskUpdate,
        user_id: str,
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        with log_operation("update_task", project_id=project_id, task_id=task_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_task_management(user_id, project, team)
            self._check_version(project, expected_version)

            existing = ordering.find_task(project.tasks, task_id)
            changes = fields.model_dump(exclude_unset=True)
            # title and priority cannot be cleared, a null there means "unchanged"
            for key in ("title", "priority"):
                if changes.get(key, "") is None:
                    del changes[key]
            merged = existing.model_dump()
            merged.update(changes)
            merged["updated_at"] = utc_now_iso()
            updated = Task.model_validate(merged)

            tasks = [updated if t.id == task_id else t for t in project.tasks]
            saved = self._write(project, tasks)
            return MutationResult(project=saved, task=saved.find_task(task_id))

    def delete_task(
        self,
        project_id: str,
        task_id: str,
        user_id: str,
        expected_version: Optional[int] = None,
    ) -> MutationResult:
        """Remove a task and re-sequence the column it leaves."""
        with log_operation("delete_task", project_id=project_id, task_id=task_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_task_management(user_id, project, team)
            self._check_version(project, expected_version)

            tasks = ordering.remove_task(project.tasks, task_id)
            saved = self._write(project, tasks)
            return MutationResult(project=saved)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def add_comment(
        self,
        project_id: str,
        task_id: str,
        content: str,
        user_id: str,
        user_name: str,
        avatar_url: Optional[str] = None,
    ) -> MutationResult:
        with log_operation("add_comment", project_id=project_id, task_id=task_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_project_access(user_id, project, team)

            task = ordering.find_task(project.tasks, task_id)
            comment = Comment(
                id=str(uuid.uuid4()),
                user_id=user_id,
                user_name=user_name,
                avatar_url=avatar_url,
                content=content,
            )
            updated = task.model_copy(update={
                "comments": list(task.comments) + [comment],
                "updated_at": utc_now_iso(),
            })
            saved = self._write(project, self._replace(project.tasks, updated))
            return MutationResult(project=saved, task=saved.find_task(task_id), comment=comment)

    def edit_comment(
        self,
        project_id: str,
        task_id: str,
        comment_id: str,
        new_content: str,
        user_id: str,
    ) -> MutationResult:
        with log_operation("edit_comment", project_id=project_id, comment_id=comment_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_project_access(user_id, project, team)

            task = ordering.find_task(project.tasks, task_id)
            comment = self._own_recent_comment(task, comment_id, user_id, action="edit")
            edited = comment.model_copy(update={"content": new_content, "updated_at": utc_now_iso()})
            comments = [edited if c.id == comment_id else c for c in task.comments]
            updated = task.model_copy(update={"comments": comments, "updated_at": utc_now_iso()})

            saved = self._write(project, self._replace(project.tasks, updated))
            return MutationResult(project=saved, task=saved.find_task(task_id), comment=edited)

    def delete_comment(self, project_id: str, task_id: str, comment_id: str, user_id: str) -> MutationResult:
        with log_operation("delete_comment", project_id=project_id, comment_id=comment_id, user_id=user_id):
            project, team = self._load(project_id)
            guard_project_access(user_id, project, team)

            task = ordering.find_task(project.tasks, task_id)
            self._own_recent_comment(task, comment_id, user_id, action="delete")
            comments = [c for c in task.comments if c.id != comment_id]
            updated = task.model_copy(update={"comments": comments, "updated_at": utc_now_iso()})

            saved = self._write(project, self._replace(project.tasks, updated))
            return MutationResult(project=saved, task=saved.find_task(task_id))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load(self, project_id: str) -> Tuple[ProjectDocument, Optional[TeamDocument]]:
        project = self.store.get_project(project_id)
        team = self.store.get_team(project.team_id)
        return project, team

    def _write(self, project: ProjectDocument, tasks: List[Task]) -> ProjectDocument:
        # Compare-and-set against the version this request read
        return self.store.update_project(project.id, project.version, tasks=tasks)

    @staticmethod
    def _check_version(project: ProjectDocument, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != project.version:
            raise ConcurrentWriteConflict(project.id, expected_version, project.version)

    @staticmethod
    def _first_column(project: ProjectDocument) -> str:
        if not project.column_ids:
            raise InvalidTarget(f"Project {project.id} has no columns")
        return project.column_ids[0]

    @staticmethod
    def _replace(tasks: Sequence[Task], updated: Task) -> List[Task]:
        return [updated if t.id == updated.id else t for t in tasks]

    @staticmethod
    def _build_task(
        project: ProjectDocument,
        data: TaskCreate,
        column_id: str,
        user_id: str,
        existing: Sequence[Task],
    ) -> Task:
        fields: Dict[str, Any] = data.model_dump(exclude={"column_id"})
        now = utc_now_iso()
        fields.update(
            id=str(uuid.uuid4()),
            project_id=project.id,
            column_id=column_id,
            order=ordering.append_order(existing, column_id),
            reporter_id=data.reporter_id or user_id,
            comments=[],
            created_at=now,
            updated_at=now,
        )
        return Task.model_validate(fields)

    def _own_recent_comment(self, task: Task, comment_id: str, user_id: str, action: str) -> Comment:
        for comment in task.comments:
            if comment.id == comment_id:
                break
        else:
            raise CommentNotFound(comment_id)

        if comment.user_id != user_id:
            raise PermissionDenied(f"You can only {action} your own comments", code="COMMENT_NOT_OWNED")

        posted = parse_timestamp(comment.created_at)
        if datetime.now(timezone.utc) - posted > self.comment_edit_window:
            minutes = int(self.comment_edit_window.total_seconds() // 60)
            raise PermissionDenied(
                f"Comments can only be {action}ed within {minutes} minutes of posting",
                code="COMMENT_WINDOW_CLOSED",
            )
        return comment
