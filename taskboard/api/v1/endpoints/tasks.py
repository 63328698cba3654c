"""
Task Endpoints Module

Mutations on the task collection of a project: moving a task between or within
columns, adding single tasks or an approved batch, editing and deleting.

Every successful response carries the new document ``version`` so clients can
send it back as ``expectedVersion`` on their next write.
"""
from fastapi import APIRouter, Depends

from taskboard.api import deps
from taskboard.schemas.task import (
    AddApprovedTasksRequest,
    AddTaskRequest,
    DeleteTaskRequest,
    MoveTaskRequest,
    MutationResponse,
    UpdateTaskRequest,
)
from taskboard.services.gateway import TaskGateway
from taskboard.services.ordering import Placement

router = APIRouter()


@router.post("/move-task", response_model=MutationResponse)
def move_task(
    body: MoveTaskRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """
    Move a task to a column at a numeric position or next to an anchor task.

    With no position given the task is appended to the end of the column.
    Siblings are shifted and both affected columns re-sequenced to 0..n-1.

    Raises:
        404: project or task not found
        400: unknown column or anchor
        403: caller may not manage tasks
        409: ``expectedVersion`` is stale or another write won the race
    """
    user_id = deps.check_body_user(body.user_id, current_user_id)
    placement = Placement(
        new_order=body.new_order,
        after_task_id=body.insert_after_task_id,
        before_task_id=body.insert_before_task_id,
    )
    result = gateway.move_task(
        body.project_id,
        body.task_id,
        body.new_column_id,
        user_id,
        placement=placement,
        expected_version=body.expected_version,
    )
    return MutationResponse(version=result.version, task=result.task)


@router.post("/add-task", response_model=MutationResponse)
def add_task(
    body: AddTaskRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """Append a new task to the end of a column."""
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.add_task(
        body.project_id,
        body.task,
        user_id,
        column_id=body.column_id,
        expected_version=body.expected_version,
    )
    return MutationResponse(version=result.version, task=result.task)


@router.post("/add-approved-tasks", response_model=MutationResponse)
def add_approved_tasks(
    body: AddApprovedTasksRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.add_approved_tasks(body.project_id, body.tasks, user_id)
    return MutationResponse(version=result.version, added_tasks_count=result.added_count)


@router.post("/update-task", response_model=MutationResponse)
def update_task(
    body: UpdateTaskRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """
    Edit task fields. Column and order are rejected here; use ``/move-task``.
    """
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.update_task(
        body.project_id,
        body.task_id,
        body.updated_fields,
        user_id,
        expected_version=body.expected_version,
    )
    return MutationResponse(version=result.version, task=result.task)


@router.delete("/delete-task", response_model=MutationResponse)
def delete_task(
    body: DeleteTaskRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.delete_task(
        body.project_id,
        body.task_id,
        user_id,
        expected_version=body.expected_version,
    )
    return MutationResponse(version=result.version)
