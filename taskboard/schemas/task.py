"""
Request and response bodies for the task endpoints.

Bodies use the same camelCase keys as the stored documents.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from taskboard.schemas.board import Comment, Task, TaskPriority


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskCreate(ApiModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_uids: List[str] = Field(default_factory=list)
    reporter_id: Optional[str] = None
    due_date: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    dependent_task_titles: List[str] = Field(default_factory=list)
    # Only used by the batch endpoint; single adds take the column from the request
    column_id: Optional[str] = None


class TaskUpdate(ApiModel):
    """Editable task fields. Column and order can only change through a move."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    assignee_uids: Optional[List[str]] = None
    reporter_id: Optional[str] = None
    due_date: Optional[str] = None
    tags: Optional[List[str]] = None
    dependent_task_titles: Optional[List[str]] = None


class MoveTaskRequest(ApiModel):
    project_id: str
    task_id: str
    new_column_id: str
    new_order: Optional[float] = Field(default=None, allow_inf_nan=False)
    insert_after_task_id: Optional[str] = None
    insert_before_task_id: Optional[str] = None
    expected_version: Optional[int] = None
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def single_placement(self):
        given = [
            v for v in (self.new_order, self.insert_after_task_id, self.insert_before_task_id)
            if v is not None
        ]
        if len(given) > 1:
            raise ValueError("Use only one of newOrder, insertAfterTaskId or insertBeforeTaskId")
        return self


class AddTaskRequest(ApiModel):
    project_id: str
    column_id: Optional[str] = None
    task: TaskCreate
    expected_version: Optional[int] = None
    user_id: Optional[str] = None


class AddApprovedTasksRequest(ApiModel):
    project_id: str
    tasks: List[TaskCreate]
    user_id: Optional[str] = None


class UpdateTaskRequest(ApiModel):
    project_id: str
    task_id: str
    updated_fields: TaskUpdate
    expected_version: Optional[int] = None
    user_id: Optional[str] = None


class DeleteTaskRequest(ApiModel):
    project_id: str
    task_id: str
    expected_version: Optional[int] = None
    user_id: Optional[str] = None


class AddCommentRequest(ApiModel):
    project_id: str
    task_id: str
    comment_text: str = Field(min_length=1)
    user_name: str = "Unknown User"
    avatar_url: Optional[str] = None
    user_id: Optional[str] = None


class EditCommentRequest(ApiModel):
    project_id: str
    task_id: str
    comment_id: str
    new_content: str = Field(min_length=1)
    user_id: Optional[str] = None


class DeleteCommentRequest(ApiModel):
    project_id: str
    task_id: str
    comment_id: str
    user_id: Optional[str] = None


class ProjectCreate(ApiModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    team_id: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)


class MutationResponse(ApiModel):
    success: bool = True
    version: int
    task: Optional[Task] = None
    comment: Optional[Comment] = None
    added_tasks_count: Optional[int] = None
