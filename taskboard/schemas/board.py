"""
Board Document Schemas

Strict pydantic schemas for the documents stored in the project and team
tables. Stored layout uses camelCase keys (``columnId``, ``assigneeUids``...)
while Python code works with snake_case attributes; both spellings are
accepted on input.

Every read from storage goes through these models, so a malformed document
fails at the boundary instead of leaking missing fields into the ordering code.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """
    Parse a stored ISO-8601 timestamp into an aware UTC datetime.

    Accepts the trailing ``Z`` written by JavaScript clients; naive values are
    taken as UTC.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _check_timestamp(value: Optional[str]) -> Optional[str]:
    if value is not None:
        parse_timestamp(value)
    return value


class DocumentModel(BaseModel):
    """Base for stored documents: camelCase on the wire, snake_case in code."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        """Serialize using the stored (camelCase) layout."""
        return self.model_dump(by_alias=True, mode="json")


class TaskPriority(str, Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


ProjectRole = Literal["manager", "member"]
TeamRole = Literal["owner", "manager", "member"]


class Comment(DocumentModel):
    id: str
    user_id: str
    user_name: str
    avatar_url: Optional[str] = None
    content: str = Field(min_length=1)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: Optional[str] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def valid_timestamp(cls, v: Optional[str]) -> Optional[str]:
        return _check_timestamp(v)


class Column(DocumentModel):
    """A named bucket on the board; ``order`` ranks it among the project's columns."""
    id: str
    title: str
    order: int


class Task(DocumentModel):
    """
    A task embedded in a project document.

    ``order`` ranks the task among tasks sharing its ``column_id``. Fractional
    values only exist while a move is being computed; stored values are the
    contiguous integers produced by normalization.
    """
    id: str
    title: str = Field(min_length=1)
    description: Optional[str] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: str
    column_id: str
    order: Union[int, float] = 0
    assignee_uids: List[str] = Field(default_factory=list)
    reporter_id: Optional[str] = None
    due_date: Optional[str] = None  # YYYY-MM-DD
    tags: List[str] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    dependent_task_titles: List[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @field_validator("created_at", "updated_at")
    @classmethod
    def valid_timestamp(cls, v: str) -> str:
        return _check_timestamp(v)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v

    @field_validator("description", "reporter_id", "due_date", mode="before")
    @classmethod
    def empty_string_to_none(cls, v):
        # Older documents stored "" for unset optional text fields
        if v == "":
            return None
        return v

    @field_validator("assignee_uids", "tags", "dependent_task_titles", "comments", mode="before")
    @classmethod
    def none_to_empty_list(cls, v):
        if v is None:
            return []
        return v

    @field_validator("assignee_uids")
    @classmethod
    def unique_assignees(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))


class ProjectDocument(DocumentModel):
    """
    A project together with its columns and its entire task collection.

    ``version`` increases by one on every write and is used for
    compare-and-set updates.
    """
    id: str
    name: str = Field(min_length=1)
    description: Optional[str] = None
    owner_id: str
    team_id: Optional[str] = None
    member_ids: List[str] = Field(default_factory=list)
    member_roles: Dict[str, ProjectRole] = Field(default_factory=dict)
    columns: List[Column] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)
    version: int = 0
    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)

    @property
    def column_ids(self) -> List[str]:
        return [column.id for column in sorted(self.columns, key=lambda c: c.order)]

    def find_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None


class TeamDocument(DocumentModel):
    id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    member_ids: List[str] = Field(default_factory=list)
    member_roles: Dict[str, TeamRole] = Field(default_factory=dict)


def default_columns(project_id: str) -> List[Column]:
    """The three columns every new project starts with."""
    return [
        Column(id=f"col-{project_id}-1", title="To Do", order=0),
        Column(id=f"col-{project_id}-2", title="In Progress", order=1),
        Column(id=f"col-{project_id}-3", title="Done", order=2),
    ]
