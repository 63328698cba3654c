"""
Project Model Module

This module defines the Project table. A project row is a whole document: its
columns and its entire task collection are embedded as JSON arrays rather
than stored as separate rows, so every task mutation rewrites the ``tasks``
field of one row.
"""
from typing import Dict, List, Optional
from sqlmodel import SQLModel, Field, JSON, Column
import uuid

from taskboard.schemas.board import utc_now_iso


class Project(SQLModel, table=True):
    """
    Project document with its embedded board.

    Attributes:
        id: Unique identifier (UUID) generated for each project
        name: Project name (required)
        description: Free-form description
        owner_id: User id of the project owner (always has full rights)
        team_id: Team the project belongs to, if any
        member_ids: JSON array of user ids that are project members
        member_roles: JSON object mapping member user id to "manager" or "member"
        columns: JSON array of column documents ({id, title, order})
        tasks: JSON array of task documents in stored (camelCase) layout
        version: Write counter, incremented on every update; used for compare-and-set
        created_at: ISO timestamp when the project was created
        updated_at: ISO timestamp of the last write
    """
    __tablename__ = "projects"

    # Primary key - UUID string, matches the ids used in task documents
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)

    # Basic project information
    name: str = Field(nullable=False)
    description: Optional[str] = None

    # Ownership and membership
    owner_id: str = Field(index=True, nullable=False)
    team_id: Optional[str] = Field(default=None, index=True)
    member_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    member_roles: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))

    # Embedded board - rewritten as a whole on every mutation
    columns: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    tasks: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    # Optimistic concurrency control
    version: int = Field(default=0, nullable=False)

    # Audit timestamps
    created_at: Optional[str] = Field(default_factory=utc_now_iso)
    updated_at: Optional[str] = Field(default_factory=utc_now_iso)
