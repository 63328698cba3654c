"""
Team Model Module

Teams are managed by another service; this table only mirrors what the
permission checks need: the owner, the member ids and their team roles.
"""
from typing import Dict, List, Optional
from sqlmodel import SQLModel, Field, JSON, Column
import uuid


class Team(SQLModel, table=True):
    """
    Team membership document.

    Attributes:
        id: Unique identifier (UUID)
        name: Team name
        description: Optional description
        owner_id: User id of the team owner
        member_ids: JSON array of member user ids
        member_roles: JSON object mapping user id to "owner", "manager" or "member"
    """
    __tablename__ = "teams"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    owner_id: str = Field(nullable=False)
    member_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    member_roles: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON))
