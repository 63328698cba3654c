"""
Project Endpoints Module

Creating a project and reading the whole project document (columns, tasks and
the current version) back.
"""
from fastapi import APIRouter, Depends

from taskboard.api import deps
from taskboard.schemas.board import ProjectDocument
from taskboard.schemas.task import ProjectCreate
from taskboard.services.gateway import TaskGateway

router = APIRouter()


@router.post("", response_model=ProjectDocument, status_code=201)
def create_project(
    body: ProjectCreate,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """
    Create a new project owned by the caller.

    The project starts with the default "To Do", "In Progress" and "Done"
    columns, no tasks and version 0.
    """
    return gateway.create_project(
        name=body.name,
        owner_id=current_user_id,
        description=body.description,
        team_id=body.team_id,
        member_ids=body.member_ids,
    )


@router.get("/{project_id}", response_model=ProjectDocument)
def read_project(
    project_id: str,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """
    Get a project document by ID.

    Raises:
        404: the project does not exist
        403: the caller is neither owner, member nor on the project's team
    """
    return gateway.get_project(project_id, current_user_id)
