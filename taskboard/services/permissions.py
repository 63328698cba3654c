"""
Permission Model

Maps a user's team role and project role to the set of actions they may take
on a project. Role precedence, from strongest:

- project owner: everything
- team owner: everything on the team's projects
- team manager: everything except deleting the project or managing members
- project manager: task management, creation and assignment
- project member: view and create tasks only

Guard functions raise ``PermissionDenied`` instead of returning a flag.
"""
from dataclasses import dataclass
from typing import Optional

from taskboard.core.errors import PermissionDenied
from taskboard.schemas.board import ProjectDocument, TeamDocument


@dataclass(frozen=True)
class TeamPermissions:
    can_create_project: bool = False
    can_manage_team: bool = False
    can_invite_members: bool = False
    can_remove_members: bool = False
    can_delete_team: bool = False
    can_view_team: bool = False


@dataclass(frozen=True)
class ProjectPermissions:
    can_view_project: bool = False
    can_edit_project: bool = False
    can_delete_project: bool = False
    can_manage_tasks: bool = False
    can_create_tasks: bool = False
    can_assign_tasks: bool = False
    can_manage_members: bool = False


FULL_PROJECT_PERMISSIONS = ProjectPermissions(
    can_view_project=True,
    can_edit_project=True,
    can_delete_project=True,
    can_manage_tasks=True,
    can_create_tasks=True,
    can_assign_tasks=True,
    can_manage_members=True,
)


def get_team_permissions(team_role: Optional[str]) -> TeamPermissions:
    if team_role == "owner":
        return TeamPermissions(
            can_create_project=True,
            can_manage_team=True,
            can_invite_members=True,
            can_remove_members=True,
            can_delete_team=True,
            can_view_team=True,
        )
    if team_role == "manager":
        return TeamPermissions(
            can_create_project=True,
            can_manage_team=True,
            can_invite_members=True,
            can_view_team=True,
        )
    if team_role == "member":
        return TeamPermissions(can_view_team=True)
    return TeamPermissions()


def get_project_permissions(
    project_role: Optional[str],
    team_role: Optional[str],
    is_project_owner: bool = False,
) -> ProjectPermissions:
    if is_project_owner or team_role == "owner":
        return FULL_PROJECT_PERMISSIONS

    if team_role == "manager":
        return ProjectPermissions(
            can_view_project=True,
            can_edit_project=True,
            can_manage_tasks=True,
            can_create_tasks=True,
            can_assign_tasks=True,
        )

    if project_role == "manager":
        return ProjectPermissions(
            can_view_project=True,
            can_manage_tasks=True,
            can_create_tasks=True,
            can_assign_tasks=True,
        )

    if project_role == "member":
        return ProjectPermissions(
            can_view_project=True,
            can_create_tasks=True,
        )

    return ProjectPermissions()


def get_user_team_role(user_id: str, team: TeamDocument) -> Optional[str]:
    if team.owner_id == user_id:
        return "owner"
    if user_id in team.member_roles:
        return team.member_roles[user_id]
    if user_id in team.member_ids:
        return "member"
    return None


def get_user_project_role(user_id: str, project: ProjectDocument) -> Optional[str]:
    # The owner is handled separately by is_project_owner
    if project.owner_id == user_id:
        return None
    if user_id in project.member_roles:
        return project.member_roles[user_id]
    if user_id in project.member_ids:
        return "member"
    return None


def _team_for(project: ProjectDocument, team: Optional[TeamDocument]) -> Optional[TeamDocument]:
    # A team only grants rights on its own projects
    if team is not None and project.team_id == team.id:
        return team
    return None


def permissions_for(user_id: str, project: ProjectDocument, team: Optional[TeamDocument] = None) -> ProjectPermissions:
    team = _team_for(project, team)
    team_role = get_user_team_role(user_id, team) if team else None
    project_role = get_user_project_role(user_id, project)
    return get_project_permissions(project_role, team_role, project.owner_id == user_id)


def can_access_team(user_id: str, team: TeamDocument) -> bool:
    return team.owner_id == user_id or user_id in team.member_ids


def can_access_project(user_id: str, project: ProjectDocument, team: Optional[TeamDocument] = None) -> bool:
    if project.owner_id == user_id:
        return True
    if user_id in project.member_ids:
        return True
    team = _team_for(project, team)
    return bool(team and can_access_team(user_id, team))


def guard_project_access(user_id: str, project: ProjectDocument, team: Optional[TeamDocument] = None) -> None:
    if not can_access_project(user_id, project, team):
        raise PermissionDenied(
            "User does not have permission to access this project",
            code="PROJECT_ACCESS_DENIED",
        )


def guard_task_management(user_id: str, project: ProjectDocument, team: Optional[TeamDocument] = None) -> None:
    if not permissions_for(user_id, project, team).can_manage_tasks:
        raise PermissionDenied(
            "User does not have permission to manage tasks in this project",
            code="TASK_MANAGEMENT_DENIED",
        )


def guard_task_creation(user_id: str, project: ProjectDocument, team: Optional[TeamDocument] = None) -> None:
    if not permissions_for(user_id, project, team).can_create_tasks:
        raise PermissionDenied(
            "User does not have permission to create tasks in this project",
            code="TASK_CREATION_DENIED",
        )
