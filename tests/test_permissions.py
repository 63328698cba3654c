import pytest

from conftest import MANAGER, MEMBER, OUTSIDER, OWNER, make_project
from taskboard.core.errors import PermissionDenied
from taskboard.schemas.board import TeamDocument
from taskboard.services.permissions import (
    FULL_PROJECT_PERMISSIONS,
    can_access_project,
    get_project_permissions,
    get_team_permissions,
    guard_task_creation,
    guard_task_management,
    permissions_for,
)

TEAM = TeamDocument(
    id="team-1",
    name="Platform",
    owner_id="team-owner-uid",
    member_ids=["team-manager-uid", "team-member-uid"],
    member_roles={"team-manager-uid": "manager", "team-member-uid": "member"},
)


def test_team_role_permissions():
    assert get_team_permissions("owner").can_delete_team
    assert get_team_permissions("manager").can_create_project
    assert not get_team_permissions("manager").can_remove_members
    assert get_team_permissions("member").can_view_team
    assert not get_team_permissions(None).can_view_team


def test_project_owner_and_team_owner_get_everything():
    assert get_project_permissions(None, None, is_project_owner=True) == FULL_PROJECT_PERMISSIONS
    assert get_project_permissions("member", "owner") == FULL_PROJECT_PERMISSIONS


def test_team_manager_outranks_project_member_role():
    perms = get_project_permissions("member", "manager")
    assert perms.can_manage_tasks
    assert not perms.can_delete_project


def test_project_roles():
    manager = get_project_permissions("manager", None)
    member = get_project_permissions("member", None)
    assert manager.can_manage_tasks and manager.can_assign_tasks
    assert member.can_create_tasks
    assert not member.can_manage_tasks


def test_permissions_for_project_members():
    project = make_project()
    assert permissions_for(OWNER, project) == FULL_PROJECT_PERMISSIONS
    assert permissions_for(MANAGER, project).can_manage_tasks
    assert not permissions_for(MEMBER, project).can_manage_tasks
    assert not permissions_for(OUTSIDER, project).can_view_project


def test_team_roles_only_apply_to_the_teams_projects():
    on_team = make_project(team_id="team-1")
    off_team = make_project(team_id="team-2")

    assert permissions_for("team-manager-uid", on_team, TEAM).can_manage_tasks
    assert not permissions_for("team-manager-uid", off_team, TEAM).can_manage_tasks
    assert can_access_project("team-member-uid", on_team, TEAM)
    assert not can_access_project("team-member-uid", off_team, TEAM)


def test_guards_raise_with_codes():
    project = make_project()

    guard_task_creation(MEMBER, project)
    with pytest.raises(PermissionDenied) as exc:
        guard_task_management(MEMBER, project)
    assert exc.value.status_code == 403
    assert exc.value.code == "TASK_MANAGEMENT_DENIED"

    with pytest.raises(PermissionDenied) as exc:
        guard_task_creation(OUTSIDER, project)
    assert exc.value.code == "TASK_CREATION_DENIED"
