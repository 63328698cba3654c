from sqlmodel import Session

from conftest import (
    DOING,
    DONE,
    MANAGER,
    MEMBER,
    OUTSIDER,
    OWNER,
    PROJECT_ID,
    TODO,
    auth_headers,
    column_ids_in_order,
    engine,
    make_project,
)
from taskboard.core.security import create_access_token
from taskboard.services.store import DocumentStore

API = "/api/v1"


def seed_project():
    with Session(engine) as session:
        DocumentStore(session).create_project(make_project())


def read_project():
    with Session(engine) as session:
        return DocumentStore(session).get_project(PROJECT_ID)


def test_health(client):
    response = client.get(f"{API}/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_requires_authentication(client):
    seed_project()
    response = client.post(f"{API}/move-task", json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": DONE,
    })
    assert response.status_code == 401


def test_invalid_token(client):
    response = client.get(f"{API}/projects/{PROJECT_ID}", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 403


def test_cookie_authentication(client):
    seed_project()
    cookie = f"access_token=Bearer {create_access_token(OWNER)}"
    response = client.get(f"{API}/projects/{PROJECT_ID}", headers={"Cookie": cookie})
    assert response.status_code == 200


def test_create_and_get_project(client):
    response = client.post(f"{API}/projects", json={"name": "Roadmap"}, headers=auth_headers(OWNER))
    assert response.status_code == 201
    body = response.json()
    assert body["ownerId"] == OWNER
    assert body["version"] == 0
    assert [c["title"] for c in body["columns"]] == ["To Do", "In Progress", "Done"]

    fetched = client.get(f"{API}/projects/{body['id']}", headers=auth_headers(OWNER))
    assert fetched.json()["name"] == "Roadmap"


def test_get_project_forbidden_for_outsider(client):
    seed_project()
    response = client.get(f"{API}/projects/{PROJECT_ID}", headers=auth_headers(OUTSIDER))
    assert response.status_code == 403
    assert response.json()["code"] == "PROJECT_ACCESS_DENIED"


def test_move_task_with_anchor(client):
    seed_project()
    response = client.post(f"{API}/move-task", headers=auth_headers(MANAGER), json={
        "projectId": PROJECT_ID,
        "taskId": "c",
        "newColumnId": TODO,
        "insertBeforeTaskId": "a",
        "expectedVersion": 0,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["version"] == 1
    assert body["task"]["order"] == 0
    assert column_ids_in_order(read_project().tasks, TODO) == ["c", "a", "b"]


def test_move_task_errors(client):
    seed_project()
    headers = auth_headers(OWNER)

    missing = client.post(f"{API}/move-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "zzz", "newColumnId": DONE,
    })
    assert missing.status_code == 404
    assert missing.json() == {"error": "Task not found: zzz", "code": "TASK_NOT_FOUND"}

    bad_column = client.post(f"{API}/move-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": "col-missing",
    })
    assert bad_column.status_code == 400

    two_placements = client.post(f"{API}/move-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": DONE, "newOrder": 0, "insertAfterTaskId": "b",
    })
    assert two_placements.status_code == 422


def test_move_task_permission_denied_leaves_board(client):
    seed_project()
    response = client.post(f"{API}/move-task", headers=auth_headers(MEMBER), json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": DONE,
    })
    assert response.status_code == 403
    assert response.json()["code"] == "TASK_MANAGEMENT_DENIED"
    assert read_project().version == 0


def test_body_user_must_match_token(client):
    seed_project()
    response = client.post(f"{API}/move-task", headers=auth_headers(MEMBER), json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": DONE, "userId": OWNER,
    })
    assert response.status_code == 403
    assert response.json()["code"] == "USER_MISMATCH"


def test_stale_version_returns_409(client):
    seed_project()
    headers = auth_headers(OWNER)
    first = client.post(f"{API}/move-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "newColumnId": DONE, "expectedVersion": 0,
    })
    second = client.post(f"{API}/move-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "b", "newColumnId": DONE, "expectedVersion": 0,
    })

    assert first.status_code == 200
    assert second.status_code == 409
    body = second.json()
    assert body["code"] == "CONCURRENT_WRITE_CONFLICT"
    assert body["actualVersion"] == 1


def test_task_crud_endpoints(client):
    seed_project()
    headers = auth_headers(OWNER)

    added = client.post(f"{API}/add-task", headers=headers, json={
        "projectId": PROJECT_ID, "columnId": DOING, "task": {"title": "Ship it", "priority": "HIGH"},
    })
    assert added.status_code == 200
    task_id = added.json()["task"]["id"]
    assert added.json()["task"]["order"] == 2

    updated = client.post(f"{API}/update-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": task_id, "updatedFields": {"assigneeUids": [MEMBER, MEMBER]},
    })
    assert updated.status_code == 200
    assert updated.json()["task"]["assigneeUids"] == [MEMBER]

    rejected = client.post(f"{API}/update-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": task_id, "updatedFields": {"order": 0},
    })
    assert rejected.status_code == 422

    deleted = client.request("DELETE", f"{API}/delete-task", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "d",
    })
    assert deleted.status_code == 200
    assert [(t.id, t.order) for t in read_project().tasks if t.column_id == DOING] == [("e", 0), (task_id, 1)]


def test_add_approved_tasks_endpoint(client):
    seed_project()
    response = client.post(f"{API}/add-approved-tasks", headers=auth_headers(MEMBER), json={
        "projectId": PROJECT_ID,
        "tasks": [{"title": "One"}, {"title": "Two", "columnId": DONE}],
    })
    assert response.status_code == 200
    assert response.json()["addedTasksCount"] == 2


def test_comment_endpoints(client):
    seed_project()
    headers = auth_headers(MEMBER)

    added = client.post(f"{API}/add-comment", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "commentText": "First!", "userName": "Mem",
    })
    assert added.status_code == 200
    comment = added.json()["comment"]
    assert comment["userId"] == MEMBER

    edited = client.put(f"{API}/edit-comment", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "commentId": comment["id"], "newContent": "Second",
    })
    assert edited.json()["comment"]["content"] == "Second"

    not_mine = client.request("DELETE", f"{API}/delete-comment", headers=auth_headers(OWNER), json={
        "projectId": PROJECT_ID, "taskId": "a", "commentId": comment["id"],
    })
    assert not_mine.status_code == 403

    deleted = client.request("DELETE", f"{API}/delete-comment", headers=headers, json={
        "projectId": PROJECT_ID, "taskId": "a", "commentId": comment["id"],
    })
    assert deleted.status_code == 200
    assert read_project().find_task("a").comments == []


def test_move_task_rejects_non_finite_order(client):
    seed_project()
    headers = {**auth_headers(OWNER), "Content-Type": "application/json"}

    for value in ("NaN", "Infinity"):
        raw = '{"projectId": "%s", "taskId": "a", "newColumnId": "%s", "newOrder": %s}' % (PROJECT_ID, DOING, value)
        response = client.post(f"{API}/move-task", headers=headers, content=raw)
        assert response.status_code == 422

    assert read_project().version == 0
