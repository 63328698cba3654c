from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from taskboard.core.security import create_access_token
from taskboard.db.session import get_db, init_db
from taskboard.main import app
from taskboard.schemas.board import Column, ProjectDocument, Task, TeamDocument
from taskboard.services.gateway import TaskGateway
from taskboard.services.store import DocumentStore

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

PROJECT_ID = "proj-1"
TODO, DOING, DONE = "col-todo", "col-doing", "col-done"

OWNER = "owner-uid"
MANAGER = "manager-uid"
MEMBER = "member-uid"
OUTSIDER = "outsider-uid"


def make_task(task_id: str, column_id: str, order, title: Optional[str] = None) -> Task:
    return Task(
        id=task_id,
        title=title or f"Task {task_id}",
        project_id=PROJECT_ID,
        column_id=column_id,
        order=order,
    )


def board_tasks() -> List[Task]:
    """a, b, c in To Do; d, e in In Progress; Done empty."""
    return [
        make_task("a", TODO, 0),
        make_task("b", TODO, 1),
        make_task("c", TODO, 2),
        make_task("d", DOING, 0),
        make_task("e", DOING, 1),
    ]


def make_project(tasks: Optional[List[Task]] = None, **overrides) -> ProjectDocument:
    fields = dict(
        id=PROJECT_ID,
        name="Launch",
        owner_id=OWNER,
        member_ids=[MANAGER, MEMBER],
        member_roles={MANAGER: "manager", MEMBER: "member"},
        columns=[
            Column(id=TODO, title="To Do", order=0),
            Column(id=DOING, title="In Progress", order=1),
            Column(id=DONE, title="Done", order=2),
        ],
        tasks=board_tasks() if tasks is None else tasks,
    )
    fields.update(overrides)
    return ProjectDocument(**fields)


def auth_headers(user_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def column_ids_in_order(tasks: List[Task], column_id: str) -> List[str]:
    column = sorted((t for t in tasks if t.column_id == column_id), key=lambda t: t.order)
    return [t.id for t in column]


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(bind=engine)
    init_db(engine)
    yield


@pytest.fixture
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(db_session) -> DocumentStore:
    return DocumentStore(db_session)


@pytest.fixture
def project(store) -> ProjectDocument:
    return store.create_project(make_project())


@pytest.fixture
def gateway(store) -> TaskGateway:
    return TaskGateway(store)


@pytest.fixture
def team(store) -> TeamDocument:
    return store.save_team(TeamDocument(
        id="team-1",
        name="Platform",
        owner_id="team-owner-uid",
        member_ids=["team-manager-uid", "team-member-uid"],
        member_roles={"team-manager-uid": "manager", "team-member-uid": "member"},
    ))


@pytest.fixture
def client():
    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
