import pytest
import os
import sys
from typing import Generator, List, Optional
import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"

GITLAB_API = "https://gitlab.test/api/v4"
PASSWORD = "Passw0rd_1"


@pytest.fixture(scope="session")
def test_database_url():
    """URL тестовой базы данных"""
    return "sqlite:///:memory:"


@pytest.fixture(scope="session")
def engine(test_database_url):
    """Движок тестовой БД"""
    engine = create_engine(
        test_database_url,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    return engine


@pytest.fixture(scope="session")
def create_tables(engine):
    """Создание таблиц перед всеми тестами"""
    from database import Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(engine, create_tables) -> Generator[Session, None, None]:
    """Фикстура для сессии БД с rollback после каждого теста"""
    connection = engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def committing_session() -> Generator[Session, None, None]:
    """Сессия на отдельной БД без внешней транзакции: commit и rollback настоящие"""
    from database import Base
    import models  # noqa: F401

    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    """Фабрика зарегистрированных пользователей"""
    from crud.user import create_user
    from schemas.user import RegisterRequest

    counter = {"n": 0}

    def _make(username: Optional[str] = None, email: Optional[str] = None, password: str = PASSWORD):
        counter["n"] += 1
        username = username or f"user{counter['n']}"
        email = email or f"{username}@example.com"
        return create_user(db_session, RegisterRequest(username=username, email=email, password=password))

    return _make


class FakeGitLab:
    """GitLab API в памяти для httpx.MockTransport"""

    def __init__(self):
        self.remote_user = {"id": 501, "username": "alice"}
        self.projects = [{"id": 42, "name": "collab", "path_with_namespace": "team/collab"}]
        self.issues: List[dict] = []
        self.fail = False
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail:
            return httpx.Response(500, json={"message": "boom"})

        path = request.url.path
        if request.method == "POST" and path.endswith("/oauth/token"):
            return httpx.Response(200, json={"access_token": "gl-token"})
        if path == "/api/v4/user":
            return httpx.Response(200, json=self.remote_user)
        if path == "/api/v4/projects":
            return httpx.Response(200, json=self.projects)
        if path == "/api/v4/projects/42/issues":
            return httpx.Response(200, json=self.issues)
        if path.startswith("/api/v4/projects/42/issues/"):
            iid = int(path.rsplit("/", 1)[1])
            for issue in self.issues:
                if issue["iid"] == iid:
                    return httpx.Response(200, json=issue)
        return httpx.Response(404, json={"message": "404 Not Found"})

    def client_factory(self, access_token: Optional[str] = None):
        from gitlab_client import GitLabClient
        return GitLabClient(
            access_token=access_token,
            api_url=GITLAB_API,
            transport=httpx.MockTransport(self.handler)
        )


@pytest.fixture
def fake_gitlab():
    return FakeGitLab()


def make_issue(issue_id: int, iid: int, **overrides) -> dict:
    issue = {
        "id": issue_id,
        "iid": iid,
        "title": f"Issue {iid}",
        "description": "From GitLab",
        "state": "opened",
        "due_date": "2026-11-01",
        "created_at": "2026-10-01T08:30:00.000Z",
        "updated_at": "2026-10-02T09:00:00.000Z",
        "assignees": [],
    }
    issue.update(overrides)
    return issue


@pytest.fixture
def client(db_session, fake_gitlab):
    """TestClient с тестовой сессией и поддельным GitLab"""
    from fastapi.testclient import TestClient
    from database import get_db
    from api.endpoints.gitlab import get_gitlab_client_factory
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gitlab_client_factory] = lambda: fake_gitlab.client_factory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Зарегистрировать пользователя через API, вернуть (userId, заголовки)"""
    counter = {"n": 0}

    def _register(username: Optional[str] = None):
        counter["n"] += 1
        username = username or f"member{counter['n']}"
        resp = client.post("/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": PASSWORD
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["userId"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def issue_factory():
    return make_issue
