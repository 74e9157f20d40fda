import os

# must be set before campusnet reads its configuration
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from campusnet import models  # noqa: F401
from campusnet.api.deps import get_notifier
from campusnet.db.database import Base, get_engine, get_session
from campusnet.main import app
from campusnet.models.user import User
from campusnet.services.notifications import NotificationEmitter

test_engine = get_engine()
TestSessionLocal = sessionmaker(bind=test_engine, autoflush=False)

@pytest.fixture(autouse=True)
def clean_db():
    """Drop and recreate the test database around each test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)

@pytest.fixture
def client(clean_db):
    """Test client with a fresh session per request"""
    def override_get_session():
        session = TestSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_notifier] = lambda: NotificationEmitter(TestSessionLocal)

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

@pytest.fixture
def session(clean_db):
    """Database session for service-level tests"""
    session = TestSessionLocal()
    yield session
    session.close()

@pytest.fixture
def make_user(session):
    """Insert a user directly and return it"""
    def _make_user(username: str, **kwargs) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash="not-a-real-hash",
            **kwargs
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def register(client):
    """Register and log in a user over HTTP, returns (user, auth headers)"""
    def _register(username: str, **extra):
        user_data = {
            "username": username,
            "email": f"{username}@example.com",
            "password": "password123",
            **extra
        }
        response = client.post("/api/users/register", json=user_data)
        assert response.status_code == 201, response.text
        login_response = client.post(
            "/api/users/login",
            json={"username": username, "password": "password123"}
        )
        token = login_response.json()["access_token"]
        return response.json(), {"Authorization": f"Bearer {token}"}
    return _register

@pytest.fixture
def alice(register):
    return register("alice", name="Alice")

@pytest.fixture
def bob(register):
    return register("bob", name="Bob")

@pytest.fixture
def alice_post(client, alice):
    """An active post written by alice"""
    _, headers = alice
    response = client.post("/api/posts", json={"content": "Exam schedule is out"}, headers=headers)
    assert response.status_code == 201
    return response.json()

@pytest.fixture
def session_factory(clean_db):
    """Factory for extra sessions (other threads, the notification emitter)"""
    return TestSessionLocal
