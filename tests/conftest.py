import os

# must be set before the app builds its settings
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient
from blog_api.core.security import get_password_hash
from blog_api.db.database import Base, create_tables, get_engine, get_session_maker
from blog_api.main import app
from blog_api.models.user import User, UserRole

POST_CONTENT = (
    "This post body is long enough to pass validation and exercises the full "
    "content lifecycle of the blog engine from draft to publication."
)

@pytest.fixture(autouse=True)
def clean_db():
    """Drop and recreate every table around each test"""
    engine = get_engine()
    Base.metadata.drop_all(bind=engine)
    create_tables(engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(clean_db):
    """A session bound to the test database"""
    session = get_session_maker()()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def client(clean_db):
    with TestClient(app) as client:
        yield client

def register(client, username, role=UserRole.USER):
    """Register a user, optionally promote it, and return a client logged in as it"""
    data = {
        "username": username,
        "email": f"{username}@example.com",
        "password": "password123",
        "full_name": username.title(),
    }
    response = client.post("/api/users/register", json=data)
    assert response.status_code == 201
    user_id = response.json()["id"]
    if role != UserRole.USER:
        session = get_session_maker()()
        try:
            session.get(User, user_id).role = role
            session.commit()
        finally:
            session.close()
    login_response = client.post("/api/users/login", json={
        "username": username,
        "password": data["password"],
    })
    token = login_response.json()["access_token"]
    auth_client = TestClient(client.app)
    auth_client.headers = {"Authorization": f"Bearer {token}"}
    auth_client.user_id = user_id
    return auth_client

@pytest.fixture
def test_post_data():
    return {
        "title": "Test Post",
        "content": POST_CONTENT,
        "category": "Technology",
        "tags": ["python", "fastapi"],
    }

@pytest.fixture
def authenticated_client(client):
    return register(client, "author")

@pytest.fixture
def other_client(client):
    return register(client, "reader")

@pytest.fixture
def admin_client(client):
    return register(client, "moderator", role=UserRole.ADMIN)

@pytest.fixture
def pending_post(authenticated_client, test_post_data):
    response = authenticated_client.post("/api/posts", json=test_post_data)
    assert response.status_code == 201
    return response.json()

@pytest.fixture
def published_post(pending_post, admin_client):
    response = admin_client.post(f"/api/admin/posts/{pending_post['id']}:approvePost")
    assert response.status_code == 200
    return response.json()

@pytest.fixture
def make_user(db_session):
    """Insert a user row directly, for service level tests"""
    def _make_user(username, role=UserRole.USER):
        user = User(
            username=username,
            email=f"{username}@example.com",
            password_hash=get_password_hash("password123"),
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def register_user(client):
    """Factory logging in extra users against the shared client"""
    def _register_user(username, role=UserRole.USER):
        return register(client, username, role=role)
    return _register_user
