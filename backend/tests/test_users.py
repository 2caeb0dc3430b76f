"""Tests for user registration and profile endpoints"""
from fastapi.testclient import TestClient

from athletics_api.models.user import User
from conftest import OTHER_EMAIL


def _registration(**overrides) -> dict:
    data = {
        "first_name": "Alex",
        "last_name": "Runner",
        "email": "Alex@Example.com",
        "phone": "555-0100",
        "password": "a-long-password",
    }
    data.update(overrides)
    return data


def test_register_user(client: TestClient):
    """Test registering a user"""
    response = client.post("/api/auth/user", json=_registration())
    assert response.status_code == 201

    data = response.json()
    assert data["id"] > 0
    assert data["email"] == "alex@example.com"
    assert data["active"] is True
    assert "password" not in data


def test_registered_user_can_log_in(client: TestClient, login):
    """Test that a freshly registered user can log in"""
    client.post("/api/auth/user", json=_registration())
    response = login(email="alex@example.com", password="a-long-password")
    assert response.status_code == 200


def test_register_duplicate_email(client: TestClient, user: User):
    """Test that an email can only be registered once"""
    response = client.post("/api/auth/user", json=_registration(email=user.email.upper()))
    assert response.status_code == 409


def test_register_short_password(client: TestClient):
    """Test password length validation"""
    response = client.post("/api/auth/user", json=_registration(password="short"))
    assert response.status_code == 422


def test_register_invalid_email(client: TestClient):
    """Test email validation"""
    response = client.post("/api/auth/user", json=_registration(email="not-an-email"))
    assert response.status_code == 422


def test_user_ping_requires_auth(client: TestClient, user: User, login):
    """Test the authenticated ping"""
    assert client.get("/api/user/").status_code == 401

    login()
    response = client.get("/api/user/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_update_own_user(client: TestClient, user: User, login):
    """Test updating the caller's own details"""
    login()
    response = client.put(f"/api/user/{user.id}", json={
        "first_name": "Jordan",
        "last_name": "Sprinter",
        "email": "jordan.new@example.com",
        "phone": None,
    })
    assert response.status_code == 200

    data = response.json()["data"]["user"]
    assert data["last_name"] == "Sprinter"
    assert data["email"] == "jordan.new@example.com"

    me = client.get("/api/user/me").json()["data"]["user"]
    assert me["email"] == "jordan.new@example.com"


def test_update_other_user_forbidden(client: TestClient, user: User, other_user: User, login):
    """Test that users cannot edit each other"""
    login()
    response = client.put(f"/api/user/{other_user.id}", json={
        "first_name": "Hacked",
        "last_name": "User",
        "email": "hacked@example.com",
    })
    assert response.status_code == 403


def test_update_email_conflict(client: TestClient, user: User, other_user: User, login):
    """Test that an email already taken by someone else is refused"""
    login()
    response = client.put(f"/api/user/{user.id}", json={
        "first_name": "Jordan",
        "last_name": "Tester",
        "email": OTHER_EMAIL,
    })
    assert response.status_code == 409


def test_update_requires_auth(client: TestClient, user: User):
    """Test that updates need a token"""
    response = client.put(f"/api/user/{user.id}", json={
        "first_name": "Jordan",
        "last_name": "Tester",
        "email": "jordan@example.com",
    })
    assert response.status_code == 401
