import pytest
from fastapi import status

from recruiter.core.security import create_admin_session, get_password_hash, read_admin_session, verify_password


def test_login_success_sets_session_cookie(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "AdminPassword123!"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"success": True, "username": "admin"}
    assert "admin_session" in response.cookies

def test_login_invalid_credentials(client):
    response = client.post("/api/auth/login", json={"username": "admin", "password": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "AUTH_FAILED"

def test_me_requires_session(client):
    response = client.get("/api/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

def test_me_with_session(admin_client):
    response = admin_client.get("/api/auth/me")
    assert response.status_code == 200
    assert response.json()["username"] == "admin"

def test_logout_clears_session(admin_client):
    response = admin_client.post("/api/auth/logout")
    assert response.status_code == 200
    admin_client.cookies.clear()
    assert admin_client.get("/api/auth/me").status_code == status.HTTP_401_UNAUTHORIZED

def test_tampered_cookie_is_rejected(client):
    client.cookies.set("admin_session", "not-a-fernet-token")
    assert client.get("/api/auth/me").status_code == status.HTTP_401_UNAUTHORIZED

def test_session_token_round_trip():
    token = create_admin_session("admin")
    assert read_admin_session(token) == "admin"
    assert read_admin_session(None) is None

def test_password_hashing():
    hashed = get_password_hash("s3cret!")
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)
    assert not verify_password("other", hashed)
