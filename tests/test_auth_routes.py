"""Auth endpoints and the token dependencies."""
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

from placeprep.api.routes import auth_routes
from placeprep.core import auth
from placeprep.core.auth import create_access_token, hash_password
from tests.conftest import FakeResult, FakeSession

USER_ID = uuid.UUID("11111111-1111-1111-1111-111111111111")


def patch_token_lookup(monkeypatch, role="STUDENT", is_active=True):
    session = FakeSession([FakeResult([(USER_ID, "asha@college.edu", role, is_active, "Asha Rao")])])

    @contextmanager
    def factory():
        yield session

    monkeypatch.setattr(auth, "get_db_session", factory)


def bearer(role="STUDENT", token_type="access"):
    token = create_access_token({"sub": str(USER_ID), "role": role, "type": token_type})
    return {"Authorization": f"Bearer {token}"}


def test_register_creates_student(client, monkeypatch, fake_db):
    session, factory = fake_db
    monkeypatch.setattr(auth_routes, "fetch_one", lambda sql, params=None: None)
    monkeypatch.setattr(auth_routes, "get_db_session", factory)

    response = client.post("/api/auth/register", json={
        "email": "Asha@College.edu", "password": "s3cret-pass", "full_name": "Asha Rao", "year": 3
    })

    assert response.status_code == 201
    sql, params = session.executed[0]
    assert "INSERT INTO users" in sql
    assert params["email"] == "asha@college.edu"
    assert params["role"] == "STUDENT"
    assert params["password_hash"] != "s3cret-pass"
    assert auth.verify_password("s3cret-pass", params["password_hash"])


def test_register_duplicate_email(client, monkeypatch):
    monkeypatch.setattr(auth_routes, "fetch_one", lambda sql, params=None: {"id": USER_ID})
    response = client.post("/api/auth/register", json={
        "email": "asha@college.edu", "password": "s3cret-pass", "full_name": "Asha Rao"
    })
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


def test_register_rejects_short_password(client):
    response = client.post("/api/auth/register", json={
        "email": "asha@college.edu", "password": "short", "full_name": "Asha Rao"
    })
    assert response.status_code == 422


def login_user(monkeypatch, is_active=True):
    row = {"id": USER_ID, "password_hash": hash_password("s3cret-pass"), "role": "STUDENT",
           "is_active": is_active, "full_name": "Asha Rao"}
    monkeypatch.setattr(auth_routes, "fetch_one", lambda sql, params=None: row)


def test_login_returns_access_token(client, monkeypatch):
    login_user(monkeypatch)
    response = client.post("/api/auth/login", json={"email": "asha@college.edu", "password": "s3cret-pass"})

    assert response.status_code == 200
    body = response.json()
    assert body["user_id"] == str(USER_ID)
    assert body["role"] == "STUDENT"
    assert body["token_type"] == "bearer"
    assert auth.decode_token(body["access_token"])["type"] == "access"


def test_login_wrong_password(client, monkeypatch):
    login_user(monkeypatch)
    response = client.post("/api/auth/login", json={"email": "asha@college.edu", "password": "wrong-pass"})
    assert response.status_code == 401


def test_login_unknown_email(client, monkeypatch):
    monkeypatch.setattr(auth_routes, "fetch_one", lambda sql, params=None: None)
    response = client.post("/api/auth/login", json={"email": "nobody@college.edu", "password": "whatever1"})
    assert response.status_code == 401


def test_login_inactive_account(client, monkeypatch):
    login_user(monkeypatch, is_active=False)
    response = client.post("/api/auth/login", json={"email": "asha@college.edu", "password": "s3cret-pass"})
    assert response.status_code == 403


def test_me_with_real_token(client, monkeypatch):
    patch_token_lookup(monkeypatch)
    monkeypatch.setattr(auth_routes, "fetch_one", lambda sql, params=None: {
        "id": USER_ID, "email": "asha@college.edu", "full_name": "Asha Rao", "role": "STUDENT",
        "department": "CSE", "year": 3, "is_active": True, "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    })

    response = client.get("/api/auth/me", headers=bearer())

    assert response.status_code == 200
    assert response.json()["id"] == str(USER_ID)
    assert "password_hash" not in response.json()


def test_missing_token_is_rejected(client):
    assert client.get("/api/auth/me").status_code in (401, 403)


def test_garbage_token_is_401(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


def test_exam_token_cannot_authenticate(client, monkeypatch):
    patch_token_lookup(monkeypatch)
    response = client.get("/api/auth/me", headers=bearer(token_type="exam"))
    assert response.status_code == 401


def test_deactivated_account_is_403(client, monkeypatch):
    patch_token_lookup(monkeypatch, is_active=False)
    response = client.get("/api/auth/me", headers=bearer())
    assert response.status_code == 403


def test_admin_cannot_use_student_endpoints(client, monkeypatch):
    patch_token_lookup(monkeypatch, role="ADMIN")
    response = client.get("/api/interview/performance", headers=bearer(role="ADMIN"))
    assert response.status_code == 403
    assert response.json()["detail"] == "Students only"


def test_student_cannot_use_admin_endpoints(client, monkeypatch):
    patch_token_lookup(monkeypatch)
    response = client.get("/api/admin/stats", headers=bearer())
    assert response.status_code == 403
    assert response.json()["detail"] == "Admins only"


def test_access_token_type_defaults_to_access():
    claims = auth.decode_token(create_access_token({"sub": str(USER_ID), "role": "STUDENT"}))
    assert claims["type"] == "access"
    assert claims["sub"] == str(USER_ID)
