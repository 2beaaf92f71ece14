import pytest

from parlour_api.auth.jwt_handler import decode_jwt
from parlour_api.auth.models import User
from parlour_api.create_users import create_users


@pytest.fixture
def seeded(session_factory):
    users = [
        ("Sara Super", "super@parlour.local", "superpass", "super-admin"),
        ("Alice Admin", "admin@parlour.local", "adminpass", "admin"),
    ]
    assert create_users(session_factory, users) == 2
    return users


def test_create_users_skips_existing(session_factory, seeded):
    assert create_users(session_factory, seeded) == 0

    db = session_factory()
    try:
        stored = db.query(User).filter(User.email == "admin@parlour.local").one()
        assert stored.password_hash != "adminpass"
        assert db.query(User).count() == 2
    finally:
        db.close()


def test_login_success(client, seeded):
    resp = client.post("/api/auth/login", json={"email": "Super@Parlour.local ", "password": "superpass"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["user"]["name"] == "Sara Super"
    assert body["user"]["role"] == "super-admin"

    claims = decode_jwt(body["token"])
    assert claims["role"] == "super-admin"
    assert claims["user_id"] == body["user"]["id"]
    assert "exp" in claims


def test_login_token_opens_protected_routes(client, seeded):
    token = client.post("/api/auth/login", json={"email": "admin@parlour.local", "password": "adminpass"}).json()["token"]

    resp = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.json()["data"]["name"] == "Alice Admin"
    assert resp.json()["data"]["role"] == "admin"


def test_login_unknown_user_is_404(client, seeded):
    resp = client.post("/api/auth/login", json={"email": "ghost@parlour.local", "password": "x"})

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "User not found"}


def test_login_wrong_password_is_401(client, seeded):
    resp = client.post("/api/auth/login", json={"email": "admin@parlour.local", "password": "nope"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid credentials"


@pytest.mark.parametrize("body", [{}, {"email": "admin@parlour.local"}, {"password": "adminpass"}])
def test_login_missing_fields_is_400(client, body):
    resp = client.post("/api/auth/login", json=body)

    assert resp.status_code == 400
