from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from parlour_api.auth.dependencies import Identity, _extract_bearer, check_role, identity_from_token
from parlour_api.config import JWT_ALGORITHM, JWT_SECRET
from parlour_api.errors import Forbidden, Unauthenticated


EMPLOYEE_BODY = {
    "name": "Riya",
    "email": "riya@parlour.local",
    "mobile": "9000000001",
    "role": "Stylist",
    "position": "Senior",
}


@pytest.fixture
def punch_id(client, super_admin_headers, make_employee):
    emp_id = make_employee("Riya")
    resp = client.post("/api/attendance", json={"employeeId": emp_id, "type": "check-in"},
                       headers=super_admin_headers)
    return resp.json()["data"]["id"]


@pytest.fixture
def task_id(client, super_admin_headers, make_employee):
    emp_id = make_employee("Riya")
    resp = client.post("/api/tasks", json={"title": "Restock", "assignedTo": emp_id, "dueDate": "2024-06-01"},
                       headers=super_admin_headers)
    return resp.json()["data"]["id"]


# -----------------------------
# Token handling
# -----------------------------
@pytest.mark.parametrize("header", [None, "", "Token abc", "Bearer", "Bearer a b"])
def test_extract_bearer_rejects_malformed_headers(header):
    assert _extract_bearer(header) is None


def test_extract_bearer():
    assert _extract_bearer("Bearer abc.def") == "abc.def"
    assert _extract_bearer("bearer abc.def") == "abc.def"


def test_missing_token_is_unauthenticated():
    with pytest.raises(Unauthenticated, match="No token provided"):
        identity_from_token(None)


def test_tampered_token_is_unauthenticated():
    token = jwt.encode({"user_id": 1, "role": "super-admin"}, "other-secret", algorithm=JWT_ALGORITHM)

    with pytest.raises(Unauthenticated, match="Invalid token"):
        identity_from_token(token)


def test_expired_token_is_unauthenticated():
    past = datetime.now(timezone.utc) - timedelta(minutes=5)
    token = jwt.encode({"user_id": 1, "role": "admin", "exp": past}, JWT_SECRET, algorithm=JWT_ALGORITHM)

    with pytest.raises(Unauthenticated):
        identity_from_token(token)


def test_token_without_subject_is_unauthenticated():
    token = jwt.encode({"role": "admin"}, JWT_SECRET, algorithm=JWT_ALGORITHM)

    with pytest.raises(Unauthenticated, match="payload"):
        identity_from_token(token)


def test_identity_from_sub_claim():
    token = jwt.encode({"sub": "7", "role": "admin", "name": "Alice"}, JWT_SECRET, algorithm=JWT_ALGORITHM)

    assert identity_from_token(token) == Identity(subject_id=7, role="admin", name="Alice")


def test_check_role():
    admin = Identity(subject_id=2, role="admin")

    assert check_role(admin, ["admin", "super-admin"]) is admin
    assert not admin.is_elevated
    with pytest.raises(Forbidden, match="super-admin"):
        check_role(admin, ["super-admin"])
    with pytest.raises(Forbidden):
        check_role(Identity(subject_id=3, role="receptionist"), ["admin", "super-admin"])


# -----------------------------
# Route matrix
# -----------------------------
@pytest.mark.parametrize("method, path", [
    ("get", "/api/employees"),
    ("get", "/api/tasks"),
    ("get", "/api/attendance"),
    ("get", "/api/attendance/daily"),
    ("get", "/api/dashboard/stats"),
    ("get", "/api/auth/me"),
])
def test_routes_require_a_token(client, method, path):
    resp = getattr(client, method)(path)

    assert resp.status_code == 401
    assert resp.json() == {"success": False, "message": "Access denied. No token provided."}


def test_garbage_token_is_401(client):
    resp = client.get("/api/employees", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid token. Authentication failed."


def test_unknown_role_is_403(client):
    token = jwt.encode({"user_id": 5, "role": "receptionist"}, JWT_SECRET, algorithm=JWT_ALGORITHM)

    resp = client.get("/api/employees", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 403


def test_admin_cannot_create_employee(client, admin_headers):
    resp = client.post("/api/employees", json=EMPLOYEE_BODY, headers=admin_headers)

    assert resp.status_code == 403
    assert resp.json()["success"] is False


def test_admin_cannot_edit_or_delete_employee(client, admin_headers, make_employee):
    emp_id = make_employee()

    assert client.put(f"/api/employees/{emp_id}", json={"name": "X"}, headers=admin_headers).status_code == 403
    assert client.delete(f"/api/employees/{emp_id}", headers=admin_headers).status_code == 403


def test_admin_cannot_create_task(client, admin_headers, make_employee):
    emp_id = make_employee()

    resp = client.post("/api/tasks", json={"title": "T", "assignedTo": emp_id, "dueDate": "2024-06-01"},
                       headers=admin_headers)

    assert resp.status_code == 403


def test_admin_cannot_edit_or_delete_task(client, admin_headers, task_id):
    assert client.put(f"/api/tasks/{task_id}", json={"title": "X"}, headers=admin_headers).status_code == 403
    assert client.delete(f"/api/tasks/{task_id}", headers=admin_headers).status_code == 403


def test_admin_can_change_task_status(client, admin_headers, task_id):
    resp = client.patch(f"/api/tasks/{task_id}/status", json={"status": "completed"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "completed"


def test_admin_can_record_punch(client, admin_headers, make_employee):
    emp_id = make_employee()

    resp = client.post("/api/attendance", json={"employeeId": emp_id, "type": "check-in"}, headers=admin_headers)

    assert resp.status_code == 201


def test_admin_cannot_edit_punch(client, admin_headers, punch_id):
    resp = client.put(f"/api/attendance/{punch_id}", json={"timestamp": "2024-05-01T09:00:00Z", "type": "check-in"},
                      headers=admin_headers)

    assert resp.status_code == 403


def test_admin_cannot_delete_punch(client, admin_headers, punch_id):
    resp = client.delete(f"/api/attendance/{punch_id}", headers=admin_headers)

    assert resp.status_code == 403


def test_admin_can_read_everything(client, admin_headers):
    for path in ("/api/employees", "/api/tasks", "/api/attendance", "/api/attendance/daily", "/api/dashboard/stats"):
        assert client.get(path, headers=admin_headers).status_code == 200, path


def test_super_admin_can_delete_punch(client, super_admin_headers, punch_id):
    resp = client.delete(f"/api/attendance/{punch_id}", headers=super_admin_headers)

    assert resp.status_code == 200
    assert resp.json()["deletedCount"] == 1
