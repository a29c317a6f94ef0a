from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import PASSWORD, auth_headers, login, register

pytestmark = pytest.mark.integration


def test_youth_registration_is_active_immediately(client: TestClient) -> None:
    body = register(client, "Ana@Example.com")
    assert body["status"] == "ACTIVE"
    assert body["email"] == "ana@example.com"
    assert body["role"] == "YOUTH"

    me = client.get("/api/auth/me", headers=login(client, "ana@example.com"))
    assert me.status_code == 200
    assert me.json()["user_id"] == body["user_id"]


def test_company_registration_is_pending(client: TestClient) -> None:
    body = register(client, "hr@acme.example.com", role="COMPANIES", company_name="Acme")
    assert body["status"] == "PENDING"

    headers = login(client, "hr@acme.example.com")
    mine = client.get("/api/companies/me", headers=headers)
    assert mine.status_code == 200
    assert mine.json()["approval_status"] == "PENDING"

    # Pending companies cannot post jobs yet
    job = client.post("/api/jobs", json={"title": "Cashier"}, headers=headers)
    assert job.status_code == 403


def test_company_requires_a_name(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={
        "email": "x@acme.example.com", "password": PASSWORD, "confirm_password": PASSWORD,
        "role": "COMPANIES", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 400


def test_municipalities_cannot_self_register(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={
        "email": "city@example.com", "password": PASSWORD, "confirm_password": PASSWORD,
        "role": "INSTITUTION", "first_name": "A", "last_name": "B",
        "institution_name": "City Hall", "institution_type": "MUNICIPALITY", "department": "La Paz",
    })
    assert response.status_code == 400


def test_superadmin_cannot_self_register(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={
        "email": "root@example.com", "password": PASSWORD, "confirm_password": PASSWORD,
        "role": "SUPERADMIN", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 400


def test_weak_password_is_rejected_with_reasons(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={
        "email": "weak@example.com", "password": "password", "confirm_password": "password",
        "role": "YOUTH", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 400
    assert "Password is too common" in response.json()["detail"]["errors"]


def test_password_confirmation_must_match(client: TestClient) -> None:
    response = client.post("/api/auth/register", json={
        "email": "typo@example.com", "password": PASSWORD, "confirm_password": PASSWORD + "x",
        "role": "YOUTH", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 422


def test_duplicate_email_is_a_conflict(client: TestClient) -> None:
    register(client, "ana@example.com")
    response = client.post("/api/auth/register", json={
        "email": "ANA@example.com", "password": PASSWORD, "confirm_password": PASSWORD,
        "role": "YOUTH", "first_name": "A", "last_name": "B",
    })
    assert response.status_code == 409


def test_login_failures(client: TestClient) -> None:
    register(client, "ana@example.com")
    wrong = client.post("/api/auth/login", json={"email": "ana@example.com", "password": "Nope#1234x"})
    assert wrong.status_code == 401
    unknown = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": PASSWORD})
    assert unknown.status_code == 401


def test_protected_routes_need_a_valid_token(client: TestClient) -> None:
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers=auth_headers("not-a-token")).status_code == 401


def test_deactivated_account_is_refused(client: TestClient, admin) -> None:
    body = register(client, "ana@example.com")
    headers = login(client, "ana@example.com")
    _, admin_headers = admin

    response = client.put(f"/api/admin/users/{body['user_id']}", json={"is_active": False}, headers=admin_headers)
    assert response.status_code == 200

    assert client.get("/api/auth/me", headers=headers).status_code == 403
    relogin = client.post("/api/auth/login", json={"email": "ana@example.com", "password": PASSWORD})
    assert relogin.status_code == 403


def test_password_check_endpoint(client: TestClient) -> None:
    response = client.post("/api/auth/password/check", json={"password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["is_valid"] is True
    assert response.json()["strength"] == "strong"


def test_role_guard_returns_forbidden(client: TestClient, youth) -> None:
    _, headers = youth
    assert client.get("/api/analytics/platform", headers=headers).status_code == 403
    assert client.get("/api/jobs/mine", headers=headers).status_code == 403
