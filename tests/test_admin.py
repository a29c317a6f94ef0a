from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import PASSWORD, approve_institution, login, register
from youthworks.core.password_policy import validate_password

pytestmark = pytest.mark.integration


def test_company_approval_flow(client: TestClient, admin) -> None:
    _, admin_headers = admin
    owner = register(client, "hr@shop.example.com", role="COMPANIES", company_name="Corner Shop")
    owner_headers = login(client, "hr@shop.example.com")

    pending = client.get("/api/admin/companies", params={"status": "PENDING"}, headers=admin_headers).json()
    assert [c["name"] for c in pending] == ["Corner Shop"]
    company_id = pending[0]["company_id"]

    # Not listed publicly until approved
    assert client.get("/api/companies").json() == []

    approved = client.put(
        f"/api/admin/companies/{company_id}/approval", json={"status": "APPROVED"}, headers=admin_headers,
    )
    assert approved.status_code == 200
    assert approved.json()["is_active"] is True
    assert [c["name"] for c in client.get("/api/companies").json()] == ["Corner Shop"]

    notifications = client.get("/api/notifications", headers=owner_headers).json()["notifications"]
    assert notifications[0]["type"] == "system"
    assert notifications[0]["title"] == "Company approved"
    assert client.post("/api/jobs", json={"title": "Cashier"}, headers=owner_headers).status_code == 201

    rejected = client.put(
        f"/api/admin/companies/{company_id}/approval",
        json={"status": "REJECTED", "reason": "Invalid tax id"},
        headers=admin_headers,
    )
    assert rejected.json()["is_active"] is False
    assert client.post("/api/jobs", json={"title": "Cashier"}, headers=owner_headers).status_code == 403
    assert owner["status"] == "PENDING"


def test_approval_of_unknown_company(client: TestClient, admin) -> None:
    _, admin_headers = admin
    response = client.put("/api/admin/companies/999/approval", json={"status": "APPROVED"}, headers=admin_headers)
    assert response.status_code == 404


def test_institution_approval_flow(client: TestClient, admin) -> None:
    _, admin_headers = admin
    register(
        client, "ngo@example.com", role="INSTITUTION", institution_name="Youth NGO",
        institution_type="NGO", department="Cochabamba",
    )
    headers = login(client, "ngo@example.com")
    assert client.get("/api/institutions/me/students", headers=headers).status_code == 403

    pending = client.get("/api/admin/institutions", params={"status": "PENDING"}, headers=admin_headers).json()
    institution_id = pending[0]["institution_id"]
    response = client.put(
        f"/api/admin/institutions/{institution_id}/approval", json={"status": "APPROVED"}, headers=admin_headers,
    )
    assert response.json()["approval_status"] == "APPROVED"
    assert client.get("/api/institutions/me/students", headers=headers).status_code == 200


def test_admin_creates_a_municipality(client: TestClient, admin) -> None:
    _, admin_headers = admin
    response = client.post("/api/admin/institutions", json={
        "email": "city@example.com", "password": PASSWORD, "name": "La Paz City Hall",
        "institution_type": "MUNICIPALITY", "department": "La Paz",
    }, headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["approval_status"] == "APPROVED"

    headers = login(client, "city@example.com")
    course = client.post("/api/courses", json={"title": "Civic Skills"}, headers=headers)
    assert course.status_code == 201

    duplicate = client.post("/api/admin/institutions", json={
        "email": "city@example.com", "password": PASSWORD, "name": "Again",
        "institution_type": "MUNICIPALITY", "department": "La Paz",
    }, headers=admin_headers)
    assert duplicate.status_code == 409


def test_user_management(client: TestClient, admin, youth) -> None:
    admin_id, admin_headers = admin
    youth_id, _ = youth

    everyone = client.get("/api/admin/users", headers=admin_headers).json()
    assert {u["role"] for u in everyone} == {"SUPERADMIN", "YOUTH"}
    only_youth = client.get("/api/admin/users", params={"role": "YOUTH"}, headers=admin_headers).json()
    assert [u["user_id"] for u in only_youth] == [youth_id]

    updated = client.put(f"/api/admin/users/{youth_id}", json={"is_active": False}, headers=admin_headers)
    assert updated.json()["is_active"] is False

    assert client.put(f"/api/admin/users/{admin_id}", json={"is_active": False}, headers=admin_headers).status_code == 400
    assert client.put("/api/admin/users/999", json={"is_active": True}, headers=admin_headers).status_code == 404


def test_institutions_create_youth_accounts(client: TestClient, admin) -> None:
    body = register(
        client, "center@example.com", role="INSTITUTION", institution_name="Skills Center",
        institution_type="TRAINING_CENTER", department="La Paz",
    )
    approve_institution(body["user_id"])
    headers = login(client, "center@example.com")

    created = client.post("/api/admin/users", json={
        "email": "new.youth@example.com", "password": PASSWORD,
        "first_name": "Rosa", "last_name": "Choque", "education_level": "TECHNICAL",
    }, headers=headers)
    assert created.status_code == 201
    assert created.json()["role"] == "YOUTH"
    assert created.json()["profile_completion"] == 30
    assert created.json()["temporary_password"] is None
    assert login(client, "new.youth@example.com")

    # Institutions only ever see youth accounts
    listed = client.get("/api/admin/users", params={"role": "SUPERADMIN"}, headers=headers).json()
    assert {u["role"] for u in listed} == {"YOUTH"}

    weak = client.post("/api/admin/users", json={"email": "weak@example.com", "password": "password"}, headers=headers)
    assert weak.status_code == 400


def test_admin_endpoints_are_guarded(client: TestClient, youth) -> None:
    _, headers = youth
    assert client.get("/api/admin/users", headers=headers).status_code == 403
    assert client.get("/api/admin/companies", headers=headers).status_code == 403
    assert client.put("/api/admin/companies/1/approval", json={"status": "APPROVED"}, headers=headers).status_code == 403


def test_youth_account_without_password_gets_a_temporary_one(client: TestClient, admin) -> None:
    _, admin_headers = admin
    created = client.post("/api/admin/users", json={"email": "nopass@example.com"}, headers=admin_headers)
    assert created.status_code == 201

    temporary = created.json()["temporary_password"]
    assert validate_password(temporary).is_valid
    assert login(client, "nopass@example.com", password=temporary)
