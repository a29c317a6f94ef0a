from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import approve_institution, create_job, login, register

pytestmark = pytest.mark.integration


def test_profile_update_recomputes_completion(client: TestClient, youth) -> None:
    _, headers = youth
    profile = client.get("/api/profile/me", headers=headers).json()
    assert profile["first_name"] == "Ana"
    assert profile["profile_completion"] == 20

    updated = client.put("/api/profile/me", json={
        "phone": "+591 70000000",
        "birth_date": "2003-04-05",
        "skills": ["Python"],
        "bio": "Junior developer",
    }, headers=headers).json()
    assert updated["birth_date"] == "2003-04-05"
    assert updated["profile_completion"] == 60
    assert updated["cv_uploaded"] is False


def test_profile_validation(client: TestClient, youth) -> None:
    _, headers = youth
    response = client.put("/api/profile/me", json={"education_level": "KINDERGARTEN"}, headers=headers)
    assert response.status_code == 422


def test_youth_directory(client: TestClient, company) -> None:
    _, _, company_headers = company
    register(client, "ana@example.com", first_name="Ana", last_name="Quispe")
    register(client, "luis@example.com", first_name="Luis", last_name="Mamani")
    luis_headers = login(client, "luis@example.com")
    client.put("/api/profile/me", json={"skills": ["Excel"], "education_level": "TECHNICAL"}, headers=luis_headers)

    everyone = client.get("/api/profiles", headers=company_headers).json()
    assert everyone["total"] == 2
    assert everyone["profiles"][0]["first_name"] == "Luis"

    by_skill = client.get("/api/profiles", params={"skill": "excel"}, headers=company_headers).json()
    assert [p["first_name"] for p in by_skill["profiles"]] == ["Luis"]
    by_name = client.get("/api/profiles", params={"search": "quis"}, headers=company_headers).json()
    assert [p["first_name"] for p in by_name["profiles"]] == ["Ana"]
    by_level = client.get("/api/profiles", params={"education_level": "TECHNICAL"}, headers=company_headers).json()
    assert by_level["total"] == 1

    paged = client.get("/api/profiles", params={"page": 2, "page_size": 1}, headers=company_headers).json()
    assert paged["total"] == 2
    assert len(paged["profiles"]) == 1

    assert client.get("/api/profiles", headers=luis_headers).status_code == 403


def test_company_profile_and_public_detail(client: TestClient, company) -> None:
    _, company_id, headers = company
    updated = client.put("/api/companies/me", json={"website": "https://acme.example.com"}, headers=headers).json()
    assert updated["website"] == "https://acme.example.com"

    create_job(client, headers)
    detail = client.get(f"/api/companies/{company_id}").json()
    assert detail["active_jobs"] == 1
    assert client.get("/api/companies", params={"sector": "technology"}).json()[0]["company_id"] == company_id
    assert client.get("/api/companies", params={"search": "zzz"}).json() == []


def test_institution_sees_its_students(client: TestClient, youth) -> None:
    youth_id, youth_headers = youth
    body = register(
        client, "center@example.com", role="INSTITUTION", institution_name="Skills Center",
        institution_type="TRAINING_CENTER", department="La Paz",
    )
    approve_institution(body["user_id"])
    headers = login(client, "center@example.com")

    mine = client.put("/api/institutions/me", json={"region": "Altiplano"}, headers=headers).json()
    assert mine["region"] == "Altiplano"

    course = client.post("/api/courses", json={"title": "Excel for Work"}, headers=headers).json()
    client.post(f"/api/courses/{course['id']}/enroll", headers=youth_headers)
    client.post(f"/api/courses/{course['id']}/complete", headers=youth_headers)

    students = client.get("/api/institutions/me/students", headers=headers).json()
    assert students == [{
        "user_id": youth_id, "full_name": "Ana Quispe", "email": "youth@example.com",
        "enrollments": 1, "completed": 1,
    }]

    listed = client.get("/api/institutions", params={"institution_type": "TRAINING_CENTER"}).json()
    assert [i["name"] for i in listed] == ["Skills Center"]
    assert client.get("/api/institutions", params={"institution_type": "NGO"}).json() == []


def test_root_and_health(client: TestClient) -> None:
    assert client.get("/").json()["app"] == "YouthWorks"
    health = client.get("/health").json()
    assert health["postgres"] == "connected"
    assert health["llm"] == "disabled"
