from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import approve_company, create_job, login, register

pytestmark = pytest.mark.integration


def test_create_and_read_job(client: TestClient, company, youth) -> None:
    _, company_id, headers = company
    job = create_job(client, headers)

    assert job["company_id"] == company_id
    assert job["company"]["name"] == "Acme Software"
    assert job["salary"] == {"min": 3000, "max": 5000, "currency": "BOB"}
    assert job["remote"] is False
    assert job["skills"] == ["Python", "SQL"]

    _, youth_headers = youth
    first = client.get(f"/api/jobs/{job['id']}", headers=youth_headers).json()
    second = client.get(f"/api/jobs/{job['id']}", headers=youth_headers).json()
    assert second["views_count"] == first["views_count"] + 1


def test_salary_is_null_without_both_bounds(client: TestClient, company) -> None:
    _, _, headers = company
    job = create_job(client, headers, salary_min=None, salary_max=None)
    assert job["salary"] is None


def test_inverted_salary_range_is_invalid(client: TestClient, company) -> None:
    _, _, headers = company
    response = client.post(
        "/api/jobs", json={"title": "Cashier", "salary_min": 5000, "salary_max": 1000}, headers=headers,
    )
    assert response.status_code == 422

    job = create_job(client, headers)
    update = client.put(f"/api/jobs/{job['id']}", json={"salary_min": 9000}, headers=headers)
    assert update.status_code == 400


def test_list_filters(client: TestClient, company, youth) -> None:
    _, _, headers = company
    create_job(client, headers, title="Python Developer", skills_required=["Python"])
    create_job(
        client, headers, title="Remote Designer", work_modality="REMOTE", contract_type="PART_TIME",
        skills_required=["Figma"], salary_min=1000, salary_max=2000,
    )
    paused = create_job(client, headers, title="Paused Role", skills_required=["Excel"])
    client.put(f"/api/jobs/{paused['id']}", json={"is_active": False}, headers=headers)

    _, youth_headers = youth

    def titles(**params) -> list:
        response = client.get("/api/jobs", params=params, headers=youth_headers)
        assert response.status_code == 200
        return sorted(j["title"] for j in response.json()["jobs"])

    assert titles() == ["Python Developer", "Remote Designer"]
    assert titles(remote="yes") == ["Remote Designer"]
    assert titles(remote="no") == ["Python Developer"]
    assert titles(contract_type="PART_TIME") == ["Remote Designer"]
    assert titles(skills="figma, rust") == ["Remote Designer"]
    assert titles(search="python") == ["Python Developer"]
    assert titles(search="acme") == ["Python Developer", "Remote Designer"]
    assert titles(salary_min=2500) == ["Python Developer"]
    assert titles(salary_max=1500) == ["Remote Designer"]


def test_sorting_by_salary(client: TestClient, company, youth) -> None:
    _, _, headers = company
    create_job(client, headers, title="Low Pay", salary_min=1000, salary_max=1500)
    create_job(client, headers, title="High Pay", salary_min=8000, salary_max=9000)
    _, youth_headers = youth

    jobs = client.get("/api/jobs", params={"sort_by": "salary_high"}, headers=youth_headers).json()["jobs"]
    assert [j["title"] for j in jobs] == ["High Pay", "Low Pay"]


def test_only_the_owner_can_change_a_job(client: TestClient, company) -> None:
    _, _, headers = company
    job = create_job(client, headers)

    other = register(client, "hr@other.example.com", role="COMPANIES", company_name="Other Co")
    approve_company(other["user_id"])
    other_headers = login(client, "hr@other.example.com")

    assert client.put(f"/api/jobs/{job['id']}", json={"title": "Hijacked"}, headers=other_headers).status_code == 404
    assert client.delete(f"/api/jobs/{job['id']}", headers=other_headers).status_code == 404
    assert client.delete(f"/api/jobs/{job['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/jobs/{job['id']}", headers=headers).status_code == 404


def test_deleting_a_job_removes_its_applications(client: TestClient, company, youth) -> None:
    _, _, headers = company
    _, youth_headers = youth
    job = create_job(client, headers)
    client.post("/api/applications", json={"job_id": job["id"]}, headers=youth_headers)

    assert client.delete(f"/api/jobs/{job['id']}", headers=headers).status_code == 200
    assert client.get("/api/applications", headers=youth_headers).json() == []
