from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import create_job, login, register
from youthworks.db.models import utcnow
from youthworks.services.application_service import priority_for

pytestmark = pytest.mark.integration


def apply(client: TestClient, headers: dict, job_id: int, **extra):
    return client.post("/api/applications", json={"job_id": job_id, **extra}, headers=headers)


def test_apply_and_list(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)

    response = apply(client, headers, job["id"], cover_letter="I love Python")
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "SENT"
    assert body["display_status"] == "applied"
    assert body["priority"] == "low"
    assert body["company"] == "Acme Software"
    assert [entry["type"] for entry in body["timeline"]] == ["applied"]

    listed = client.get("/api/applications", headers=headers).json()
    assert [a["id"] for a in listed] == [body["id"]]

    jobs = client.get("/api/jobs", headers=headers).json()["jobs"]
    assert jobs[0]["is_applied"] is True
    assert jobs[0]["applications_count"] == 1


def test_apply_errors(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth

    assert apply(client, headers, 999).status_code == 404

    job = create_job(client, company_headers)
    assert apply(client, headers, job["id"]).status_code == 201
    assert apply(client, headers, job["id"]).status_code == 409

    closed = create_job(client, company_headers, title="Closed Role")
    client.put(f"/api/jobs/{closed['id']}", json={"is_active": False}, headers=company_headers)
    assert apply(client, headers, closed["id"]).status_code == 400

    yesterday = (utcnow() - timedelta(days=1)).isoformat()
    expired = create_job(client, company_headers, title="Expired Role", application_deadline=yesterday)
    assert apply(client, headers, expired["id"]).status_code == 400


def test_companies_cannot_apply(client: TestClient, company) -> None:
    _, _, company_headers = company
    job = create_job(client, company_headers)
    assert apply(client, company_headers, job["id"]).status_code == 403


def test_company_moves_application_through_pipeline(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    youth_id, headers = youth
    job = create_job(client, company_headers)
    application = apply(client, headers, job["id"]).json()

    received = client.get("/api/companies/me/applications", headers=company_headers).json()
    assert received[0]["applicant_id"] == youth_id
    assert received[0]["applicant_name"] == "Ana Quispe"

    update = client.put(
        f"/api/companies/me/applications/{application['id']}",
        json={"status": "PRE_SELECTED", "notes": "Strong SQL"},
        headers=company_headers,
    )
    assert update.status_code == 200
    assert update.json()["reviewed_at"] is not None

    mine = client.get(f"/api/applications/{application['id']}", headers=headers).json()
    assert mine["display_status"] == "shortlisted"
    assert mine["response_time_days"] == 0
    assert [entry["type"] for entry in mine["timeline"]] == ["applied", "reviewed", "shortlisted"]

    # The applicant was told about the change
    notifications = client.get("/api/notifications", headers=headers).json()["notifications"]
    assert notifications[0]["type"] == "job_application"

    # Shortlisted applications can no longer be withdrawn
    assert client.delete(f"/api/applications/{application['id']}", headers=headers).status_code == 400


def test_rejection_reason_is_shown(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)
    application = apply(client, headers, job["id"]).json()

    client.put(
        f"/api/companies/me/applications/{application['id']}",
        json={"status": "REJECTED", "decision_reason": "Position filled"},
        headers=company_headers,
    )
    mine = client.get(f"/api/applications/{application['id']}", headers=headers).json()
    assert mine["rejection_reason"] == "Position filled"
    assert mine["timeline"][-1]["description"] == "Position filled"


def test_status_and_search_filters(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    python_job = create_job(client, company_headers, title="Python Developer")
    sales_job = create_job(client, company_headers, title="Sales Assistant")
    first = apply(client, headers, python_job["id"]).json()
    apply(client, headers, sales_job["id"])
    client.put(
        f"/api/companies/me/applications/{first['id']}", json={"status": "UNDER_REVIEW"}, headers=company_headers,
    )

    under_review = client.get("/api/applications", params={"status": "under_review"}, headers=headers).json()
    assert [a["job_title"] for a in under_review] == ["Python Developer"]
    assert len(client.get("/api/applications", params={"status": "all"}, headers=headers).json()) == 2

    found = client.get("/api/applications", params={"search": "sales"}, headers=headers).json()
    assert [a["job_title"] for a in found] == ["Sales Assistant"]


def test_withdraw_and_notes(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)
    application = apply(client, headers, job["id"]).json()

    notes = client.put(f"/api/applications/{application['id']}", json={"notes": "Call on Monday"}, headers=headers)
    assert notes.json()["notes"] == "Call on Monday"

    assert client.delete(f"/api/applications/{application['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/applications/{application['id']}", headers=headers).status_code == 404


def test_applications_are_private(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)
    application = apply(client, headers, job["id"]).json()

    register(client, "other@example.com")
    other_headers = login(client, "other@example.com")
    assert client.get(f"/api/applications/{application['id']}", headers=other_headers).status_code == 404


def test_company_owner_is_notified_of_new_applications(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)
    apply(client, headers, job["id"])

    notifications = client.get("/api/notifications", headers=company_headers).json()
    assert notifications["unread_count"] == 1
    assert notifications["notifications"][0]["title"] == f"New application: {job['title']}"
    assert notifications["notifications"][0]["message"] == f"Ana Quispe applied to {job['title']}."


@pytest.mark.unit
@pytest.mark.parametrize(
    ("days_waiting", "reviewed", "expected"),
    [
        (3, False, "low"),
        (8, False, "medium"),
        (8, True, "medium"),
        (15, False, "high"),
        (15, True, "medium"),
        (20, True, "medium"),
    ],
)
def test_priority_depends_on_age_and_review(days_waiting: int, reviewed: bool, expected: str) -> None:
    now = utcnow()
    application = SimpleNamespace(
        applied_at=now - timedelta(days=days_waiting),
        reviewed_at=now - timedelta(days=2) if reviewed else None,
    )
    assert priority_for(application, now) == expected
