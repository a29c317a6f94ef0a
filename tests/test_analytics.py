from __future__ import annotations

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from conftest import create_job, login, register
from youthworks.services.analytics_service import (
    average_response_days, hiring_funnel, market_status, percentage, resolve_time_range, time_series,
)

NOW = datetime(2024, 6, 15, 12, 0, 0)


def app_row(status: str, days_ago: int, reviewed_after: int = None) -> SimpleNamespace:
    applied = NOW - timedelta(days=days_ago)
    reviewed = applied + timedelta(days=reviewed_after) if reviewed_after is not None else None
    return SimpleNamespace(status=status, applied_at=applied, reviewed_at=reviewed)


@pytest.mark.unit
def test_percentage_and_ranges() -> None:
    assert percentage(1, 3) == 33
    assert percentage(5, 0) == 0
    assert resolve_time_range("7d", NOW) == ("7d", NOW - timedelta(days=7))
    assert resolve_time_range("forever", NOW) == ("30d", NOW - timedelta(days=30))


@pytest.mark.unit
def test_funnel_and_response_time() -> None:
    apps = [
        app_row("SENT", 1),
        app_row("UNDER_REVIEW", 3, reviewed_after=1),
        app_row("PRE_SELECTED", 5, reviewed_after=2),
        app_row("HIRED", 9, reviewed_after=3),
    ]
    funnel = hiring_funnel(apps)
    assert funnel["applied"] == 4
    assert funnel["reviewed"] == 3
    assert funnel["shortlisted"] == 1
    assert funnel["hired"] == 1
    assert funnel["conversion_rates"] == {
        "review_rate": 75, "shortlist_rate": 33, "hire_rate": 100, "overall_hire_rate": 25,
    }
    assert average_response_days(apps) == 2


@pytest.mark.unit
def test_time_series_groups_by_day() -> None:
    apps = [app_row("HIRED", 2), app_row("REJECTED", 2), app_row("SENT", 1)]
    series = time_series(apps)
    assert [point["applications"] for point in series] == [2, 1]
    assert series[0]["hired"] == 1
    assert series[0]["rejected"] == 1


@pytest.mark.unit
@pytest.mark.parametrize("ratio,status", [(0.2, "high_demand"), (0.5, "balanced"), (1.5, "balanced"), (2.0, "oversupplied")])
def test_market_status(ratio: float, status: str) -> None:
    assert market_status(ratio) == status


@pytest.mark.integration
def test_company_dashboard(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    client.put("/api/profile/me", json={"skills": ["Python"], "address": "El Alto, La Paz"}, headers=headers)
    job = create_job(client, company_headers)
    application = client.post("/api/applications", json={"job_id": job["id"]}, headers=headers).json()
    client.put(
        f"/api/companies/me/applications/{application['id']}", json={"status": "HIRED"}, headers=company_headers,
    )

    response = client.get("/api/analytics/company", params={"time_range": "bogus"}, headers=company_headers)
    assert response.status_code == 200
    body = response.json()

    assert body["period"]["range"] == "30d"
    assert body["application_metrics"]["total"] == 1
    assert body["application_metrics"]["by_status"] == {"HIRED": 1}
    assert body["application_metrics"]["conversion_rate"] == 100
    assert body["job_performance"][0]["hired"] == 1
    assert body["candidate_insights"]["top_skills"] == [{"skill": "Python", "count": 1}]
    assert body["demographics"]["by_location"][0]["location"] == "El Alto"
    assert body["hiring_funnel"]["hired"] == 1


@pytest.mark.integration
def test_platform_totals(client: TestClient, admin, company, youth) -> None:
    _, admin_headers = admin
    _, _, company_headers = company
    create_job(client, company_headers)
    register(client, "pending@shop.example.com", role="COMPANIES", company_name="Pending Shop")

    body = client.get("/api/analytics/platform", headers=admin_headers).json()
    assert body["users"]["by_role"] == {"SUPERADMIN": 1, "COMPANIES": 2, "YOUTH": 1}
    assert body["users"]["total"] == 4
    assert body["jobs"] == {"total": 1, "active": 1}
    assert body["pending_approvals"] == {"companies": 1, "institutions": 0}
    assert body["courses"]["completion_rate"] == 0


@pytest.mark.integration
def test_skills_demand(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    create_job(client, company_headers, skills_required=["Python", "SQL"])
    create_job(client, company_headers, title="Data Analyst", skills_required=["sql", "Excel"])
    client.put("/api/profile/me", json={"skills": ["SQL", "Excel"]}, headers=headers)

    body = client.get("/api/analytics/skills-demand", headers=headers).json()
    skills = {item["skill"]: item for item in body["skills"]}
    assert skills["sql"]["demand"] == 2
    assert skills["sql"]["supply"] == 1
    assert skills["sql"]["market_status"] == "balanced"
    assert skills["python"]["market_status"] == "high_demand"
    assert body["total_active_jobs"] == 2
    assert body["total_youth"] == 1


@pytest.mark.integration
def test_youth_dashboard(client: TestClient, company, youth) -> None:
    _, _, company_headers = company
    _, headers = youth
    job = create_job(client, company_headers)
    client.post("/api/applications", json={"job_id": job["id"]}, headers=headers)

    body = client.get("/api/analytics/profile", headers=headers).json()
    assert body["applications"] == {"total": 1, "by_status": {"SENT": 1}, "response_rate": 0}
    assert body["courses"] == {"enrolled": 0, "completed": 0}


@pytest.mark.integration
def test_company_dashboard_needs_approval(client: TestClient) -> None:
    register(client, "pending@shop.example.com", role="COMPANIES", company_name="Pending Shop")
    headers = login(client, "pending@shop.example.com")
    assert client.get("/api/analytics/company", headers=headers).status_code == 403
