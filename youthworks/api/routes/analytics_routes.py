"""
Analytics Routes

GET /analytics/company - Hiring dashboard for the current company
GET /analytics/platform - Platform totals (superadmin)
GET /analytics/skills-demand - Skills asked for by jobs vs offered by youth
GET /analytics/profile - Personal dashboard for the current youth
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from youthworks.core.auth import get_current_admin, get_current_company, get_current_user, get_current_youth
from youthworks.services.analytics_service import (
    TIME_RANGES, company_analytics, platform_analytics, skills_demand, youth_analytics,
)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/company")
async def get_company_analytics(
    time_range: str = Query("30d", description="|".join(TIME_RANGES)),
    job_id: Optional[int] = Query(None),
    company: dict = Depends(get_current_company),
):
    """
    Company hiring dashboard.

    Includes application metrics, per-job performance, candidate insights,
    a daily time series, top jobs, demographics and the hiring funnel.
    Unknown time ranges fall back to 30 days.
    """
    return company_analytics(company["company_id"], time_range, job_id)


@router.get("/platform")
async def get_platform_analytics(admin: dict = Depends(get_current_admin)):
    return platform_analytics()


@router.get("/skills-demand")
async def get_skills_demand(
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
):
    """Market status per skill: high_demand (ratio < 0.5), balanced (<= 1.5), oversupplied."""
    return skills_demand(limit)


@router.get("/profile")
async def get_profile_analytics(user: dict = Depends(get_current_youth)):
    return youth_analytics(user["user_id"])
