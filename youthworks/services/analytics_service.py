"""
Analytics Service - dashboard aggregations.

Simple counts go through raw SQL (GROUP BY over one table). Anything that
reads JSON list columns (skills) or needs per-day grouping is computed in
Python over the loaded rows, which keeps the queries portable across
PostgreSQL and SQLite.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from youthworks.db.models import JobApplication, JobOffer, Profile, User, utcnow
from youthworks.db.postgres import execute_raw_sql, get_db_session

logger = logging.getLogger(__name__)

TIME_RANGES = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}
DEFAULT_TIME_RANGE = "30d"
TOP_SKILLS_LIMIT = 10
TOP_JOBS_LIMIT = 10


def percentage(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole > 0 else 0


def resolve_time_range(time_range: Optional[str], now: datetime = None) -> tuple:
    """Return (range_key, start_date). Unknown ranges fall back to 30 days."""
    now = now or utcnow()
    key = time_range if time_range in TIME_RANGES else DEFAULT_TIME_RANGE
    return key, now - timedelta(days=TIME_RANGES[key])


def average_response_days(applications) -> int:
    """Mean whole days between applying and the first review, over reviewed applications."""
    reviewed = [a for a in applications if a.reviewed_at]
    if not reviewed:
        return 0
    total_days = sum((a.reviewed_at - a.applied_at).days for a in reviewed)
    return round(total_days / len(reviewed))


def hiring_funnel(applications) -> dict:
    total = len(applications)
    reviewed = sum(1 for a in applications if a.reviewed_at)
    shortlisted = sum(1 for a in applications if a.status == "PRE_SELECTED")
    hired = sum(1 for a in applications if a.status == "HIRED")
    return {
        "applied": total,
        "reviewed": reviewed,
        "shortlisted": shortlisted,
        "hired": hired,
        "conversion_rates": {
            "review_rate": percentage(reviewed, total),
            "shortlist_rate": percentage(shortlisted, reviewed),
            "hire_rate": percentage(hired, shortlisted),
            "overall_hire_rate": percentage(hired, total),
        },
    }


def time_series(applications) -> List[dict]:
    """Applications, hires and rejections per day applied, oldest first."""
    daily: Dict[str, dict] = {}
    for app in sorted(applications, key=lambda a: a.applied_at):
        day = app.applied_at.date().isoformat()
        bucket = daily.setdefault(day, {"date": day, "applications": 0, "hired": 0, "rejected": 0})
        bucket["applications"] += 1
        if app.status == "HIRED":
            bucket["hired"] += 1
        elif app.status == "REJECTED":
            bucket["rejected"] += 1
    return list(daily.values())


def candidate_insights(profiles: List[Optional[Profile]]) -> dict:
    education = Counter()
    experience = Counter()
    skills = Counter()
    skill_total = 0
    for profile in profiles:
        education[(profile.education_level if profile else None) or "HIGH_SCHOOL"] += 1
        experience[(profile.experience_level if profile else None) or "NO_EXPERIENCE"] += 1
        profile_skills = (profile.skills if profile else None) or []
        skills.update(profile_skills)
        skill_total += len(profile_skills)

    return {
        "total_candidates": len(profiles),
        "education_levels": dict(education),
        "experience_levels": dict(experience),
        "top_skills": [{"skill": s, "count": c} for s, c in skills.most_common(TOP_SKILLS_LIMIT)],
        "average_skills_per_candidate": round(skill_total / len(profiles), 2) if profiles else 0,
    }


def demographics(profiles: List[Optional[Profile]]) -> dict:
    locations = Counter()
    for profile in profiles:
        address = profile.address if profile else None
        locations[address.split(",")[0].strip() if address else "Unknown"] += 1
    total = len(profiles)
    return {
        "by_location": [
            {"location": loc, "count": count, "percentage": percentage(count, total)}
            for loc, count in locations.most_common()
        ],
        "total_candidates": total,
    }


def job_performance(job: JobOffer) -> dict:
    apps = job.applications
    hired = sum(1 for a in apps if a.status == "HIRED")
    return {
        "id": job.id,
        "title": job.title,
        "applications": len(apps),
        "hired": hired,
        "views": job.views_count or 0,
        "conversion_rate": percentage(hired, len(apps)),
        "average_response_time": average_response_days(apps),
        "status": "active" if job.is_active else "paused",
        "posted_at": job.created_at,
    }


# ============================================================
# COMPANY DASHBOARD
# ============================================================

def company_analytics(company_id: int, time_range: str = None, job_id: int = None, now: datetime = None) -> dict:
    now = now or utcnow()
    range_key, start = resolve_time_range(time_range, now)

    with get_db_session() as db:
        app_query = (
            select(JobApplication)
            .join(JobOffer)
            .where(JobOffer.company_id == company_id)
        )
        if job_id:
            app_query = app_query.where(JobOffer.id == job_id)
        all_apps = db.scalars(app_query).all()
        in_range = [a for a in all_apps if a.applied_at >= start]

        applicant_ids = {a.applicant_id for a in in_range}
        profiles_by_user = {}
        if applicant_ids:
            profiles_by_user = {
                p.user_id: p
                for p in db.scalars(select(Profile).where(Profile.user_id.in_(applicant_ids))).all()
            }
        candidate_profiles = [profiles_by_user.get(a.applicant_id) for a in in_range]

        job_query = (
            select(JobOffer)
            .options(selectinload(JobOffer.applications))
            .where(JobOffer.company_id == company_id, JobOffer.created_at >= start)
        )
        if job_id:
            job_query = job_query.where(JobOffer.id == job_id)
        jobs = db.scalars(job_query.order_by(JobOffer.created_at.desc())).all()
        performance = [job_performance(job) for job in jobs]

    logger.debug("Company %s analytics over %s: %d applications", company_id, range_key, len(in_range))
    by_status = Counter(a.status for a in in_range)
    week_ago = now - timedelta(days=7)
    hired_all_time = sum(1 for a in all_apps if a.status == "HIRED")

    return {
        "period": {"range": range_key, "start_date": start, "end_date": now},
        "application_metrics": {
            "total": len(in_range),
            "new": sum(1 for a in in_range if a.applied_at >= week_ago),
            "by_status": dict(by_status),
            "average_response_time": average_response_days(in_range),
            "conversion_rate": percentage(hired_all_time, len(all_apps)),
        },
        "job_performance": performance,
        "candidate_insights": candidate_insights(candidate_profiles),
        "time_series": time_series(in_range),
        "top_performing_jobs": performance[:TOP_JOBS_LIMIT],
        "demographics": demographics(candidate_profiles),
        "hiring_funnel": hiring_funnel(in_range),
    }


# ============================================================
# PLATFORM / MARKET / YOUTH DASHBOARDS
# ============================================================

def _count_map(rows: List[dict], key: str) -> dict:
    return {row[key]: row["count"] for row in rows}


def platform_analytics() -> dict:
    users_by_role = _count_map(
        execute_raw_sql("SELECT role, COUNT(*) AS count FROM users GROUP BY role"), "role"
    )
    applications_by_status = _count_map(
        execute_raw_sql("SELECT status, COUNT(*) AS count FROM job_applications GROUP BY status"), "status"
    )
    jobs = execute_raw_sql(
        "SELECT COUNT(*) AS total, SUM(CASE WHEN is_active THEN 1 ELSE 0 END) AS active FROM job_offers"
    )[0]
    courses = execute_raw_sql("SELECT COUNT(*) AS count FROM courses")[0]["count"]
    enrollments = execute_raw_sql(
        "SELECT COUNT(*) AS total, "
        "SUM(CASE WHEN completed_at IS NOT NULL THEN 1 ELSE 0 END) AS completed "
        "FROM course_enrollments"
    )[0]
    pending_companies = execute_raw_sql(
        "SELECT COUNT(*) AS count FROM companies WHERE approval_status = 'PENDING'"
    )[0]["count"]
    pending_institutions = execute_raw_sql(
        "SELECT COUNT(*) AS count FROM institutions WHERE approval_status = 'PENDING'"
    )[0]["count"]

    total_enrollments = enrollments["total"] or 0
    completed = enrollments["completed"] or 0
    return {
        "users": {"total": sum(users_by_role.values()), "by_role": users_by_role},
        "jobs": {"total": jobs["total"] or 0, "active": jobs["active"] or 0},
        "applications": {
            "total": sum(applications_by_status.values()),
            "by_status": applications_by_status,
        },
        "courses": {
            "total": courses,
            "enrollments": total_enrollments,
            "completed": completed,
            "completion_rate": percentage(completed, total_enrollments),
        },
        "pending_approvals": {"companies": pending_companies, "institutions": pending_institutions},
    }


def market_status(ratio: float) -> str:
    if ratio < 0.5:
        return "high_demand"
    if ratio <= 1.5:
        return "balanced"
    return "oversupplied"


def skills_demand(limit: int = 20) -> dict:
    """Top skills asked for by active jobs against how many youth list them."""
    with get_db_session() as db:
        job_skills = db.scalars(select(JobOffer.skills_required).where(JobOffer.is_active.is_(True))).all()
        youth_skills = db.scalars(
            select(Profile.skills).join(User, User.id == Profile.user_id).where(User.role == "YOUTH")
        ).all()

    demand = Counter()
    for skills in job_skills:
        demand.update({s.strip().lower(): 1 for s in skills or [] if s.strip()})
    supply = Counter()
    for skills in youth_skills:
        supply.update({s.strip().lower(): 1 for s in skills or [] if s.strip()})

    items = []
    for skill, demand_count in demand.most_common(limit):
        supply_count = supply.get(skill, 0)
        ratio = round(supply_count / demand_count, 2)
        items.append({
            "skill": skill,
            "demand": demand_count,
            "supply": supply_count,
            "ratio": ratio,
            "market_status": market_status(ratio),
        })
    return {"skills": items, "total_active_jobs": len(job_skills), "total_youth": len(youth_skills)}


def youth_analytics(user_id: int) -> dict:
    with get_db_session() as db:
        apps = db.scalars(select(JobApplication).where(JobApplication.applicant_id == user_id)).all()
        profile = db.scalars(select(Profile).where(Profile.user_id == user_id)).first()
        completion = profile.profile_completion if profile else 0

    enrollments = execute_raw_sql(
        "SELECT COUNT(*) AS total, "
        "SUM(CASE WHEN completed_at IS NOT NULL THEN 1 ELSE 0 END) AS completed "
        "FROM course_enrollments WHERE student_id = :uid",
        {"uid": user_id},
    )[0]

    responded = sum(1 for a in apps if a.status != "SENT")
    return {
        "applications": {
            "total": len(apps),
            "by_status": dict(Counter(a.status for a in apps)),
            "response_rate": percentage(responded, len(apps)),
        },
        "courses": {
            "enrolled": enrollments["total"] or 0,
            "completed": enrollments["completed"] or 0,
        },
        "profile_completion": completion,
    }
