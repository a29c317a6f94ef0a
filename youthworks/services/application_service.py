"""
Application helpers - how a job application is presented to the applicant.

The stored status is the company-side pipeline state; the applicant sees a
display status, a priority (how long the application has waited without a
review) and a short "next steps" text.
"""

from datetime import datetime
from typing import List

from youthworks.db.models import JobApplication, utcnow

DISPLAY_STATUS = {
    "SENT": "applied",
    "UNDER_REVIEW": "reviewing",
    "PRE_SELECTED": "shortlisted",
    "REJECTED": "rejected",
    "HIRED": "offered",
}

NEXT_STEPS = {
    "SENT": "Your application was sent. The company will review it soon.",
    "UNDER_REVIEW": "The company is reviewing your application.",
    "PRE_SELECTED": "You were shortlisted. Expect the company to contact you for an interview.",
    "REJECTED": "This application was not selected. Keep applying to other offers.",
    "HIRED": "Congratulations! The company has made you an offer.",
}

WITHDRAWABLE_STATUSES = ("SENT", "UNDER_REVIEW")


def priority_for(app: JobApplication, now: datetime) -> str:
    """high after 14 days without review, medium after 7 days either way, low otherwise."""
    waiting = (now - app.applied_at).days
    if waiting > 14 and app.reviewed_at is None:
        return "high"
    if waiting > 7:
        return "medium"
    return "low"


def build_timeline(app: JobApplication) -> List[dict]:
    timeline = [{
        "id": "applied",
        "type": "applied",
        "title": "Application sent",
        "description": f"Applied to {app.job.title}",
        "date": app.applied_at,
    }]
    if app.reviewed_at:
        timeline.append({
            "id": "reviewed",
            "type": "reviewed",
            "title": "Application reviewed",
            "description": "The company reviewed your application",
            "date": app.reviewed_at,
        })
    status_date = app.reviewed_at or app.updated_at or app.applied_at
    if app.status == "PRE_SELECTED":
        timeline.append({
            "id": "shortlisted",
            "type": "shortlisted",
            "title": "Shortlisted",
            "description": "You were shortlisted for this position",
            "date": status_date,
        })
    elif app.status == "HIRED":
        timeline.append({
            "id": "offered",
            "type": "offered",
            "title": "Offer received",
            "description": "The company made you an offer",
            "date": status_date,
        })
    elif app.status == "REJECTED":
        timeline.append({
            "id": "rejected",
            "type": "rejected",
            "title": "Not selected",
            "description": app.decision_reason or "The company chose other candidates",
            "date": status_date,
        })
    return timeline


def application_to_dict(app: JobApplication, now: datetime = None) -> dict:
    """Applicant-side view. The job and its company must be loaded."""
    now = now or utcnow()
    response_days = None
    if app.reviewed_at:
        response_days = (app.reviewed_at - app.applied_at).days

    return {
        "id": app.id,
        "job_id": app.job_offer_id,
        "job_title": app.job.title,
        "company": app.job.company.name,
        "location": app.job.location,
        "status": app.status,
        "display_status": DISPLAY_STATUS.get(app.status, app.status.lower()),
        "priority": priority_for(app, now),
        "next_steps": NEXT_STEPS.get(app.status, ""),
        "cover_letter": app.cover_letter,
        "notes": app.notes,
        "rejection_reason": app.decision_reason if app.status == "REJECTED" else None,
        "applied_at": app.applied_at,
        "reviewed_at": app.reviewed_at,
        "days_since_applied": (now - app.applied_at).days,
        "response_time_days": response_days,
        "timeline": build_timeline(app),
    }


def received_application_to_dict(app: JobApplication) -> dict:
    """Company-side view. The job and the applicant (with profile) must be loaded."""
    profile = app.applicant.profile
    return {
        "id": app.id,
        "job_id": app.job_offer_id,
        "job_title": app.job.title,
        "applicant_id": app.applicant_id,
        "applicant_name": profile.full_name if profile else app.applicant.email,
        "applicant_email": app.applicant.email,
        "applicant_skills": (profile.skills or []) if profile else [],
        "status": app.status,
        "cover_letter": app.cover_letter,
        "notes": app.notes,
        "decision_reason": app.decision_reason,
        "applied_at": app.applied_at,
        "reviewed_at": app.reviewed_at,
    }
