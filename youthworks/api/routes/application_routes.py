"""
Application Routes (youth side)

POST /applications - Apply to a job
GET /applications - My applications with status, priority and timeline
GET /applications/{id} - One of my applications
PUT /applications/{id} - Update my notes
DELETE /applications/{id} - Withdraw (only while SENT or UNDER_REVIEW)

The company side lives in company_routes (/companies/me/applications).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from youthworks.core.auth import get_current_youth
from youthworks.db.models import JobApplication, JobOffer, User, utcnow
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    ApplicationCreate, ApplicationNotesUpdate, ApplicationResponse, MessageResponse,
)
from youthworks.services.application_service import WITHDRAWABLE_STATUSES, application_to_dict
from youthworks.services.job_service import is_deadline_passed
from youthworks.services.notification_service import notify_safely

router = APIRouter(prefix="/applications", tags=["Applications"])


def _own_application(db, application_id: int, user_id: int) -> JobApplication:
    app = db.get(JobApplication, application_id)
    if not app or app.applicant_id != user_id:
        raise HTTPException(status_code=404, detail="Application not found")
    return app


@router.post("", response_model=ApplicationResponse, status_code=201)
async def apply_to_job(data: ApplicationCreate, user: dict = Depends(get_current_youth)):
    """Apply to an active job. One application per job."""
    now = utcnow()
    try:
        with get_db_session() as db:
            job = db.get(JobOffer, data.job_id)
            if not job:
                raise HTTPException(status_code=404, detail="Job not found")
            if not job.is_active:
                raise HTTPException(status_code=400, detail="Job is not accepting applications")
            if is_deadline_passed(job, now):
                raise HTTPException(status_code=400, detail="Application deadline has passed")

            existing = db.scalars(
                select(JobApplication).where(
                    JobApplication.job_offer_id == job.id,
                    JobApplication.applicant_id == user["user_id"],
                )
            ).first()
            if existing:
                raise HTTPException(status_code=409, detail="Already applied to this job")

            app = JobApplication(
                job_offer_id=job.id,
                applicant_id=user["user_id"],
                cover_letter=data.cover_letter,
                status="SENT",
                applied_at=now,
            )
            db.add(app)
            db.flush()

            response = ApplicationResponse(**application_to_dict(app, now))
            owner_id, job_title = job.company.owner_id, job.title
            applicant = db.get(User, user["user_id"])
            applicant_name = (applicant.profile.full_name if applicant.profile else "") or applicant.email
    except IntegrityError:
        # Concurrent duplicate hitting the unique constraint
        raise HTTPException(status_code=409, detail="Already applied to this job")

    notify_safely(
        owner_id,
        "job_application",
        f"New application: {job_title}",
        f"{applicant_name} applied to {job_title}.",
        data={"application_id": response.id, "job_id": data.job_id},
        email=True,
    )
    return response


@router.get("", response_model=List[ApplicationResponse])
async def list_my_applications(
    status: Optional[str] = Query(None, description="Stored status or 'all'"),
    search: Optional[str] = Query(None, description="Job title or company name"),
    user: dict = Depends(get_current_youth),
):
    query = (
        select(JobApplication)
        .options(selectinload(JobApplication.job).selectinload(JobOffer.company))
        .where(JobApplication.applicant_id == user["user_id"])
        .order_by(JobApplication.applied_at.desc())
    )
    if status and status.lower() != "all":
        query = query.where(JobApplication.status == status.upper())

    now = utcnow()
    with get_db_session() as db:
        apps = db.scalars(query).all()
        if search:
            needle = search.lower()
            apps = [
                a for a in apps
                if needle in a.job.title.lower() or needle in a.job.company.name.lower()
            ]
        return [ApplicationResponse(**application_to_dict(a, now)) for a in apps]


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_my_application(application_id: int, user: dict = Depends(get_current_youth)):
    with get_db_session() as db:
        return ApplicationResponse(**application_to_dict(_own_application(db, application_id, user["user_id"])))


@router.put("/{application_id}", response_model=ApplicationResponse)
async def update_my_application(
    application_id: int, data: ApplicationNotesUpdate, user: dict = Depends(get_current_youth)
):
    """Applicants can only edit their own notes."""
    with get_db_session() as db:
        app = _own_application(db, application_id, user["user_id"])
        app.notes = data.notes
        db.flush()
        return ApplicationResponse(**application_to_dict(app))


@router.delete("/{application_id}", response_model=MessageResponse)
async def withdraw_application(application_id: int, user: dict = Depends(get_current_youth)):
    with get_db_session() as db:
        app = _own_application(db, application_id, user["user_id"])
        if app.status not in WITHDRAWABLE_STATUSES:
            raise HTTPException(
                status_code=400,
                detail="Only applications that are sent or under review can be withdrawn",
            )
        db.delete(app)

    return MessageResponse(message="Application withdrawn")
