"""
Job Routes

POST /jobs - Create job offer (approved company)
GET /jobs - List active jobs with filters
GET /jobs/recommendations - Ranked jobs for the current youth
GET /jobs/mine - The company's own jobs with application counts
GET /jobs/{job_id} - Job details (counts a view)
PUT /jobs/{job_id} - Update job (owning company)
DELETE /jobs/{job_id} - Delete job and its applications (owning company)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from youthworks.core.auth import get_current_company, get_current_user, get_current_youth
from youthworks.core.security_log import SecurityEventType, security_logger
from youthworks.db.models import JobOffer
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    ContractType, ExperienceLevel, JobCreate, JobListResponse, JobRecommendationListResponse,
    JobResponse, JobUpdate, MessageResponse,
)
from youthworks.services.job_recommendation_service import recommend_jobs_for_user
from youthworks.services.job_service import (
    SORT_OPTIONS, applications_count_query, applied_job_ids, build_job_query, job_to_dict,
    matches_any_skill, matches_search, parse_skill_list,
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

LIST_LIMIT = 50


def _owned_job(db, job_id: int, company_id: int) -> JobOffer:
    job = db.get(JobOffer, job_id)
    if not job or job.company_id != company_id:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, company: dict = Depends(get_current_company)):
    """Create a new job offer. Only approved companies can post."""
    values = job.model_dump(mode="json")
    values["application_deadline"] = job.application_deadline

    with get_db_session() as db:
        row = JobOffer(company_id=company["company_id"], **values)
        db.add(row)
        db.flush()
        db.refresh(row)
        return JobResponse(**job_to_dict(row))


@router.get("", response_model=JobListResponse)
async def list_jobs(
    search: Optional[str] = Query(None, description="Title, description, company name or exact skill"),
    contract_type: Optional[ContractType] = Query(None),
    experience_level: Optional[ExperienceLevel] = Query(None),
    salary_min: Optional[float] = Query(None, ge=0),
    salary_max: Optional[float] = Query(None, ge=0),
    skills: Optional[str] = Query(None, description="Comma separated, any of"),
    currency: Optional[str] = Query(None),
    remote: Optional[str] = Query(None, description="yes | no | hybrid"),
    sort_by: str = Query("newest", description="|".join(SORT_OPTIONS)),
    user: dict = Depends(get_current_user),
):
    """List active jobs. At most 50 are returned."""
    query = build_job_query(
        contract_type=contract_type.value if contract_type else None,
        experience_level=experience_level.value if experience_level else None,
        salary_min=salary_min,
        salary_max=salary_max,
        currency=currency,
        remote=remote,
        sort_by=sort_by,
    ).options(selectinload(JobOffer.company))
    skill_filter = parse_skill_list(skills)

    with get_db_session() as db:
        jobs = db.scalars(query).all()
        if search:
            jobs = [j for j in jobs if matches_search(j, search)]
        if skill_filter:
            jobs = [j for j in jobs if matches_any_skill(j, skill_filter)]
        jobs = jobs[:LIST_LIMIT]

        counts = dict(db.execute(applications_count_query([j.id for j in jobs])).all()) if jobs else {}
        applied = applied_job_ids(db, user["user_id"])
        results = [
            JobResponse(**job_to_dict(j, counts.get(j.id, 0), j.id in applied))
            for j in jobs
        ]

    return JobListResponse(jobs=results, total=len(results))


@router.get("/recommendations", response_model=JobRecommendationListResponse)
async def get_job_recommendations(
    limit: int = Query(10, ge=1, le=50),
    include_applied: bool = Query(False),
    user: dict = Depends(get_current_youth),
):
    """
    Rule-based job recommendations for the current youth.

    Scores are computed on request from the profile (skills, experience,
    education, location, industry, modality, contract, salary) and job recency.
    """
    result = recommend_jobs_for_user(user["user_id"], limit=limit, include_applied=include_applied)
    if result is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return result


@router.get("/mine", response_model=List[JobResponse])
async def get_my_jobs(company: dict = Depends(get_current_company)):
    """All jobs of the current company, active or not, newest first."""
    with get_db_session() as db:
        jobs = db.scalars(
            select(JobOffer)
            .options(selectinload(JobOffer.company))
            .where(JobOffer.company_id == company["company_id"])
            .order_by(JobOffer.created_at.desc())
        ).all()
        counts = dict(db.execute(applications_count_query([j.id for j in jobs])).all()) if jobs else {}
        return [JobResponse(**job_to_dict(j, counts.get(j.id, 0))) for j in jobs]


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, user: dict = Depends(get_current_user)):
    """Job details. Each call counts one view."""
    with get_db_session() as db:
        job = db.get(JobOffer, job_id)
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        job.views_count = (job.views_count or 0) + 1
        db.flush()

        counts = dict(db.execute(applications_count_query([job.id])).all())
        applied = job.id in applied_job_ids(db, user["user_id"])
        return JobResponse(**job_to_dict(job, counts.get(job.id, 0), applied))


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: int, data: JobUpdate, company: dict = Depends(get_current_company)):
    updates = data.model_dump(exclude_unset=True, mode="json")
    if "application_deadline" in updates:
        updates["application_deadline"] = data.application_deadline

    with get_db_session() as db:
        job = _owned_job(db, job_id, company["company_id"])
        for field, value in updates.items():
            setattr(job, field, value)

        if job.salary_min is not None and job.salary_max is not None and job.salary_min > job.salary_max:
            raise HTTPException(status_code=400, detail="salary_min cannot exceed salary_max")
        db.flush()

        counts = dict(db.execute(applications_count_query([job.id])).all())
        return JobResponse(**job_to_dict(job, counts.get(job.id, 0)))


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, company: dict = Depends(get_current_company)):
    """Delete a job offer. Its applications are deleted with it."""
    with get_db_session() as db:
        job = _owned_job(db, job_id, company["company_id"])
        applications = len(job.applications)
        db.delete(job)

    security_logger.log(
        SecurityEventType.data_modification,
        "Job offer deleted",
        severity="medium",
        user_id=company["user_id"],
        details={"job_id": job_id, "applications_deleted": applications},
    )
    return MessageResponse(message="Job deleted successfully")
