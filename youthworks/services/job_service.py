"""
Job board helpers shared by the job, application and recommendation routes.
"""

from typing import Iterable, List, Optional

from sqlalchemy import Select, func, select

from youthworks.db.models import Company, JobApplication, JobOffer

SORT_OPTIONS = ("newest", "oldest", "salary_high", "salary_low", "title", "company")


def job_to_dict(job: JobOffer, applications_count: int = 0, is_applied: bool = False) -> dict:
    """
    Shape a job row (with its company loaded) into the JobResponse layout.
    Must be called while the session that loaded the job is open.
    """
    company = job.company
    salary = None
    if job.salary_min is not None and job.salary_max is not None:
        salary = {"min": job.salary_min, "max": job.salary_max, "currency": job.salary_currency}

    return {
        "id": job.id,
        "title": job.title,
        "company_id": job.company_id,
        "company": {
            "id": company.id,
            "name": company.name,
            "logo": company.logo_url,
            "location": company.address,
            "website": company.website,
        },
        "description": job.description,
        "location": job.location,
        "contract_type": job.contract_type,
        "work_modality": job.work_modality,
        "remote": job.work_modality == "REMOTE",
        "experience_level": job.experience_level,
        "education_level": job.education_level,
        "salary": salary,
        "skills": job.skills_required or [],
        "requirements": job.requirements or [],
        "benefits": job.benefits or [],
        "application_deadline": job.application_deadline,
        "is_active": job.is_active,
        "urgent": job.urgent,
        "featured": job.featured,
        "views_count": job.views_count or 0,
        "applications_count": applications_count,
        "is_applied": is_applied,
        "created_at": job.created_at,
    }


def build_job_query(
    contract_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    salary_min: Optional[float] = None,
    salary_max: Optional[float] = None,
    currency: Optional[str] = None,
    remote: Optional[str] = None,
    sort_by: str = "newest",
) -> Select:
    """Query for active jobs with the column filters and ordering applied."""
    query = select(JobOffer).join(Company).where(JobOffer.is_active.is_(True))

    if contract_type:
        query = query.where(JobOffer.contract_type == contract_type)
    if experience_level:
        query = query.where(JobOffer.experience_level == experience_level)
    if currency:
        query = query.where(JobOffer.salary_currency == currency)

    # Salary ranges overlap
    if salary_min is not None and salary_max is not None:
        query = query.where(JobOffer.salary_min <= salary_max, JobOffer.salary_max >= salary_min)
    elif salary_min is not None:
        query = query.where(JobOffer.salary_max >= salary_min)
    elif salary_max is not None:
        query = query.where(JobOffer.salary_min <= salary_max)

    if remote == "yes":
        query = query.where(JobOffer.work_modality == "REMOTE")
    elif remote == "no":
        query = query.where(JobOffer.work_modality != "REMOTE")
    elif remote == "hybrid":
        query = query.where(JobOffer.work_modality == "HYBRID")

    if sort_by == "oldest":
        query = query.order_by(JobOffer.created_at.asc())
    elif sort_by == "salary_high":
        query = query.order_by(JobOffer.salary_max.desc().nulls_last())
    elif sort_by == "salary_low":
        query = query.order_by(JobOffer.salary_min.asc().nulls_last())
    elif sort_by == "title":
        query = query.order_by(JobOffer.title.asc())
    elif sort_by == "company":
        query = query.order_by(Company.name.asc(), JobOffer.title.asc())
    else:
        query = query.order_by(JobOffer.created_at.desc())

    return query


def matches_search(job: JobOffer, search: str) -> bool:
    """Case-insensitive match on title, description or company name, or an exact skill."""
    needle = search.lower()
    haystacks = (job.title, job.description, job.company.name)
    if any(h and needle in h.lower() for h in haystacks):
        return True
    return any(skill.lower() == needle for skill in job.skills_required or [])


def matches_any_skill(job: JobOffer, skills: Iterable[str]) -> bool:
    job_skills = {s.lower() for s in job.skills_required or []}
    return any(s.lower() in job_skills for s in skills)


def parse_skill_list(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [s.strip() for s in value.split(",") if s.strip()]


def applications_count_query(job_ids: List[int]):
    return (
        select(JobApplication.job_offer_id, func.count(JobApplication.id))
        .where(JobApplication.job_offer_id.in_(job_ids))
        .group_by(JobApplication.job_offer_id)
    )


def applied_job_ids(db, user_id: int) -> set:
    return set(db.scalars(
        select(JobApplication.job_offer_id).where(JobApplication.applicant_id == user_id)
    ).all())


def is_deadline_passed(job: JobOffer, now) -> bool:
    return job.application_deadline is not None and job.application_deadline < now
