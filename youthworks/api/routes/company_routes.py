"""
Company Routes

GET /companies/me - Get own company (any approval state)
PUT /companies/me - Update own company
GET /companies/me/applications - Applications received (approved company)
PUT /companies/me/applications/{id} - Update status / notes / decision
GET /companies - Approved companies
GET /companies/{company_id} - Approved company detail
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from youthworks.core.auth import ROLE_COMPANY, get_current_company, require_roles
from youthworks.db.models import Company, JobApplication, JobOffer, User, utcnow
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    ApplicationStatus, ApplicationStatusUpdate, CompanyResponse, CompanyUpdate,
    ReceivedApplicationResponse,
)
from youthworks.services.application_service import DISPLAY_STATUS, received_application_to_dict
from youthworks.services.notification_service import notify_safely

router = APIRouter(prefix="/companies", tags=["Companies"])


def company_to_response(company: Company, active_jobs: int = None) -> CompanyResponse:
    return CompanyResponse(
        company_id=company.id, owner_id=company.owner_id, name=company.name, email=company.email,
        tax_id=company.tax_id, business_sector=company.business_sector,
        company_size=company.company_size, legal_representative=company.legal_representative,
        website=company.website, phone=company.phone, address=company.address,
        description=company.description, logo_url=company.logo_url,
        approval_status=company.approval_status, is_active=company.is_active,
        active_jobs=active_jobs, created_at=company.created_at,
    )


def _own_company(db, user_id: int) -> Company:
    company = db.scalars(select(Company).where(Company.owner_id == user_id)).first()
    if not company:
        raise HTTPException(status_code=404, detail="Company not found")
    return company


@router.get("/me", response_model=CompanyResponse)
async def get_my_company(user: dict = Depends(require_roles(ROLE_COMPANY))):
    with get_db_session() as db:
        return company_to_response(_own_company(db, user["user_id"]))


@router.put("/me", response_model=CompanyResponse)
async def update_my_company(data: CompanyUpdate, user: dict = Depends(require_roles(ROLE_COMPANY))):
    """Update company details. Approval state is not editable here."""
    updates = data.model_dump(exclude_unset=True, mode="json")
    with get_db_session() as db:
        company = _own_company(db, user["user_id"])
        for field, value in updates.items():
            setattr(company, field, value)
        db.flush()
        return company_to_response(company)


@router.get("/me/applications", response_model=List[ReceivedApplicationResponse])
async def get_received_applications(
    job_id: Optional[int] = Query(None),
    status: Optional[ApplicationStatus] = Query(None),
    company: dict = Depends(get_current_company),
):
    """All applications to this company's jobs, newest first."""
    query = (
        select(JobApplication)
        .join(JobOffer)
        .options(
            selectinload(JobApplication.job),
            selectinload(JobApplication.applicant).selectinload(User.profile),
        )
        .where(JobOffer.company_id == company["company_id"])
        .order_by(JobApplication.applied_at.desc())
    )
    if job_id:
        query = query.where(JobOffer.id == job_id)
    if status:
        query = query.where(JobApplication.status == status.value)

    with get_db_session() as db:
        return [ReceivedApplicationResponse(**received_application_to_dict(a)) for a in db.scalars(query).all()]


@router.put("/me/applications/{application_id}", response_model=ReceivedApplicationResponse)
async def update_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    company: dict = Depends(get_current_company),
):
    """
    Move an application through the pipeline.
    Any status other than SENT stamps reviewed_at the first time.
    """
    with get_db_session() as db:
        app = db.get(JobApplication, application_id)
        if not app or app.job.company_id != company["company_id"]:
            raise HTTPException(status_code=404, detail="Application not found")

        app.status = data.status.value
        if data.notes is not None:
            app.notes = data.notes
        if data.decision_reason is not None:
            app.decision_reason = data.decision_reason
        if app.status != "SENT" and app.reviewed_at is None:
            app.reviewed_at = utcnow()
        db.flush()

        response = ReceivedApplicationResponse(**received_application_to_dict(app))
        applicant_id, job_title = app.applicant_id, app.job.title

    notify_safely(
        applicant_id,
        "job_application",
        f"Application update: {job_title}",
        f"{company['company_name']} updated your application to {DISPLAY_STATUS[data.status.value]}.",
        data={"application_id": application_id, "status": data.status.value},
        email=True,
    )
    return response


@router.get("", response_model=List[CompanyResponse])
async def list_companies(
    search: Optional[str] = Query(None, description="Search in company name"),
    sector: Optional[str] = Query(None, description="Business sector"),
):
    """Public list of approved, active companies."""
    query = (
        select(Company)
        .where(Company.approval_status == "APPROVED", Company.is_active.is_(True))
        .order_by(Company.name)
    )
    if search:
        query = query.where(func.lower(Company.name).like(f"%{search.lower()}%"))
    if sector:
        query = query.where(func.lower(Company.business_sector) == sector.lower())

    with get_db_session() as db:
        return [company_to_response(c) for c in db.scalars(query).all()]


@router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: int):
    with get_db_session() as db:
        company = db.get(Company, company_id)
        if not company or company.approval_status != "APPROVED" or not company.is_active:
            raise HTTPException(status_code=404, detail="Company not found")
        active_jobs = db.scalar(
            select(func.count(JobOffer.id)).where(JobOffer.company_id == company_id, JobOffer.is_active.is_(True))
        )
        return company_to_response(company, active_jobs=active_jobs)
