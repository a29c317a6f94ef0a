"""
Admin Routes

GET /admin/users - List users (superadmin; institutions see youth only)
POST /admin/users - Create a youth account (superadmin or institution)
PUT /admin/users/{id} - Activate/deactivate or change role (superadmin)
GET /admin/companies - Companies by approval status
PUT /admin/companies/{id}/approval - Approve or reject a company
GET /admin/institutions - Institutions by approval status
POST /admin/institutions - Create an institution account, municipalities included
PUT /admin/institutions/{id}/approval - Approve or reject an institution

Every write here goes to the security audit log.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from youthworks.core.auth import (
    ROLE_INSTITUTION, ROLE_SUPERADMIN, ROLE_YOUTH, get_current_admin, hash_password, require_roles,
)
from youthworks.core.password_policy import generate_secure_password, validate_password
from youthworks.core.security_log import SecurityEventType, security_logger
from youthworks.db.models import Company, Institution, Profile, User
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    AdminInstitutionCreate, AdminUserCreate, AdminUserResponse, AdminUserUpdate, ApprovalStatus,
    ApprovalUpdate, CompanyResponse, InstitutionResponse, UserRole,
)
from youthworks.services.notification_service import notify_safely
from youthworks.services.profile_service import compute_profile_completion
from youthworks.api.routes.company_routes import company_to_response
from youthworks.api.routes.institution_routes import institution_to_response

router = APIRouter(prefix="/admin", tags=["Admin"])


def user_to_admin_response(user: User) -> AdminUserResponse:
    profile = user.profile
    return AdminUserResponse(
        user_id=user.id,
        email=user.email,
        role=user.role,
        is_active=user.is_active,
        first_name=profile.first_name if profile else None,
        last_name=profile.last_name if profile else None,
        profile_completion=(profile.profile_completion or 0) if profile else 0,
        created_at=user.created_at,
    )


def _require_strong_password(password: str):
    check = validate_password(password)
    if not check.is_valid:
        raise HTTPException(status_code=400, detail={"message": "Password too weak", "errors": check.errors})


def _temporary_password() -> str:
    # random output can still trip the sequence or repeat rules
    while True:
        password = generate_secure_password()
        if validate_password(password).is_valid:
            return password


def _ensure_email_free(db, email: str):
    if db.scalars(select(User).where(User.email == email)).first():
        raise HTTPException(status_code=409, detail="Email already registered")


def _apply_approval(entity, decision: ApprovalStatus):
    entity.approval_status = decision.value
    if decision == ApprovalStatus.approved:
        entity.is_active = True
    elif decision == ApprovalStatus.rejected:
        entity.is_active = False


# ============================================================
# USERS
# ============================================================

@router.get("/users", response_model=List[AdminUserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None),
    user: dict = Depends(require_roles(ROLE_SUPERADMIN, ROLE_INSTITUTION)),
):
    query = select(User).options(selectinload(User.profile)).order_by(User.created_at.desc())
    if user["role"] == ROLE_INSTITUTION:
        query = query.where(User.role == ROLE_YOUTH)
    elif role:
        query = query.where(User.role == role.value)

    with get_db_session() as db:
        return [user_to_admin_response(u) for u in db.scalars(query).all()]


@router.post("/users", response_model=AdminUserResponse, status_code=201)
async def create_youth_user(
    data: AdminUserCreate,
    user: dict = Depends(require_roles(ROLE_SUPERADMIN, ROLE_INSTITUTION)),
):
    """
    Create an active youth account on behalf of a young person.
    Without a password a temporary one is generated and returned in the response.
    """
    temporary_password = None
    if data.password is None:
        temporary_password = _temporary_password()
    else:
        _require_strong_password(data.password)
    password = data.password or temporary_password
    email = data.email.lower()

    with get_db_session() as db:
        _ensure_email_free(db, email)
        account = User(email=email, password_hash=hash_password(password), role=ROLE_YOUTH, is_active=True)
        db.add(account)
        db.flush()

        profile = Profile(
            user_id=account.id,
            first_name=data.first_name,
            last_name=data.last_name,
            phone=data.phone,
            address=data.address,
            education_level=data.education_level.value if data.education_level else None,
            skills=[],
            interests=[],
        )
        profile.profile_completion = compute_profile_completion(profile)
        db.add(profile)
        db.flush()
        db.refresh(account)
        response = user_to_admin_response(account)
        response.temporary_password = temporary_password

    security_logger.log(
        SecurityEventType.admin_action,
        "Youth account created",
        severity="medium",
        user_id=user["user_id"],
        details={"created_user_id": response.user_id},
    )
    return response


@router.put("/users/{user_id}", response_model=AdminUserResponse)
async def update_user(user_id: int, data: AdminUserUpdate, admin: dict = Depends(get_current_admin)):
    if user_id == admin["user_id"] and data.is_active is False:
        raise HTTPException(status_code=400, detail="You cannot deactivate your own account")

    with get_db_session() as db:
        account = db.get(User, user_id)
        if not account:
            raise HTTPException(status_code=404, detail="User not found")
        if data.is_active is not None:
            account.is_active = data.is_active
        if data.role is not None:
            account.role = data.role.value
        db.flush()
        response = user_to_admin_response(account)

    security_logger.log(
        SecurityEventType.admin_action,
        "User updated",
        severity="high",
        user_id=admin["user_id"],
        details={"target_user_id": user_id, **data.model_dump(exclude_none=True, mode="json")},
    )
    return response


# ============================================================
# COMPANY / INSTITUTION APPROVALS
# ============================================================

@router.get("/companies", response_model=List[CompanyResponse])
async def list_companies_for_review(
    status: Optional[ApprovalStatus] = Query(None),
    admin: dict = Depends(get_current_admin),
):
    query = select(Company).order_by(Company.created_at.desc())
    if status:
        query = query.where(Company.approval_status == status.value)
    with get_db_session() as db:
        return [company_to_response(c) for c in db.scalars(query).all()]


@router.put("/companies/{company_id}/approval", response_model=CompanyResponse)
async def review_company(company_id: int, data: ApprovalUpdate, admin: dict = Depends(get_current_admin)):
    """APPROVED activates the company, REJECTED deactivates it."""
    with get_db_session() as db:
        company = db.get(Company, company_id)
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")
        _apply_approval(company, data.status)
        db.flush()
        response = company_to_response(company)
        owner_id, name = company.owner_id, company.name

    security_logger.log(
        SecurityEventType.admin_action,
        f"Company {data.status.value.lower()}",
        severity="medium",
        user_id=admin["user_id"],
        details={"company_id": company_id, "status": data.status.value, "reason": data.reason},
    )
    notify_safely(
        owner_id,
        "system",
        f"Company {data.status.value.lower()}",
        f"Your company {name} is now {data.status.value.lower()}." + (f" {data.reason}" if data.reason else ""),
        data={"company_id": company_id, "status": data.status.value},
        email=True,
    )
    return response


@router.get("/institutions", response_model=List[InstitutionResponse])
async def list_institutions_for_review(
    status: Optional[ApprovalStatus] = Query(None),
    admin: dict = Depends(get_current_admin),
):
    query = select(Institution).order_by(Institution.created_at.desc())
    if status:
        query = query.where(Institution.approval_status == status.value)
    with get_db_session() as db:
        return [institution_to_response(i) for i in db.scalars(query).all()]


@router.post("/institutions", response_model=InstitutionResponse, status_code=201)
async def create_institution(data: AdminInstitutionCreate, admin: dict = Depends(get_current_admin)):
    """Create an already approved institution account. The only way to add a municipality."""
    _require_strong_password(data.password)
    email = data.email.lower()

    with get_db_session() as db:
        _ensure_email_free(db, email)
        account = User(email=email, password_hash=hash_password(data.password), role=ROLE_INSTITUTION)
        db.add(account)
        db.flush()
        db.add(Profile(user_id=account.id, first_name=data.representative, skills=[], interests=[]))

        institution = Institution(
            owner_id=account.id,
            name=data.name,
            email=email,
            institution_type=data.institution_type.value,
            department=data.department,
            region=data.region,
            representative=data.representative,
            phone=data.phone,
            approval_status="APPROVED",
            is_active=True,
        )
        db.add(institution)
        db.flush()
        response = institution_to_response(institution)

    security_logger.log(
        SecurityEventType.admin_action,
        "Institution created",
        severity="medium",
        user_id=admin["user_id"],
        details={"institution_id": response.institution_id, "type": data.institution_type.value},
    )
    return response


@router.put("/institutions/{institution_id}/approval", response_model=InstitutionResponse)
async def review_institution(institution_id: int, data: ApprovalUpdate, admin: dict = Depends(get_current_admin)):
    with get_db_session() as db:
        institution = db.get(Institution, institution_id)
        if not institution:
            raise HTTPException(status_code=404, detail="Institution not found")
        _apply_approval(institution, data.status)
        db.flush()
        response = institution_to_response(institution)
        owner_id, name = institution.owner_id, institution.name

    security_logger.log(
        SecurityEventType.admin_action,
        f"Institution {data.status.value.lower()}",
        severity="medium",
        user_id=admin["user_id"],
        details={"institution_id": institution_id, "status": data.status.value, "reason": data.reason},
    )
    notify_safely(
        owner_id,
        "system",
        f"Institution {data.status.value.lower()}",
        f"Your institution {name} is now {data.status.value.lower()}." + (f" {data.reason}" if data.reason else ""),
        data={"institution_id": institution_id, "status": data.status.value},
        email=True,
    )
    return response
