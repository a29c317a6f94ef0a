"""
Institution Routes

GET /institutions/me - Get own institution (any approval state)
PUT /institutions/me - Update own institution
GET /institutions/me/students - Youth enrolled in this institution's courses
GET /institutions - Approved institutions
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from youthworks.core.auth import ROLE_INSTITUTION, get_current_institution, require_roles
from youthworks.db.models import Course, CourseEnrollment, Institution, User
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    InstitutionResponse, InstitutionStudentResponse, InstitutionType, InstitutionUpdate,
)

router = APIRouter(prefix="/institutions", tags=["Institutions"])


def institution_to_response(institution: Institution) -> InstitutionResponse:
    return InstitutionResponse(
        institution_id=institution.id, owner_id=institution.owner_id, name=institution.name,
        email=institution.email, institution_type=institution.institution_type,
        department=institution.department, region=institution.region,
        representative=institution.representative, phone=institution.phone,
        website=institution.website, description=institution.description,
        approval_status=institution.approval_status, is_active=institution.is_active,
        created_at=institution.created_at,
    )


def _own_institution(db, user_id: int) -> Institution:
    institution = db.scalars(select(Institution).where(Institution.owner_id == user_id)).first()
    if not institution:
        raise HTTPException(status_code=404, detail="Institution not found")
    return institution


@router.get("/me", response_model=InstitutionResponse)
async def get_my_institution(user: dict = Depends(require_roles(ROLE_INSTITUTION))):
    with get_db_session() as db:
        return institution_to_response(_own_institution(db, user["user_id"]))


@router.put("/me", response_model=InstitutionResponse)
async def update_my_institution(data: InstitutionUpdate, user: dict = Depends(require_roles(ROLE_INSTITUTION))):
    updates = data.model_dump(exclude_unset=True)
    with get_db_session() as db:
        institution = _own_institution(db, user["user_id"])
        for field, value in updates.items():
            setattr(institution, field, value)
        db.flush()
        return institution_to_response(institution)


@router.get("/me/students", response_model=List[InstitutionStudentResponse])
async def get_my_students(institution: dict = Depends(get_current_institution)):
    """Every youth enrolled in at least one course of this institution."""
    with get_db_session() as db:
        enrollments = db.scalars(
            select(CourseEnrollment)
            .join(Course)
            .where(Course.institution_id == institution["institution_id"])
        ).all()

        per_student = {}
        for enrollment in enrollments:
            counts = per_student.setdefault(enrollment.student_id, {"enrollments": 0, "completed": 0})
            counts["enrollments"] += 1
            if enrollment.completed_at:
                counts["completed"] += 1

        if not per_student:
            return []

        students = db.scalars(
            select(User).options(selectinload(User.profile)).where(User.id.in_(per_student)).order_by(User.id)
        ).all()
        return [
            InstitutionStudentResponse(
                user_id=student.id,
                full_name=(student.profile.full_name if student.profile else "") or student.email,
                email=student.email,
                **per_student[student.id],
            )
            for student in students
        ]


@router.get("", response_model=List[InstitutionResponse])
async def list_institutions(institution_type: Optional[InstitutionType] = Query(None)):
    """Public list of approved institutions."""
    query = (
        select(Institution)
        .where(Institution.approval_status == "APPROVED", Institution.is_active.is_(True))
        .order_by(Institution.name)
    )
    if institution_type:
        query = query.where(Institution.institution_type == institution_type.value)

    with get_db_session() as db:
        return [institution_to_response(i) for i in db.scalars(query).all()]
