"""
Course Routes

POST /courses - Create course (approved institution or superadmin)
GET /courses - Active courses with filters
GET /courses/recommendations - Personalized / popular / trending / similar courses
GET /courses/{course_id} - Course details
POST /courses/{course_id}/enroll - Enroll (youth)
POST /courses/{course_id}/complete - Mark an enrollment completed (youth)
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from youthworks.core.auth import (
    ROLE_INSTITUTION, ROLE_SUPERADMIN, get_current_user, get_current_youth, require_roles,
)
from youthworks.db.models import Course, CourseEnrollment, Institution, utcnow
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    CourseCreate, CourseLevel, CourseRecommendationListResponse, CourseResponse, EnrollmentResponse,
)
from youthworks.services.course_recommendation_service import RECOMMENDATION_TYPES, recommend_courses
from youthworks.services.notification_service import notify_safely

router = APIRouter(prefix="/courses", tags=["Courses"])


def course_to_response(course: Course, enrollments: int = 0) -> CourseResponse:
    return CourseResponse(
        id=course.id, title=course.title, description=course.description,
        category=course.category, level=course.level, tags=course.tags or [],
        duration_hours=course.duration_hours, institution_id=course.institution_id,
        enrollments=enrollments, is_active=course.is_active, created_at=course.created_at,
    )


def enrollment_to_response(enrollment: CourseEnrollment) -> EnrollmentResponse:
    return EnrollmentResponse(
        id=enrollment.id, course_id=enrollment.course_id, student_id=enrollment.student_id,
        progress=enrollment.progress, enrolled_at=enrollment.enrolled_at,
        completed_at=enrollment.completed_at,
    )


def _enrollment_counts(db, course_ids: List[int]) -> dict:
    if not course_ids:
        return {}
    rows = db.execute(
        select(CourseEnrollment.course_id, func.count(CourseEnrollment.id))
        .where(CourseEnrollment.course_id.in_(course_ids))
        .group_by(CourseEnrollment.course_id)
    ).all()
    return dict(rows)


def _active_course(db, course_id: int) -> Course:
    course = db.get(Course, course_id)
    if not course or not course.is_active:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post("", response_model=CourseResponse, status_code=201)
async def create_course(
    data: CourseCreate, user: dict = Depends(require_roles(ROLE_INSTITUTION, ROLE_SUPERADMIN))
):
    with get_db_session() as db:
        institution_id = None
        if user["role"] == ROLE_INSTITUTION:
            institution = db.scalars(select(Institution).where(Institution.owner_id == user["user_id"])).first()
            if not institution or institution.approval_status != "APPROVED":
                raise HTTPException(status_code=403, detail="Institution pending approval")
            institution_id = institution.id

        course = Course(
            institution_id=institution_id,
            created_by=user["user_id"],
            title=data.title,
            description=data.description,
            category=data.category,
            level=data.level.value,
            tags=data.tags,
            duration_hours=data.duration_hours,
        )
        db.add(course)
        db.flush()
        return course_to_response(course)


@router.get("", response_model=List[CourseResponse])
async def list_courses(
    search: Optional[str] = Query(None, description="Title or description"),
    category: Optional[str] = Query(None),
    level: Optional[CourseLevel] = Query(None),
):
    query = select(Course).where(Course.is_active.is_(True)).order_by(Course.created_at.desc())
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Course.title).like(pattern),
            func.lower(Course.description).like(pattern),
        ))
    if category:
        query = query.where(func.lower(Course.category) == category.lower())
    if level:
        query = query.where(Course.level == level.value)

    with get_db_session() as db:
        courses = db.scalars(query).all()
        counts = _enrollment_counts(db, [c.id for c in courses])
        return [course_to_response(c, counts.get(c.id, 0)) for c in courses]


@router.get("/recommendations", response_model=CourseRecommendationListResponse)
async def get_course_recommendations(
    type: str = Query("personalized", description="|".join(RECOMMENDATION_TYPES)),
    course_id: Optional[int] = Query(None, description="Required for type=similar"),
    limit: int = Query(10, ge=1, le=50),
    user: dict = Depends(get_current_user),
):
    rec_type = type if type in RECOMMENDATION_TYPES else "personalized"
    if rec_type == "similar" and course_id is None:
        raise HTTPException(status_code=400, detail="course_id is required for similar recommendations")

    recommendations = recommend_courses(user["user_id"], rec_type, limit, course_id)
    if recommendations is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return CourseRecommendationListResponse(recommendations=recommendations, type=rec_type, limit=limit)


@router.get("/{course_id}", response_model=CourseResponse)
async def get_course(course_id: int):
    with get_db_session() as db:
        course = _active_course(db, course_id)
        return course_to_response(course, _enrollment_counts(db, [course.id]).get(course.id, 0))


@router.post("/{course_id}/enroll", response_model=EnrollmentResponse, status_code=201)
async def enroll(course_id: int, user: dict = Depends(get_current_youth)):
    try:
        with get_db_session() as db:
            _active_course(db, course_id)
            existing = db.scalars(
                select(CourseEnrollment).where(
                    CourseEnrollment.course_id == course_id,
                    CourseEnrollment.student_id == user["user_id"],
                )
            ).first()
            if existing:
                raise HTTPException(status_code=409, detail="Already enrolled in this course")

            enrollment = CourseEnrollment(course_id=course_id, student_id=user["user_id"], progress=0)
            db.add(enrollment)
            db.flush()
            return enrollment_to_response(enrollment)
    except IntegrityError:
        # Concurrent duplicate hitting the unique constraint
        raise HTTPException(status_code=409, detail="Already enrolled in this course")


@router.post("/{course_id}/complete", response_model=EnrollmentResponse)
async def complete_course(course_id: int, user: dict = Depends(get_current_youth)):
    with get_db_session() as db:
        enrollment = db.scalars(
            select(CourseEnrollment).where(
                CourseEnrollment.course_id == course_id,
                CourseEnrollment.student_id == user["user_id"],
            )
        ).first()
        if not enrollment:
            raise HTTPException(status_code=404, detail="Enrollment not found")

        if enrollment.completed_at is None:
            enrollment.completed_at = utcnow()
        enrollment.progress = 100
        db.flush()
        response = enrollment_to_response(enrollment)
        course_title = enrollment.course.title

    notify_safely(
        user["user_id"],
        "course",
        f"Course completed: {course_title}",
        f"Congratulations, you completed {course_title}.",
        data={"course_id": course_id},
    )
    return response
