"""
Profile Routes

GET /profile/me - Get own profile
PUT /profile/me - Update own profile (partial)
POST /profile/cv - Upload CV (PDF/DOCX/TXT), youth only
GET /profile/cv - Latest uploaded CV with its parsed data
GET /profile/cv/formats - Get supported formats
GET /profiles - Youth directory (companies, institutions, superadmins)
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from sqlalchemy import func, or_, select

from youthworks.core.auth import (
    ROLE_COMPANY, ROLE_INSTITUTION, ROLE_SUPERADMIN, ROLE_YOUTH,
    get_current_user, get_current_youth, require_roles,
)
from youthworks.core.security_log import SecurityEventType, security_logger
from youthworks.db.models import Profile, User
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    CVUploadResponse, EducationLevel, ProfileListResponse, ProfileResponse, ProfileUpdate,
)
from youthworks.services.cv_service import CVDocumentService, process_cv_upload
from youthworks.services.profile_service import compute_profile_completion, profile_to_dict
from youthworks.utils.file_upload import extract_text_from_file, get_supported_formats

router = APIRouter(tags=["Profiles"])


@router.get("/profile/me", response_model=ProfileResponse)
async def get_my_profile(user: dict = Depends(get_current_user)):
    with get_db_session() as db:
        account = db.get(User, user["user_id"])
        return ProfileResponse(**profile_to_dict(account, account.profile))


@router.put("/profile/me", response_model=ProfileResponse)
async def update_my_profile(data: ProfileUpdate, user: dict = Depends(get_current_user)):
    """Update the fields that were sent; profile completion is recomputed."""
    updates = data.model_dump(exclude_unset=True, mode="json")
    if "birth_date" in updates:
        updates["birth_date"] = data.birth_date

    with get_db_session() as db:
        account = db.get(User, user["user_id"])
        profile = account.profile
        if profile is None:
            profile = Profile(user_id=account.id, skills=[], interests=[])
            db.add(profile)
            account.profile = profile

        for field, value in updates.items():
            setattr(profile, field, value)
        profile.profile_completion = compute_profile_completion(profile)
        db.flush()

        return ProfileResponse(**profile_to_dict(account, profile))


@router.post("/profile/cv", response_model=CVUploadResponse)
async def upload_cv(file: UploadFile = File(...), user: dict = Depends(get_current_youth)):
    """
    Upload a CV and merge the skills found in it into the profile.

    Flow:
    1. Extract text from the file
    2. Store raw text in MongoDB
    3. Parse with the LLM (keyword fallback when unavailable)
    4. Merge new skills into the profile
    """
    cv = await extract_text_from_file(file)

    security_logger.log(
        SecurityEventType.file_upload,
        "CV uploaded",
        user_id=user["user_id"],
        details={"filename": cv.filename, "size_bytes": cv.size_bytes},
    )

    result = process_cv_upload(user["user_id"], cv.text, cv.filename)

    return CVUploadResponse(
        success=True,
        message=f"CV processed, {len(result['skills_added'])} new skills added to your profile",
        filename=cv.filename,
        parser=result["parser"],
        extracted_skills=result["extracted_skills"],
        skills_added=result["skills_added"],
        parsed_data=result["parsed_data"],
    )


@router.get("/profile/cv")
async def get_my_cv(user: dict = Depends(get_current_youth)):
    """The CV document behind the profile: raw text plus parsed output."""
    with get_db_session() as db:
        profile = db.scalars(select(Profile).where(Profile.user_id == user["user_id"])).first()
        doc_id = profile.cv_document_id if profile else None

    documents = CVDocumentService()
    document = documents.get_by_id(doc_id) if doc_id else None
    if document is None:
        # profile link missing, e.g. the profile row was recreated after the upload
        document = documents.get_latest(user["user_id"])
    if document is None:
        raise HTTPException(status_code=404, detail="No CV uploaded")
    return document


@router.get("/profile/cv/formats")
async def cv_formats():
    """Get supported CV file formats."""
    return get_supported_formats()


@router.get("/profiles", response_model=ProfileListResponse)
async def list_youth_profiles(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, description="Search in first/last name"),
    skill: Optional[str] = Query(None, description="Exact skill, case-insensitive"),
    education_level: Optional[EducationLevel] = Query(None),
    user: dict = Depends(require_roles(ROLE_COMPANY, ROLE_INSTITUTION, ROLE_SUPERADMIN)),
):
    """Browse youth profiles."""
    query = (
        select(User, Profile)
        .join(Profile, Profile.user_id == User.id)
        .where(User.role == ROLE_YOUTH, User.is_active.is_(True))
        .order_by(Profile.profile_completion.desc(), User.id)
    )
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(or_(
            func.lower(Profile.first_name).like(pattern),
            func.lower(Profile.last_name).like(pattern),
        ))
    if education_level:
        query = query.where(Profile.education_level == education_level.value)

    with get_db_session() as db:
        rows = db.execute(query).all()
        if skill:
            wanted = skill.lower()
            rows = [r for r in rows if any(s.lower() == wanted for s in r.Profile.skills or [])]

        total = len(rows)
        start = (page - 1) * page_size
        profiles = [
            ProfileResponse(**profile_to_dict(r.User, r.Profile))
            for r in rows[start:start + page_size]
        ]

    return ProfileListResponse(profiles=profiles, total=total, page=page, page_size=page_size)
