"""
Profile helpers - completion percentage and response shaping.
"""

from youthworks.db.models import Profile, User

# Fields counted towards profile completion
COMPLETION_FIELDS = (
    "first_name", "last_name", "phone", "address", "birth_date",
    "education_level", "experience_level", "skills", "interests", "bio",
)


def compute_profile_completion(profile: Profile) -> int:
    """Percentage of COMPLETION_FIELDS that are filled, rounded."""
    filled = 0
    for field in COMPLETION_FIELDS:
        value = getattr(profile, field, None)
        if isinstance(value, str):
            value = value.strip()
        if value:
            filled += 1
    return round(filled * 100 / len(COMPLETION_FIELDS))


def profile_to_dict(user: User, profile: Profile = None) -> dict:
    """Flatten a user and its profile into the ProfileResponse shape."""
    data = {"user_id": user.id, "email": user.email, "role": user.role}
    if profile is None:
        return data

    data.update({
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "phone": profile.phone,
        "address": profile.address,
        "birth_date": profile.birth_date,
        "gender": profile.gender,
        "education_level": profile.education_level,
        "experience_level": profile.experience_level,
        "skills": profile.skills or [],
        "interests": profile.interests or [],
        "job_title": profile.job_title,
        "industry": profile.industry,
        "salary_expectation": profile.salary_expectation,
        "work_modality": profile.work_modality,
        "contract_type": profile.contract_type,
        "bio": profile.bio,
        "cv_uploaded": bool(profile.cv_document_id),
        "profile_completion": profile.profile_completion or 0,
    })
    return data
