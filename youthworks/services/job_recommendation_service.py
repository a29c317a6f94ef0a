"""
Job Recommendation Service - rule-based job matching for youth profiles.

PURPOSE:
Rank active job offers for one youth profile with a weighted sum of
independent factors. No model, no embeddings: every point of the score can
be explained, and the explanations are returned as "reasons".

FACTORS (max points):
    skills          40   share of the job's skills the user covers
    experience      20   ordinal level distance
    education       15   ordinal level distance
    location        10   city / region / remote matching
    industry         5   profile industry vs company name or sector
    work modality    5
    contract type    3
    salary           2   expectation vs offered range
    recency          2   posted in the last 7 days

The total is capped at 100; jobs scoring 20 or less are dropped.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from youthworks.db.models import JobOffer, Profile, utcnow
from youthworks.db.postgres import get_db_session
from youthworks.services.job_service import applied_job_ids, job_to_dict

logger = logging.getLogger(__name__)

EXPERIENCE_RANKS = {"NO_EXPERIENCE": 0, "ENTRY_LEVEL": 1, "MID_LEVEL": 2, "SENIOR_LEVEL": 3}
EDUCATION_RANKS = {"HIGH_SCHOOL": 0, "TECHNICAL": 1, "BACHELOR": 2, "MASTER": 3, "PHD": 4}

WEIGHTS = {
    "skills": 40,
    "experience": 20,
    "education": 15,
    "location": 10,
    "industry": 5,
    "work_modality": 5,
    "contract_type": 3,
    "salary": 2,
    "recency": 2,
}

MIN_SCORE = 20
MAX_SCORE = 100
MAX_REASONS = 3
RECENT_DAYS = 7


@dataclass
class MatchProfile:
    """The profile signals the scorer reads, with defaults for empty fields."""
    skills: List[str] = field(default_factory=list)
    experience_level: str = "NO_EXPERIENCE"
    education_level: str = "HIGH_SCHOOL"
    location: str = ""
    industry: str = ""
    work_modality: str = "HYBRID"
    contract_type: str = "FULL_TIME"
    salary_expectation: float = 0

    @classmethod
    def from_profile(cls, profile: Profile) -> "MatchProfile":
        return cls(
            skills=list(profile.skills or []),
            experience_level=profile.experience_level or "NO_EXPERIENCE",
            education_level=profile.education_level or "HIGH_SCHOOL",
            location=profile.address or "",
            industry=profile.industry or "",
            work_modality=profile.work_modality or "HYBRID",
            contract_type=profile.contract_type or "FULL_TIME",
            salary_expectation=profile.salary_expectation or 0,
        )


@dataclass
class MatchJob:
    """The job signals the scorer reads."""
    skills: List[str] = field(default_factory=list)
    experience_level: Optional[str] = None
    education_level: Optional[str] = None
    location: Optional[str] = None
    company_name: str = ""
    business_sector: Optional[str] = None
    work_modality: Optional[str] = None
    contract_type: Optional[str] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_job(cls, job: JobOffer) -> "MatchJob":
        return cls(
            skills=list(job.skills_required or []),
            experience_level=job.experience_level,
            education_level=job.education_level,
            location=job.location,
            company_name=job.company.name if job.company else "",
            business_sector=job.company.business_sector if job.company else None,
            work_modality=job.work_modality,
            contract_type=job.contract_type,
            salary_min=job.salary_min,
            salary_max=job.salary_max,
            created_at=job.created_at,
        )


@dataclass
class ScoreResult:
    score: float
    raw_score: float
    reasons: List[str]
    breakdown: Dict[str, float]

    @property
    def match_percentage(self) -> int:
        return round(self.raw_score)


# ============================================================
# FACTOR SCORES (each returns a 0..1 multiplier)
# ============================================================

def count_skill_matches(user_skills: List[str], job_skills: List[str]) -> int:
    """Number of user skills that contain, or are contained in, some job skill."""
    job_lower = [s.lower() for s in job_skills]
    matches = 0
    for skill in user_skills:
        skill = skill.lower()
        if any(js in skill or skill in js for js in job_lower):
            matches += 1
    return matches


def experience_match(user_level: Optional[str], job_level: Optional[str]) -> float:
    user_rank = EXPERIENCE_RANKS.get(user_level, 0)
    job_rank = EXPERIENCE_RANKS.get(job_level, 0)
    if user_rank == job_rank:
        return 1.0
    if user_rank > job_rank:
        return 0.8
    return max(0.3, 1 - (job_rank - user_rank) * 0.3)


def education_match(user_level: Optional[str], job_level: Optional[str]) -> float:
    user_rank = EDUCATION_RANKS.get(user_level, 0)
    job_rank = EDUCATION_RANKS.get(job_level, 0)
    if user_rank == job_rank:
        return 1.0
    if user_rank > job_rank:
        return 0.9
    return max(0.2, 1 - (job_rank - user_rank) * 0.4)


def location_match(user_location: Optional[str], job_location: Optional[str]) -> float:
    if not user_location or not job_location:
        return 0.5

    user_parts = [p.strip() for p in user_location.lower().split(",")]
    job_parts = [p.strip() for p in job_location.lower().split(",")]

    # Same city
    if user_parts[0] == job_parts[0]:
        return 1.0

    # Same department/region
    for part in user_parts:
        if len(part) > 2 and part in job_parts:
            return 0.7

    lowered = job_location.lower()
    if "remote" in lowered or "remoto" in lowered:
        return 0.8

    return 0.3


def industry_match(user_industry: Optional[str], company_name: str, business_sector: Optional[str]) -> bool:
    if not user_industry:
        return False
    industry = user_industry.lower()
    if company_name and industry in company_name.lower():
        return True
    return bool(business_sector) and industry == business_sector.lower()


def work_modality_match(user_modality: Optional[str], job_modality: Optional[str]) -> float:
    if user_modality == job_modality:
        return 1.0
    if user_modality == "HYBRID" or job_modality == "HYBRID":
        return 0.7
    return 0.3


def contract_type_match(user_contract: Optional[str], job_contract: Optional[str]) -> float:
    if user_contract == job_contract:
        return 1.0
    if user_contract == "FULL_TIME" and job_contract == "PART_TIME":
        return 0.6
    if user_contract == "PART_TIME" and job_contract == "FULL_TIME":
        return 0.8
    return 0.5


def salary_match(expectation: float, salary_min: float, salary_max: float) -> float:
    if salary_min <= expectation <= salary_max:
        return 1.0
    if expectation < salary_min:
        return max(0.3, 1 - (salary_min - expectation) / salary_min)
    return max(0.2, 1 - (expectation - salary_max) / salary_max * 0.5)


def is_recent(created_at: Optional[datetime], now: datetime) -> bool:
    if created_at is None:
        return False
    return (now - created_at).days <= RECENT_DAYS


# ============================================================
# SCORER
# ============================================================

def score_job(profile: MatchProfile, job: MatchJob, now: datetime = None) -> ScoreResult:
    """
    Score one job for one profile.

    Reasons are collected in factor order; callers show the first three.
    """
    now = now or utcnow()
    score = 0.0
    reasons = []
    breakdown = {name: 0.0 for name in WEIGHTS}

    # 1. Skills
    if profile.skills and job.skills:
        matches = count_skill_matches(profile.skills, job.skills)
        if matches > 0:
            points = matches / max(len(job.skills), 1) * WEIGHTS["skills"]
            score += points
            breakdown["skills"] = points
            reasons.append(f"{matches} matching skills")

    # 2. Experience
    exp = experience_match(profile.experience_level, job.experience_level)
    breakdown["experience"] = exp * WEIGHTS["experience"]
    score += breakdown["experience"]
    if exp > 0.7:
        reasons.append("Suitable experience level")

    # 3. Education
    edu = education_match(profile.education_level, job.education_level)
    breakdown["education"] = edu * WEIGHTS["education"]
    score += breakdown["education"]
    if edu > 0.7:
        reasons.append("Matching education level")

    # 4. Location
    loc = location_match(profile.location, job.location)
    breakdown["location"] = loc * WEIGHTS["location"]
    score += breakdown["location"]
    if loc > 0.5:
        reasons.append("Convenient location")

    # 5. Industry
    if industry_match(profile.industry, job.company_name, job.business_sector):
        breakdown["industry"] = WEIGHTS["industry"]
        score += WEIGHTS["industry"]
        reasons.append("Related industry")

    # 6. Work modality
    modality = work_modality_match(profile.work_modality, job.work_modality)
    breakdown["work_modality"] = modality * WEIGHTS["work_modality"]
    score += breakdown["work_modality"]
    if modality > 0.7:
        reasons.append("Preferred work modality")

    # 7. Contract type
    contract = contract_type_match(profile.contract_type, job.contract_type)
    breakdown["contract_type"] = contract * WEIGHTS["contract_type"]
    score += breakdown["contract_type"]
    if contract > 0.7:
        reasons.append("Suitable contract type")

    # 8. Salary
    if profile.salary_expectation and profile.salary_expectation > 0 and job.salary_min and job.salary_max:
        sal = salary_match(profile.salary_expectation, job.salary_min, job.salary_max)
        breakdown["salary"] = sal * WEIGHTS["salary"]
        score += breakdown["salary"]
        if sal > 0.7:
            reasons.append("Salary within expectations")

    # 9. Recency
    if is_recent(job.created_at, now):
        breakdown["recency"] = WEIGHTS["recency"]
        score += WEIGHTS["recency"]
        reasons.append("Recently posted")

    return ScoreResult(
        score=min(score, MAX_SCORE),
        raw_score=score,
        reasons=reasons,
        breakdown={name: round(value, 2) for name, value in breakdown.items()},
    )


def rank_jobs(profile: MatchProfile, jobs: List[tuple], limit: int = 10, now: datetime = None) -> List[tuple]:
    """
    Score (key, MatchJob) pairs and return the best (key, ScoreResult) pairs.
    Keeps scores above MIN_SCORE, highest first, at most `limit`.
    """
    now = now or utcnow()
    scored = []
    for key, job in jobs:
        result = score_job(profile, job, now)
        if result.score > MIN_SCORE:
            scored.append((key, result))
    scored.sort(key=lambda item: item[1].score, reverse=True)
    return scored[:limit]


# ============================================================
# DB LOADER
# ============================================================

def recommend_jobs_for_user(user_id: int, limit: int = 10, include_applied: bool = False) -> Optional[dict]:
    """
    Compute recommendations for a youth user.
    Returns None when the user has no profile.
    """
    with get_db_session() as db:
        profile = db.scalars(select(Profile).where(Profile.user_id == user_id)).first()
        if profile is None:
            return None

        match_profile = MatchProfile.from_profile(profile)

        query = (
            select(JobOffer)
            .options(selectinload(JobOffer.company))
            .where(JobOffer.is_active.is_(True))
        )
        applied = applied_job_ids(db, user_id)
        if applied and not include_applied:
            query = query.where(JobOffer.id.not_in(applied))

        jobs = db.scalars(query).all()
        ranked = rank_jobs(match_profile, [(job, MatchJob.from_job(job)) for job in jobs], limit)

        recommendations = [
            {
                "job": job_to_dict(job, is_applied=job.id in applied),
                "score": round(result.score, 2),
                "match_percentage": result.match_percentage,
                "reasons": result.reasons[:MAX_REASONS],
                "breakdown": result.breakdown,
            }
            for job, result in ranked
        ]

    logger.info("Computed %d job recommendations for user %s", len(recommendations), user_id)
    return {
        "recommendations": recommendations,
        "total": len(recommendations),
        "profile": {
            "skills": match_profile.skills,
            "experience_level": match_profile.experience_level,
            "education_level": match_profile.education_level,
            "location": match_profile.location,
        },
    }
