"""
Course Recommendation Service

Four independent strategies, each producing (course, score, reason, confidence):

1. skill-based     - course tags / title vs the user's profile skills
2. collaborative   - courses taken by users who share a course with this user
3. content-based   - level, category, tags and text of courses already completed
4. trending        - enrollment activity in the last 30 days

"personalized" blends the four with fixed weights. "popular" and "similar"
are standalone rankings.

All scoring works on plain CourseData objects so it can be tested without a
database; recommend_courses() does the loading.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlalchemy import select

from youthworks.db.models import Course, CourseEnrollment, Profile, utcnow
from youthworks.db.postgres import get_db_session

logger = logging.getLogger(__name__)

STRATEGY_WEIGHTS = {
    "skill": 1.2,
    "collaborative": 1.0,
    "content": 0.8,
    "trending": 0.6,
}

TRENDING_WINDOW_DAYS = 30
RECOMMENDATION_TYPES = ("personalized", "popular", "trending", "similar")


@dataclass
class CourseData:
    id: int
    title: str
    description: str = ""
    category: Optional[str] = None
    level: str = "BEGINNER"
    tags: List[str] = field(default_factory=list)


@dataclass
class EnrollmentData:
    course_id: int
    student_id: int
    enrolled_at: datetime
    completed_at: Optional[datetime] = None


@dataclass
class Recommendation:
    course: CourseData
    score: float
    reason: str
    confidence: float

    def to_dict(self) -> dict:
        return {
            "course_id": self.course.id,
            "title": self.course.title,
            "category": self.course.category,
            "level": self.course.level,
            "score": round(self.score, 2),
            "reason": self.reason,
            "confidence": round(self.confidence, 2),
        }


def text_similarity(text1: str, text2: str) -> float:
    """
    Share of the words (longer than 3 chars) of text1 that also appear in text2,
    over the longer of the two word counts.
    """
    words1 = (text1 or "").lower().split()
    words2 = (text2 or "").lower().split()
    if not words1 or not words2:
        return 0.0
    words2_set = set(words2)
    common = [w for w in words1 if len(w) > 3 and w in words2_set]
    return len(common) / max(len(words1), len(words2))


def _lower_set(values) -> set:
    return {v.lower() for v in values or []}


def _sorted(recs: List[Recommendation], limit: int) -> List[Recommendation]:
    return sorted(recs, key=lambda r: r.score, reverse=True)[:limit]


# ============================================================
# STRATEGIES
# ============================================================

def skill_based(user_skills: List[str], candidates: List[CourseData]) -> List[Recommendation]:
    if not user_skills:
        return []
    skills = _lower_set(user_skills)
    skills_text = " ".join(user_skills)
    recs = []
    for course in candidates:
        tag_matches = len(_lower_set(course.tags) & skills)
        title = course.title.lower()
        title_mention = any(skill in title for skill in skills)
        if not tag_matches and not title_mention:
            continue
        score = tag_matches * 10 + text_similarity(course.title, skills_text) * 5
        recs.append(Recommendation(
            course=course,
            score=score,
            reason="Matches your skills",
            confidence=min(tag_matches / len(user_skills), 1.0),
        ))
    return recs


def collaborative(
    user_id: int, enrollments: List[EnrollmentData], candidates: List[CourseData]
) -> List[Recommendation]:
    user_courses = {e.course_id for e in enrollments if e.student_id == user_id}
    if not user_courses:
        return []

    similar_users = {
        e.student_id for e in enrollments
        if e.course_id in user_courses and e.student_id != user_id
    }
    if not similar_users:
        return []

    counts: Dict[int, int] = {}
    for e in enrollments:
        if e.student_id in similar_users and e.course_id not in user_courses:
            counts[e.course_id] = counts.get(e.course_id, 0) + 1

    recs = []
    for course in candidates:
        count = counts.get(course.id)
        if count:
            recs.append(Recommendation(
                course=course,
                score=count * 5,
                reason="Taken by students with similar courses",
                confidence=min(count / len(similar_users), 1.0),
            ))
    return recs


def content_based(completed: List[CourseData], candidates: List[CourseData]) -> List[Recommendation]:
    if not completed:
        return []
    completed_tags = set().union(*(_lower_set(done.tags) for done in completed))
    recs = []
    for course in candidates:
        score = 0.0
        similarity = 0.0
        for done in completed:
            if course.level == done.level:
                score += 5
            if course.category and course.category == done.category:
                score += 8
            similarity += (
                text_similarity(course.title, done.title)
                + text_similarity(course.description, done.description)
            ) / 2
        # each tag counts once, however many completed courses carry it
        score += len(_lower_set(course.tags) & completed_tags) * 3
        score += 2 * similarity / len(completed)
        if score > 0:
            recs.append(Recommendation(
                course=course,
                score=score,
                reason="Similar to courses you completed",
                confidence=min(score / 20, 1.0),
            ))
    return recs


def trending(
    enrollments: List[EnrollmentData], candidates: List[CourseData], now: datetime = None
) -> List[Recommendation]:
    now = now or utcnow()
    cutoff = now - timedelta(days=TRENDING_WINDOW_DAYS)
    totals: Dict[int, int] = {}
    recent: Dict[int, int] = {}
    for e in enrollments:
        totals[e.course_id] = totals.get(e.course_id, 0) + 1
        if e.enrolled_at >= cutoff:
            recent[e.course_id] = recent.get(e.course_id, 0) + 1

    recs = []
    for course in candidates:
        recent_count = recent.get(course.id, 0)
        if not recent_count:
            continue
        ratio = recent_count / totals[course.id]
        recs.append(Recommendation(
            course=course,
            score=recent_count * ratio,
            reason="Trending this month",
            confidence=min(ratio, 1.0),
        ))
    return recs


def combine(strategy_results: Dict[str, List[Recommendation]]) -> List[Recommendation]:
    """Weighted merge: scores add up, the first reason wins, confidences are averaged."""
    merged: Dict[int, Recommendation] = {}
    for strategy, recs in strategy_results.items():
        weight = STRATEGY_WEIGHTS[strategy]
        for rec in recs:
            weighted = rec.score * weight
            existing = merged.get(rec.course.id)
            if existing is None:
                merged[rec.course.id] = Recommendation(rec.course, weighted, rec.reason, rec.confidence)
            else:
                existing.score += weighted
                existing.confidence = (existing.confidence + rec.confidence) / 2
    return list(merged.values())


def popular(enrollments: List[EnrollmentData], courses: List[CourseData]) -> List[Recommendation]:
    counts: Dict[int, int] = {}
    for e in enrollments:
        counts[e.course_id] = counts.get(e.course_id, 0) + 1
    top = max(counts.values()) if counts else 0
    return [
        Recommendation(
            course=course,
            score=counts.get(course.id, 0),
            reason="Popular among students",
            confidence=counts.get(course.id, 0) / top if top else 0.0,
        )
        for course in courses
    ]


def similar(target: CourseData, candidates: List[CourseData]) -> List[Recommendation]:
    target_tags = _lower_set(target.tags)
    recs = []
    for course in candidates:
        if course.id == target.id:
            continue
        score = 0.0
        if course.level == target.level:
            score += 10
        if course.category and course.category == target.category:
            score += 8
        score += len(_lower_set(course.tags) & target_tags) * 5
        score += (
            text_similarity(course.title, target.title)
            + text_similarity(course.description, target.description)
        ) * 10
        if score > 0:
            recs.append(Recommendation(
                course=course,
                score=score,
                reason=f"Similar to {target.title}",
                confidence=min(score / 20, 1.0),
            ))
    return recs


# ============================================================
# DB LOADER
# ============================================================

def _course_data(course: Course) -> CourseData:
    return CourseData(
        id=course.id,
        title=course.title,
        description=course.description or "",
        category=course.category,
        level=course.level,
        tags=list(course.tags or []),
    )


def recommend_courses(
    user_id: int, rec_type: str = "personalized", limit: int = 10, course_id: int = None
) -> Optional[List[dict]]:
    """
    Compute course recommendations for a user.
    Returns None when rec_type is "similar" and the target course does not exist.
    """
    with get_db_session() as db:
        courses = [_course_data(c) for c in db.scalars(select(Course).where(Course.is_active.is_(True))).all()]
        enrollments = [
            EnrollmentData(e.course_id, e.student_id, e.enrolled_at, e.completed_at)
            for e in db.scalars(select(CourseEnrollment)).all()
        ]
        profile = db.scalars(select(Profile).where(Profile.user_id == user_id)).first()
        user_skills = list(profile.skills or []) if profile else []

        target = None
        if rec_type == "similar":
            target_row = db.get(Course, course_id) if course_id else None
            if target_row is None:
                return None
            target = _course_data(target_row)

    enrolled_ids = {e.course_id for e in enrollments if e.student_id == user_id}
    candidates = [c for c in courses if c.id not in enrolled_ids]

    if rec_type == "popular":
        recs = popular(enrollments, courses)
    elif rec_type == "trending":
        recs = trending(enrollments, courses)
    elif rec_type == "similar":
        recs = similar(target, candidates)
    else:
        by_id = {c.id: c for c in courses}
        completed = [
            by_id[e.course_id] for e in enrollments
            if e.student_id == user_id and e.completed_at is not None and e.course_id in by_id
        ]
        recs = combine({
            "skill": skill_based(user_skills, candidates),
            "collaborative": collaborative(user_id, enrollments, candidates),
            "content": content_based(completed, candidates),
            "trending": trending(enrollments, candidates),
        })

    logger.debug("Course recommendations for user %s (%s): %d", user_id, rec_type, len(recs))
    return [rec.to_dict() for rec in _sorted(recs, limit)]
