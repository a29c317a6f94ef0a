from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from youthworks.services.course_recommendation_service import (
    CourseData, EnrollmentData, Recommendation, collaborative, combine, content_based, popular,
    similar, skill_based, text_similarity, trending,
)

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 15, 12, 0, 0)


def course(course_id: int, title: str, **kwargs) -> CourseData:
    return CourseData(id=course_id, title=title, **kwargs)


def enrolled(course_id: int, student_id: int, days_ago: int = 1, completed: bool = False) -> EnrollmentData:
    at = NOW - timedelta(days=days_ago)
    return EnrollmentData(course_id, student_id, at, at if completed else None)


def test_text_similarity_counts_long_shared_words() -> None:
    assert text_similarity("python data analysis", "intro to python data") == pytest.approx(0.5)
    # words of three letters or less never count
    assert text_similarity("sql web api", "sql web api") == 0
    assert text_similarity("", "python") == 0


def test_skill_based_matches_tags_and_titles() -> None:
    candidates = [
        course(1, "Python Basics", tags=["python"]),
        course(2, "Home Cooking", tags=["food"]),
        course(3, "Advanced SQL"),
    ]
    recs = skill_based(["Python", "SQL"], candidates)

    assert [r.course.id for r in recs] == [1, 3]
    assert recs[0].score == pytest.approx(12.5)
    assert recs[0].confidence == pytest.approx(0.5)
    assert recs[0].reason == "Matches your skills"
    assert skill_based([], candidates) == []


def test_skill_based_title_similarity_counts_repeated_title_words() -> None:
    recs = skill_based(["Python"], [course(1, "Python Python Lab")])
    assert recs[0].score == pytest.approx(2 / 3 * 5)


def test_collaborative_uses_students_sharing_a_course() -> None:
    enrollments = [
        enrolled(10, 1),
        enrolled(10, 2), enrolled(20, 2),
        enrolled(10, 3), enrolled(20, 3), enrolled(30, 3),
        enrolled(40, 4),
    ]
    candidates = [course(20, "Web"), course(30, "Data"), course(40, "Design")]
    recs = {r.course.id: r for r in collaborative(1, enrollments, candidates)}

    assert set(recs) == {20, 30}
    assert recs[20].score == 10
    assert recs[20].confidence == 1.0
    assert recs[30].score == 5
    assert recs[30].confidence == 0.5


def test_collaborative_without_history_is_empty() -> None:
    assert collaborative(99, [enrolled(10, 1)], [course(10, "Web")]) == []


def test_content_based_follows_completed_courses() -> None:
    done = course(1, "Python Basics", level="BEGINNER", category="Programming", tags=["python"])
    close = course(2, "Python Projects", level="BEGINNER", category="Programming", tags=["python"])
    unrelated = course(3, "Bread", level="ADVANCED", category="Cooking")

    recs = content_based([done], [close, unrelated])
    assert [r.course.id for r in recs] == [2]
    assert recs[0].score > 16
    assert recs[0].reason == "Similar to courses you completed"


def test_content_based_counts_each_shared_tag_once() -> None:
    completed = [
        course(1, "Intro", level="BEGINNER", tags=["python"]),
        course(2, "Scripting", level="BEGINNER", tags=["Python", "bash"]),
    ]
    candidate = course(3, "Pandas", level="ADVANCED", tags=["python"])

    recs = content_based(completed, [candidate])
    assert recs[0].score == pytest.approx(3)
    assert recs[0].confidence == pytest.approx(3 / 20)


def test_content_based_averages_title_and_description_similarity() -> None:
    done = course(1, "Python Basics", level="ADVANCED", description="learn python syntax")
    candidate = course(2, "Python Projects", level="BEGINNER", description="build small games")

    recs = content_based([done], [candidate])
    # title 1/2, description 0, averaged then doubled
    assert recs[0].score == pytest.approx(0.5)


def test_trending_uses_the_last_30_days() -> None:
    enrollments = [
        enrolled(1, 1, days_ago=2), enrolled(1, 2, days_ago=5), enrolled(1, 3, days_ago=40),
        enrolled(2, 1, days_ago=60),
    ]
    recs = trending(enrollments, [course(1, "Hot"), course(2, "Cold")], now=NOW)

    assert [r.course.id for r in recs] == [1]
    assert recs[0].score == pytest.approx(2 * 2 / 3)
    assert recs[0].confidence == pytest.approx(2 / 3)


def test_combine_weights_and_merges() -> None:
    python = course(1, "Python")
    web = course(2, "Web")
    merged = {
        r.course.id: r
        for r in combine({
            "skill": [Recommendation(python, 10, "Matches your skills", 1.0)],
            "trending": [Recommendation(python, 5, "Trending this month", 0.5),
                         Recommendation(web, 2, "Trending this month", 0.2)],
        })
    }

    assert merged[1].score == pytest.approx(15)
    assert merged[1].reason == "Matches your skills"
    assert merged[1].confidence == pytest.approx(0.75)
    assert merged[2].score == pytest.approx(1.2)


def test_popular_is_relative_to_the_top_course() -> None:
    enrollments = [enrolled(1, 1), enrolled(1, 2), enrolled(2, 3)]
    recs = {r.course.id: r for r in popular(enrollments, [course(1, "A"), course(2, "B"), course(3, "C")])}
    assert recs[1].confidence == 1.0
    assert recs[2].confidence == 0.5
    assert recs[3].score == 0


def test_similar_excludes_the_target() -> None:
    target = course(1, "Python Basics", level="BEGINNER", category="Programming", tags=["python"])
    candidates = [
        target,
        course(2, "Python for Web", level="BEGINNER", category="Programming", tags=["python", "web"]),
        course(3, "Bread", level="ADVANCED", category="Cooking"),
    ]
    recs = similar(target, candidates)

    assert [r.course.id for r in recs] == [2]
    assert recs[0].score == pytest.approx(23 + 10 / 3)
    assert recs[0].reason == "Similar to Python Basics"
    assert recs[0].to_dict()["confidence"] == 1.0
