"""
CV Service - store, parse and merge uploaded CVs.

Workflow for one upload:
1. Store the raw text in MongoDB (cv_documents)
2. Parse with the LLM, or with keyword matching when the LLM is off/fails
3. Validate the parsed JSON and store it on the same document
4. Merge the extracted skills into the profile (case-insensitive, no duplicates)
5. Point profile.cv_document_id at the new document
"""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.collection import Collection
from sqlalchemy import select

from youthworks.db.models import Profile
from youthworks.db.mongodb import COLLECTIONS, get_collection
from youthworks.db.postgres import get_db_session
from youthworks.services.llm_client import get_llm_client
from youthworks.services.profile_service import compute_profile_completion

logger = logging.getLogger(__name__)

# Skills the keyword fallback can recognise, in display form
KNOWN_SKILLS = [
    "Python", "JavaScript", "TypeScript", "Java", "C#", "C++", "PHP", "Go", "Ruby", "Kotlin",
    "Swift", "SQL", "PostgreSQL", "MySQL", "MongoDB", "HTML", "CSS", "React", "Angular",
    "Vue", "Node.js", "Django", "Flask", "FastAPI", "Spring", "Laravel", "Docker",
    "Kubernetes", "AWS", "Azure", "Git", "Linux", "Excel", "Power BI", "Tableau",
    "Machine Learning", "Data Analysis", "Figma", "Photoshop", "Illustrator",
    "Marketing", "Digital Marketing", "Sales", "Customer Service", "Accounting",
    "Project Management", "Scrum", "Communication", "Teamwork", "Leadership",
    "English", "Spanish", "Portuguese",
]


# ============================================================
# PARSED OUTPUT VALIDATION
# ============================================================

def validate_parsed_cv(data: dict) -> dict:
    """
    Validate and sanitize parsed CV data.
    Ensures all fields exist with the right types whatever the LLM returned.
    """
    if not isinstance(data, dict):
        data = {}

    validated = {
        "skills": [],
        "education": [],
        "experience": [],
        "languages": [],
        "summary": data.get("summary") or None,
    }

    skills = data.get("skills", [])
    if isinstance(skills, list):
        validated["skills"] = [str(s).strip() for s in skills if s and str(s).strip()]

    languages = data.get("languages", [])
    if isinstance(languages, list):
        validated["languages"] = [str(s).strip() for s in languages if s]

    for edu in data.get("education") or []:
        if isinstance(edu, dict):
            validated["education"].append({
                "degree": str(edu.get("degree", "")).strip(),
                "field": str(edu.get("field", "")).strip(),
                "institution": str(edu.get("institution", "")).strip(),
            })

    for exp in data.get("experience") or []:
        if isinstance(exp, dict):
            validated["experience"].append({
                "company": str(exp.get("company", "")).strip(),
                "role": str(exp.get("role", "")).strip(),
                "duration": str(exp.get("duration", "")).strip(),
            })

    return validated


def extract_skills_by_keywords(text: str, known_skills: List[str] = None) -> List[str]:
    """Return the known skills mentioned in the text, matched on word boundaries."""
    known_skills = known_skills or KNOWN_SKILLS
    found = []
    for skill in known_skills:
        # \b does not work around symbols such as "C#" or "C++"
        pattern = r"(?<![\w])" + re.escape(skill.lower()) + r"(?![\w])"
        if re.search(pattern, text.lower()):
            found.append(skill)
    return found


def merge_skills(existing: List[str], new: List[str]) -> List[str]:
    """Append new skills not already present, comparing case-insensitively."""
    merged = list(existing or [])
    seen = {s.lower() for s in merged}
    for skill in new:
        if skill.lower() not in seen:
            merged.append(skill)
            seen.add(skill.lower())
    return merged


# ============================================================
# CV DOCUMENTS COLLECTION
# ============================================================

class CVDocumentService:
    """
    Handles CV document storage in MongoDB.
    One document per upload; the latest one is referenced from the profile.
    """

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["cv_documents"])

    def insert(self, user_id: int, cv_text: str, filename: str = None) -> str:
        doc = {
            "user_id": user_id,
            "cv_text": cv_text,
            "filename": filename,
            "uploaded_at": datetime.now(timezone.utc),
            "is_parsed": False,
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def save_parsed(self, doc_id: str, parsed_data: dict, parser: str):
        self.collection.update_one(
            {"_id": ObjectId(doc_id)},
            {"$set": {"parsed_data": parsed_data, "parser": parser, "is_parsed": True}},
        )

    def get_by_id(self, doc_id: str) -> Optional[dict]:
        try:
            doc = self.collection.find_one({"_id": ObjectId(doc_id)})
        except InvalidId:
            return None
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc

    def get_latest(self, user_id: int) -> Optional[dict]:
        doc = self.collection.find_one({"user_id": user_id}, sort=[("uploaded_at", -1)])
        if doc:
            doc["_id"] = str(doc["_id"])
        return doc


# ============================================================
# UPLOAD PIPELINE
# ============================================================

def parse_cv_text(cv_text: str) -> tuple:
    """
    Parse CV text. Returns (parsed_data, parser_name).

    Uses the LLM when configured; any LLM failure falls back to keyword
    matching so an upload never fails because of the parser.
    """
    client = get_llm_client()
    if client is not None:
        try:
            return validate_parsed_cv(client.parse_cv(cv_text)), "llm"
        except Exception:
            logger.exception("LLM CV parsing failed, using keyword fallback")

    parsed = validate_parsed_cv({"skills": extract_skills_by_keywords(cv_text)})
    return parsed, "keywords"


def process_cv_upload(user_id: int, cv_text: str, filename: str = None) -> dict:
    """
    Full pipeline for an uploaded CV.

    Returns:
        {"parser": ..., "parsed_data": {...}, "extracted_skills": [...], "skills_added": [...]}
    """
    documents = CVDocumentService()
    doc_id = documents.insert(user_id=user_id, cv_text=cv_text, filename=filename)

    parsed_data, parser = parse_cv_text(cv_text)
    documents.save_parsed(doc_id, parsed_data, parser)

    with get_db_session() as db:
        profile = db.scalars(select(Profile).where(Profile.user_id == user_id)).first()
        if profile is None:
            profile = Profile(user_id=user_id, skills=[], interests=[])
            db.add(profile)

        before = list(profile.skills or [])
        profile.skills = merge_skills(before, parsed_data["skills"])
        profile.cv_document_id = doc_id
        profile.profile_completion = compute_profile_completion(profile)
        skills_added = profile.skills[len(before):]

    logger.info("CV processed for user %s with %s parser (%d new skills)", user_id, parser, len(skills_added))
    return {
        "document_id": doc_id,
        "parser": parser,
        "parsed_data": parsed_data,
        "extracted_skills": parsed_data["skills"],
        "skills_added": skills_added,
    }
