from __future__ import annotations

import os
import tempfile

# Settings are read once at import time, so the environment goes first
_DB_DIR = tempfile.mkdtemp(prefix="youthworks-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_DB_DIR}/youthworks.sqlite3"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LLM_API_KEY"] = ""
os.environ["SMTP_HOST"] = ""

import mongomock  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import select  # noqa: E402

import youthworks.db.mongodb as mongodb  # noqa: E402

mongodb._client = mongomock.MongoClient()
mongodb._db = None

from youthworks.core.auth import hash_password  # noqa: E402
from youthworks.db.models import Base, Company, Institution, Profile, User  # noqa: E402
from youthworks.db.postgres import engine, get_db_session  # noqa: E402
from youthworks.main import app  # noqa: E402

PASSWORD = "Youth#W0rks!x"


@pytest.fixture(autouse=True)
def reset_databases():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    mongodb._client.drop_database(mongodb.settings.mongodb_db)
    mongodb._db = None
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, role: str = "YOUTH", **extra) -> dict:
    payload = {
        "email": email,
        "password": PASSWORD,
        "confirm_password": PASSWORD,
        "role": role,
        "first_name": extra.pop("first_name", "Ana"),
        "last_name": extra.pop("last_name", "Quispe"),
    }
    payload.update(extra)
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def login(client: TestClient, email: str, password: str = PASSWORD) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return auth_headers(response.json()["access_token"])


def approve_company(user_id: int) -> int:
    with get_db_session() as db:
        company = db.scalars(select(Company).where(Company.owner_id == user_id)).one()
        company.approval_status = "APPROVED"
        company.is_active = True
        return company.id


def approve_institution(user_id: int) -> int:
    with get_db_session() as db:
        institution = db.scalars(select(Institution).where(Institution.owner_id == user_id)).one()
        institution.approval_status = "APPROVED"
        institution.is_active = True
        return institution.id


@pytest.fixture
def youth(client):
    """A registered youth: (user_id, headers)."""
    body = register(client, "youth@example.com")
    return body["user_id"], login(client, "youth@example.com")


@pytest.fixture
def company(client):
    """An approved company: (user_id, company_id, headers)."""
    body = register(
        client, "hr@acme.example.com", role="COMPANIES",
        company_name="Acme Software", business_sector="Technology",
    )
    company_id = approve_company(body["user_id"])
    return body["user_id"], company_id, login(client, "hr@acme.example.com")


@pytest.fixture
def admin(client):
    """A superadmin created straight in the database: (user_id, headers)."""
    with get_db_session() as db:
        user = User(email="admin@example.com", password_hash=hash_password(PASSWORD), role="SUPERADMIN")
        db.add(user)
        db.flush()
        db.add(Profile(user_id=user.id, first_name="Root", skills=[], interests=[]))
        user_id = user.id
    return user_id, login(client, "admin@example.com")


def create_job(client: TestClient, headers: dict, **overrides) -> dict:
    payload = {
        "title": "Junior Python Developer",
        "description": "Build APIs with FastAPI and PostgreSQL",
        "location": "La Paz, Bolivia",
        "contract_type": "FULL_TIME",
        "work_modality": "ON_SITE",
        "experience_level": "ENTRY_LEVEL",
        "education_level": "BACHELOR",
        "salary_min": 3000,
        "salary_max": 5000,
        "skills_required": ["Python", "SQL"],
    }
    payload.update(overrides)
    response = client.post("/api/jobs", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()
