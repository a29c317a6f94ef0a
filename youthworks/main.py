"""
YouthWorks - Main Application

FastAPI backend with:
- PostgreSQL for structured data
- MongoDB for CV documents
- LLM-assisted CV parsing
- JWT authentication

Run: uvicorn youthworks.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from youthworks import __version__
from youthworks.api.routes import api_router
from youthworks.core.logging import configure_logging
from youthworks.db.mongodb import init_mongo_indexes, test_mongo_connection
from youthworks.db.postgres import init_db, test_postgres_connection
from youthworks.services.llm_client import get_llm_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and MongoDB indexes on startup."""
    configure_logging()
    init_db()
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)
    yield


# Create FastAPI app
app = FastAPI(
    title="YouthWorks",
    description="""
    Youth employment and training platform.

    ## Features
    - **Authentication**: JWT-based auth for youth, companies, institutions and admins
    - **Profiles**: Profile management, CV upload with AI parsing
    - **Jobs**: Posting, search, applications and scored recommendations
    - **Courses**: Catalogue, enrollment and course recommendations
    - **Messages & Notifications**: Direct messages, in-app and email notifications
    - **Analytics**: Company dashboards, platform totals and skills demand
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS middleware (allow all for development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.get("/", tags=["Health"])
async def root():
    return {"status": "healthy", "app": "YouthWorks", "version": __version__}


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    llm = get_llm_client()
    if llm is None:
        llm_status = "disabled"
    else:
        llm_status = "connected" if llm.test_connection() else "disconnected"

    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected",
        "llm": llm_status,
    }
