"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from youthworks.api.routes.auth_routes import router as auth_router
from youthworks.api.routes.profile_routes import router as profile_router
from youthworks.api.routes.company_routes import router as company_router
from youthworks.api.routes.institution_routes import router as institution_router
from youthworks.api.routes.job_routes import router as job_router
from youthworks.api.routes.application_routes import router as application_router
from youthworks.api.routes.course_routes import router as course_router
from youthworks.api.routes.message_routes import router as message_router
from youthworks.api.routes.notification_routes import router as notification_router
from youthworks.api.routes.analytics_routes import router as analytics_router
from youthworks.api.routes.admin_routes import router as admin_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(company_router)
api_router.include_router(institution_router)
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(course_router)
api_router.include_router(message_router)
api_router.include_router(notification_router)
api_router.include_router(analytics_router)
api_router.include_router(admin_router)
