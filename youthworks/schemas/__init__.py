"""
Schemas module - Request/Response schemas for API endpoints.

Everything lives in youthworks.schemas.schemas; import from there.
"""
