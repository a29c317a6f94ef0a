"""
Authentication Utility - JWT and Password handling.

Provides:
- Password hashing with bcrypt
- JWT token creation/verification
- FastAPI dependencies for protected routes, one per role
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select

from youthworks.core.config import get_settings
from youthworks.core.security_log import SecurityEventType, security_logger
from youthworks.db.models import Company, Institution, User
from youthworks.db.postgres import get_db_session

settings = get_settings()

ROLE_YOUTH = "YOUTH"
ROLE_COMPANY = "COMPANIES"
ROLE_INSTITUTION = "INSTITUTION"
ROLE_SUPERADMIN = "SUPERADMIN"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Bearer token extractor; missing credentials are reported as 401 below
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash password with bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise credentials_exception

    with get_db_session() as db:
        user = db.get(User, int(payload["sub"]))
        if not user:
            raise credentials_exception
        if not user.is_active:
            raise HTTPException(status_code=403, detail="Account deactivated")
        return {"user_id": user.id, "email": user.email, "role": user.role}


def require_roles(*roles: str):
    """Dependency factory - allow only the given roles."""

    async def dependency(user: dict = Depends(get_current_user)) -> dict:
        if user["role"] not in roles:
            security_logger.log(
                SecurityEventType.unauthorized_access,
                "Role not allowed for endpoint",
                severity="medium",
                success=False,
                user_id=user["user_id"],
                details={"role": user["role"], "allowed": list(roles)},
            )
            raise HTTPException(status_code=403, detail="Forbidden")
        return user

    return dependency


get_current_youth = require_roles(ROLE_YOUTH)
get_current_admin = require_roles(ROLE_SUPERADMIN)


async def get_current_company(user: dict = Depends(require_roles(ROLE_COMPANY))) -> dict:
    """Dependency - Require an approved company and attach company_id."""
    with get_db_session() as db:
        company = db.scalars(select(Company).where(Company.owner_id == user["user_id"])).first()
        if not company:
            raise HTTPException(status_code=404, detail="Company not found")
        if company.approval_status != "APPROVED" or not company.is_active:
            raise HTTPException(status_code=403, detail="Company pending approval")
        user["company_id"] = company.id
        user["company_name"] = company.name
    return user


async def get_current_institution(user: dict = Depends(require_roles(ROLE_INSTITUTION))) -> dict:
    """Dependency - Require an approved institution and attach institution_id."""
    with get_db_session() as db:
        institution = db.scalars(
            select(Institution).where(Institution.owner_id == user["user_id"])
        ).first()
        if not institution:
            raise HTTPException(status_code=404, detail="Institution not found")
        if institution.approval_status != "APPROVED" or not institution.is_active:
            raise HTTPException(status_code=403, detail="Institution pending approval")
        user["institution_id"] = institution.id
    return user
