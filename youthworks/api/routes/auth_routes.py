"""
Authentication Routes

POST /auth/register - Register new user (youth, company or institution)
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
POST /auth/password/check - Evaluate a password against the password policy
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select

from youthworks.core.auth import (
    ROLE_COMPANY, ROLE_INSTITUTION, ROLE_YOUTH,
    create_access_token, get_current_user, hash_password, verify_password,
)
from youthworks.core.password_policy import validate_password
from youthworks.core.security_log import SecurityEventType, security_logger
from youthworks.db.models import Company, Institution, Profile, User
from youthworks.db.postgres import get_db_session
from youthworks.schemas.schemas import (
    LoginRequest, PasswordCheckRequest, PasswordCheckResponse, RegisterRequest,
    RegisterResponse, TokenResponse, UserResponse,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Municipalities are created by administrators only
SELF_REGISTER_INSTITUTION_TYPES = {"NGO", "TRAINING_CENTER", "FOUNDATION", "OTHER"}


def _validate_registration(request: RegisterRequest):
    role = request.role.value
    if role not in (ROLE_YOUTH, ROLE_COMPANY, ROLE_INSTITUTION):
        raise HTTPException(status_code=400, detail="This role cannot self-register")

    check = validate_password(request.password)
    if not check.is_valid:
        raise HTTPException(status_code=400, detail={"message": "Password too weak", "errors": check.errors})

    if role == ROLE_COMPANY and not (request.company_name or "").strip():
        raise HTTPException(status_code=400, detail="company_name is required for companies")

    if role == ROLE_INSTITUTION:
        if not request.institution_name or not request.institution_type or not request.department:
            raise HTTPException(
                status_code=400,
                detail="institution_name, institution_type and department are required for institutions",
            )
        if request.institution_type == "MUNICIPALITY":
            raise HTTPException(status_code=400, detail="Municipalities can only be created by administrators")
        if request.institution_type not in SELF_REGISTER_INSTITUTION_TYPES:
            raise HTTPException(status_code=400, detail="Invalid institution_type")


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(request: RegisterRequest):
    """
    Register a new account.

    Youth accounts are active immediately. Company and institution accounts
    are created PENDING and can only act after a superadmin approves them.
    """
    _validate_registration(request)
    email = request.email.lower()
    role = request.role.value

    with get_db_session() as db:
        if db.scalars(select(User).where(User.email == email)).first():
            raise HTTPException(status_code=409, detail="Email already registered")

        user = User(email=email, password_hash=hash_password(request.password), role=role, is_active=True)
        db.add(user)
        db.flush()

        db.add(Profile(
            user_id=user.id,
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
            skills=[],
            interests=[],
            profile_completion=20,
        ))

        status_label = "ACTIVE"
        if role == ROLE_COMPANY:
            db.add(Company(
                owner_id=user.id,
                name=request.company_name.strip(),
                email=email,
                tax_id=request.tax_id,
                business_sector=request.business_sector,
                company_size=request.company_size.value if request.company_size else None,
                legal_representative=f"{request.first_name} {request.last_name}",
                phone=request.phone,
                approval_status="PENDING",
                is_active=False,
            ))
            status_label = "PENDING"
        elif role == ROLE_INSTITUTION:
            db.add(Institution(
                owner_id=user.id,
                name=request.institution_name.strip(),
                email=email,
                institution_type=request.institution_type,
                department=request.department,
                representative=f"{request.first_name} {request.last_name}",
                phone=request.phone,
                approval_status="PENDING",
                is_active=False,
            ))
            status_label = "PENDING"

        user_id = user.id

    security_logger.log(
        SecurityEventType.registration, "User registered", user_id=user_id, details={"role": role}
    )

    message = "Registered successfully. Please login."
    if status_label == "PENDING":
        message = "Registered successfully. Your account is pending administrator approval."
    return RegisterResponse(user_id=user_id, email=email, role=role, status=status_label, message=message)


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    email = request.email.lower()
    with get_db_session() as db:
        user = db.scalars(select(User).where(User.email == email)).first()
        credentials_ok = user is not None and verify_password(request.password, user.password_hash)
        if credentials_ok:
            user_id, role, is_active = user.id, user.role, user.is_active

    if not credentials_ok:
        security_logger.log(
            SecurityEventType.login_failed,
            "Invalid credentials",
            severity="medium",
            success=False,
            details={"email": email},
        )
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not is_active:
        security_logger.log(
            SecurityEventType.login_failed, "Inactive account", severity="medium", success=False, user_id=user_id
        )
        raise HTTPException(status_code=403, detail="Account deactivated")

    token = create_access_token(data={"sub": str(user_id), "role": role})
    security_logger.log(SecurityEventType.login_success, "User logged in", user_id=user_id)

    return TokenResponse(access_token=token, user_id=user_id, role=role)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user)):
    """Get current logged-in user info."""
    with get_db_session() as db:
        user = db.get(User, current_user["user_id"])
        return UserResponse(
            user_id=user.id, email=user.email, role=user.role,
            is_active=user.is_active, created_at=user.created_at,
        )


@router.post("/password/check", response_model=PasswordCheckResponse)
async def check_password(request: PasswordCheckRequest):
    """Evaluate a password against the policy without creating anything."""
    check = validate_password(request.password)
    return PasswordCheckResponse(
        is_valid=check.is_valid, strength=check.strength, score=check.score, errors=check.errors
    )
