"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    youth = "YOUTH"
    company = "COMPANIES"
    institution = "INSTITUTION"
    superadmin = "SUPERADMIN"


class ApprovalStatus(str, Enum):
    pending = "PENDING"
    approved = "APPROVED"
    rejected = "REJECTED"


class ExperienceLevel(str, Enum):
    no_experience = "NO_EXPERIENCE"
    entry_level = "ENTRY_LEVEL"
    mid_level = "MID_LEVEL"
    senior_level = "SENIOR_LEVEL"


class EducationLevel(str, Enum):
    high_school = "HIGH_SCHOOL"
    technical = "TECHNICAL"
    bachelor = "BACHELOR"
    master = "MASTER"
    phd = "PHD"


class WorkModality(str, Enum):
    on_site = "ON_SITE"
    remote = "REMOTE"
    hybrid = "HYBRID"


class ContractType(str, Enum):
    full_time = "FULL_TIME"
    part_time = "PART_TIME"
    internship = "INTERNSHIP"
    volunteer = "VOLUNTEER"
    freelance = "FREELANCE"


class ApplicationStatus(str, Enum):
    sent = "SENT"
    under_review = "UNDER_REVIEW"
    pre_selected = "PRE_SELECTED"
    rejected = "REJECTED"
    hired = "HIRED"


class CompanySize(str, Enum):
    micro = "MICRO"
    small = "SMALL"
    medium = "MEDIUM"
    large = "LARGE"


class InstitutionType(str, Enum):
    municipality = "MUNICIPALITY"
    ngo = "NGO"
    training_center = "TRAINING_CENTER"
    foundation = "FOUNDATION"
    other = "OTHER"


class CourseLevel(str, Enum):
    beginner = "BEGINNER"
    intermediate = "INTERMEDIATE"
    advanced = "ADVANCED"


class MessageContext(str, Enum):
    job_application = "JOB_APPLICATION"
    general = "GENERAL"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    confirm_password: str
    role: UserRole
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = None
    # Company fields
    company_name: Optional[str] = None
    tax_id: Optional[str] = None
    business_sector: Optional[str] = None
    company_size: Optional[CompanySize] = None
    # Institution fields
    institution_name: Optional[str] = None
    institution_type: Optional[str] = None
    department: Optional[str] = None

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class RegisterResponse(BaseModel):
    user_id: int
    email: str
    role: str
    status: str
    message: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    role: str


class UserResponse(BaseModel):
    user_id: int
    email: str
    role: str
    is_active: bool
    created_at: datetime


class PasswordCheckRequest(BaseModel):
    password: str


class PasswordCheckResponse(BaseModel):
    is_valid: bool
    strength: str
    score: int
    errors: List[str] = []


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    education_level: Optional[EducationLevel] = None
    experience_level: Optional[ExperienceLevel] = None
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    job_title: Optional[str] = None
    industry: Optional[str] = None
    salary_expectation: Optional[float] = Field(None, ge=0)
    work_modality: Optional[WorkModality] = None
    contract_type: Optional[ContractType] = None
    bio: Optional[str] = Field(None, max_length=2000)


class ProfileResponse(BaseModel):
    user_id: int
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birth_date: Optional[date] = None
    gender: Optional[str] = None
    education_level: Optional[str] = None
    experience_level: Optional[str] = None
    skills: List[str] = []
    interests: List[str] = []
    job_title: Optional[str] = None
    industry: Optional[str] = None
    salary_expectation: Optional[float] = None
    work_modality: Optional[str] = None
    contract_type: Optional[str] = None
    bio: Optional[str] = None
    cv_uploaded: bool = False
    profile_completion: int = 0


class ProfileListResponse(BaseModel):
    profiles: List[ProfileResponse]
    total: int
    page: int
    page_size: int


class CVUploadResponse(BaseModel):
    success: bool
    message: str
    filename: Optional[str] = None
    parser: str
    extracted_skills: List[str] = []
    skills_added: List[str] = []
    parsed_data: Optional[dict] = None


# ============================================================
# COMPANY / INSTITUTION SCHEMAS
# ============================================================

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    tax_id: Optional[str] = None
    business_sector: Optional[str] = None
    company_size: Optional[CompanySize] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None


class CompanyResponse(BaseModel):
    company_id: int
    owner_id: int
    name: str
    email: Optional[str] = None
    tax_id: Optional[str] = None
    business_sector: Optional[str] = None
    company_size: Optional[str] = None
    legal_representative: Optional[str] = None
    website: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    approval_status: str
    is_active: bool
    active_jobs: Optional[int] = None
    created_at: datetime


class InstitutionUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    department: Optional[str] = None
    region: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None


class InstitutionResponse(BaseModel):
    institution_id: int
    owner_id: int
    name: str
    email: Optional[str] = None
    institution_type: str
    department: Optional[str] = None
    region: Optional[str] = None
    representative: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    approval_status: str
    is_active: bool
    created_at: datetime


class InstitutionStudentResponse(BaseModel):
    user_id: int
    full_name: str
    email: str
    enrollments: int
    completed: int


class ApprovalUpdate(BaseModel):
    status: ApprovalStatus
    reason: Optional[str] = None


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    contract_type: ContractType = ContractType.full_time
    work_modality: WorkModality = WorkModality.on_site
    experience_level: ExperienceLevel = ExperienceLevel.no_experience
    education_level: Optional[EducationLevel] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_currency: str = "BOB"
    skills_required: List[str] = []
    requirements: List[str] = []
    benefits: List[str] = []
    application_deadline: Optional[datetime] = None
    urgent: bool = False
    featured: bool = False

    @model_validator(mode="after")
    def salary_range(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salary_min cannot exceed salary_max")
        return self


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    contract_type: Optional[ContractType] = None
    work_modality: Optional[WorkModality] = None
    experience_level: Optional[ExperienceLevel] = None
    education_level: Optional[EducationLevel] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_currency: Optional[str] = None
    skills_required: Optional[List[str]] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    is_active: Optional[bool] = None
    urgent: Optional[bool] = None
    featured: Optional[bool] = None


class SalaryRange(BaseModel):
    min: float
    max: float
    currency: str


class JobCompany(BaseModel):
    id: int
    name: str
    logo: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None


class JobResponse(BaseModel):
    id: int
    title: str
    company_id: int
    company: JobCompany
    description: Optional[str] = None
    location: Optional[str] = None
    contract_type: str
    work_modality: str
    remote: bool
    experience_level: str
    education_level: Optional[str] = None
    salary: Optional[SalaryRange] = None
    skills: List[str] = []
    requirements: List[str] = []
    benefits: List[str] = []
    application_deadline: Optional[datetime] = None
    is_active: bool
    urgent: bool = False
    featured: bool = False
    views_count: int = 0
    applications_count: int = 0
    is_applied: bool = False
    created_at: datetime


class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int


# ============================================================
# RECOMMENDATION SCHEMAS
# ============================================================

class ScoreBreakdown(BaseModel):
    skills: float
    experience: float
    education: float
    location: float
    industry: float
    work_modality: float
    contract_type: float
    salary: float
    recency: float


class JobRecommendation(BaseModel):
    job: JobResponse
    score: float
    match_percentage: int
    reasons: List[str]
    breakdown: ScoreBreakdown


class RecommendationProfile(BaseModel):
    skills: List[str]
    experience_level: str
    education_level: str
    location: str


class JobRecommendationListResponse(BaseModel):
    recommendations: List[JobRecommendation]
    total: int
    profile: RecommendationProfile


class CourseRecommendation(BaseModel):
    course_id: int
    title: str
    category: Optional[str] = None
    level: str
    score: float
    reason: str
    confidence: float


class CourseRecommendationListResponse(BaseModel):
    recommendations: List[CourseRecommendation]
    type: str
    limit: int


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: int
    cover_letter: Optional[str] = Field(None, max_length=5000)


class ApplicationNotesUpdate(BaseModel):
    notes: Optional[str] = Field(None, max_length=5000)


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None
    decision_reason: Optional[str] = None


class TimelineEntry(BaseModel):
    id: str
    type: str
    title: str
    description: str
    date: datetime


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    company: str
    location: Optional[str] = None
    status: str
    display_status: str
    priority: str
    next_steps: str
    cover_letter: Optional[str] = None
    notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    applied_at: datetime
    reviewed_at: Optional[datetime] = None
    days_since_applied: int
    response_time_days: Optional[int] = None
    timeline: List[TimelineEntry] = []


class ReceivedApplicationResponse(BaseModel):
    id: int
    job_id: int
    job_title: str
    applicant_id: int
    applicant_name: str
    applicant_email: str
    applicant_skills: List[str] = []
    status: str
    cover_letter: Optional[str] = None
    notes: Optional[str] = None
    decision_reason: Optional[str] = None
    applied_at: datetime
    reviewed_at: Optional[datetime] = None


# ============================================================
# COURSE SCHEMAS
# ============================================================

class CourseCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    level: CourseLevel = CourseLevel.beginner
    tags: List[str] = []
    duration_hours: Optional[int] = Field(None, ge=1)


class CourseResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    level: str
    tags: List[str] = []
    duration_hours: Optional[int] = None
    institution_id: Optional[int] = None
    enrollments: int = 0
    is_active: bool
    created_at: datetime


class EnrollmentResponse(BaseModel):
    id: int
    course_id: int
    student_id: int
    progress: int
    enrolled_at: datetime
    completed_at: Optional[datetime] = None


# ============================================================
# MESSAGE SCHEMAS
# ============================================================

class MessageCreate(BaseModel):
    recipient_id: int
    content: str = Field(..., max_length=5000)
    message_type: str = "text"
    context_type: MessageContext = MessageContext.general
    context_id: Optional[str] = None


class MessageParty(BaseModel):
    id: int
    name: str
    role: str


class MessageOut(BaseModel):
    id: int
    sender_id: int
    recipient_id: int
    content: str
    message_type: str
    context_type: str
    context_id: Optional[str] = None
    is_read: bool
    created_at: datetime
    sender: MessageParty
    recipient: MessageParty


class Pagination(BaseModel):
    page: int
    limit: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class MessageListResponse(BaseModel):
    messages: List[MessageOut]
    pagination: Pagination


# ============================================================
# NOTIFICATION SCHEMAS
# ============================================================

class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    message: str
    data: Dict[str, Any] = {}
    is_read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True
    in_app: bool = True
    job_applications: bool = True
    job_offers: bool = True
    messages: bool = True
    courses: bool = True


class NotificationPreferencesUpdate(BaseModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    in_app: Optional[bool] = None
    job_applications: Optional[bool] = None
    job_offers: Optional[bool] = None
    messages: Optional[bool] = None
    courses: Optional[bool] = None


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class AdminUserCreate(BaseModel):
    email: EmailStr
    # omitted -> a temporary password is generated and returned once
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    education_level: Optional[EducationLevel] = None


class AdminUserUpdate(BaseModel):
    is_active: Optional[bool] = None
    role: Optional[UserRole] = None


class AdminUserResponse(BaseModel):
    user_id: int
    email: str
    role: str
    is_active: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_completion: int = 0
    created_at: datetime
    temporary_password: Optional[str] = None


class AdminInstitutionCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    name: str = Field(..., min_length=2, max_length=200)
    institution_type: InstitutionType
    department: str
    region: Optional[str] = None
    representative: Optional[str] = None
    phone: Optional[str] = None


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class CountResponse(BaseModel):
    count: int