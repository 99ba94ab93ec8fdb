"""
Pydantic schemas for API request/response validation.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional
from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator

from smartlife.models import (
    ClaimStatus,
    Eligibility,
    NotificationType,
    PolicyCategory,
    Premium,
    Priority,
    RelatedModel,
    ReportFormat,
    ReportType,
    ResolutionStatus,
    RiskTolerance,
)


def _lowercase(value: str) -> str:
    return value.strip().lower()


LowercaseEmail = Annotated[EmailStr, AfterValidator(_lowercase)]


# ---------------------------------------------------------------- auth

class RegisterRequest(BaseModel):
    """Self-registration; the role is always user."""
    name: str = Field(..., min_length=1, max_length=50)
    email: LowercaseEmail
    phone: str = Field(..., min_length=10, max_length=20)
    password: str = Field(..., min_length=6)
    policy_number: str = Field(..., min_length=1)
    region: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Asha Rao",
                "email": "asha@example.com",
                "phone": "9876543210",
                "password": "secret123",
                "policy_number": "POL-100234",
                "region": "South",
            }
        }


class LoginRequest(BaseModel):
    email: LowercaseEmail
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(BaseModel):
    email: LowercaseEmail


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)


# ---------------------------------------------------------------- users

class NotificationPreferencesUpdate(BaseModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    whatsapp: Optional[bool] = None


class PreferencesUpdate(BaseModel):
    notifications: Optional[NotificationPreferencesUpdate] = None
    policy_categories: Optional[List[PolicyCategory]] = None
    risk_tolerance: Optional[RiskTolerance] = None


class ProfileUpdate(BaseModel):
    """Fields left out of the request are not touched."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, min_length=10, max_length=20)
    region: Optional[str] = None
    preferences: Optional[PreferencesUpdate] = None


# ---------------------------------------------------------------- policies

class PolicyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    category: PolicyCategory
    coverage: Dict[str, Any]
    premium: Premium
    eligibility: Eligibility = Field(default_factory=Eligibility)
    benefits: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    documents: List[str] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Policy name is required")
        return v.strip()


class PolicyUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None
    category: Optional[PolicyCategory] = None
    coverage: Optional[Dict[str, Any]] = None
    premium: Optional[Premium] = None
    eligibility: Optional[Eligibility] = None
    benefits: Optional[List[str]] = None
    exclusions: Optional[List[str]] = None
    documents: Optional[List[str]] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else v


class CompareRequest(BaseModel):
    policy_ids: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------- claims

class ClaimCreate(BaseModel):
    policy_id: str
    incident_date: datetime
    description: str = Field(..., min_length=1, max_length=2000)
    amount: float = Field(..., gt=0)
    documents: List[str] = Field(default_factory=list)

    @field_validator("incident_date")
    @classmethod
    def not_in_future(cls, v: datetime) -> datetime:
        if v.tzinfo is not None:
            v = v.astimezone(timezone.utc).replace(tzinfo=None)
        if v > datetime.utcnow():
            raise ValueError("Incident date cannot be in the future")
        return v


class ClaimStatusUpdate(BaseModel):
    status: ClaimStatus
    approved_amount: Optional[float] = Field(default=None, ge=0)
    note: Optional[str] = None


class ClaimNoteCreate(BaseModel):
    text: str = Field(..., min_length=1, max_length=1000)


class ClaimResolutionUpdate(BaseModel):
    status: ResolutionStatus
    details: Optional[str] = None


# ---------------------------------------------------------------- AI

class AssistantRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=2000)
    session_id: Optional[str] = None

    @field_validator("query")
    @classmethod
    def query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Query is required")
        return v.strip()


class RecommendContext(BaseModel):
    triggers: List[str] = Field(default_factory=list)
    life_events: List[str] = Field(default_factory=list)


class RecommendRequest(BaseModel):
    context: Optional[RecommendContext] = None


class FeedbackRequest(BaseModel):
    interaction_id: str
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None
    helpful: Optional[bool] = None


class RecommendationStatusUpdate(BaseModel):
    viewed: Optional[bool] = None
    clicked: Optional[bool] = None
    purchased: Optional[bool] = None


# ---------------------------------------------------------------- analytics / agent

class UserBehavior(BaseModel):
    view_count: int = Field(default=0, ge=0)
    time_spent: float = Field(default=0, ge=0, description="Seconds spent on the policy page")


class PredictRequest(BaseModel):
    policy_id: str
    user_behavior: Optional[UserBehavior] = None


class SegmentRequest(BaseModel):
    criteria: List[str] = Field(..., min_length=1)


class Scenario(BaseModel):
    type: str = Field(default="email_upsell", description="email_upsell or whatsapp_upsell")
    product: str = Field(default="premium_health")


class SimulateRequest(BaseModel):
    user_id: str
    scenario: Scenario


# ---------------------------------------------------------------- reports

class ReportRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: ReportType
    format: ReportFormat
    parameters: Dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------- notifications

class RelatedToRequest(BaseModel):
    model: Optional[RelatedModel] = None
    id: Optional[str] = None


class EmailNotificationRequest(BaseModel):
    user_id: str
    subject: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    type: NotificationType
    priority: Priority = "medium"
    related_to: Optional[RelatedToRequest] = None


class WhatsAppNotificationRequest(BaseModel):
    user_id: str
    message: str = Field(..., min_length=1)
    type: NotificationType
    priority: Priority = "medium"
    related_to: Optional[RelatedToRequest] = None


# ---------------------------------------------------------------- responses

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(default="healthy")
    version: str
    mongodb_connected: bool
    ai_provider: str
    ai_configured: bool
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
