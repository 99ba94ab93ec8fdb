"""
Pydantic models for the documents stored in MongoDB.
These models define the shape of every record written by the API.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Literal, Optional
from bson import ObjectId
from pydantic import BaseModel, Field


Role = Literal["user", "agent", "admin"]
RiskTolerance = Literal["low", "medium", "high"]
PolicyCategory = Literal["health", "life", "auto", "home", "travel", "business", "other"]
ClaimStatus = Literal["pending", "reviewing", "approved", "rejected", "paid"]
ResolutionStatus = Literal["resolved", "escalated", "appealed", "closed"]
NotificationType = Literal["renewal", "claim", "payment", "recommendation", "policy_update", "other"]
Priority = Literal["low", "medium", "high", "urgent"]
RelatedModel = Literal["Policy", "Claim", "Recommendation"]
GeneratedBy = Literal["ai", "agent", "system"]
ReportType = Literal["policy", "claim", "analytics", "recommendation", "custom"]
ReportFormat = Literal["pdf", "excel", "csv"]
ReportStatus = Literal["processing", "completed", "failed"]

POLICY_CATEGORIES = ["health", "life", "auto", "home", "travel", "business", "other"]
PRIORITY_RANK = {"urgent": 3, "high": 2, "medium": 1, "low": 0}
DEFAULT_TTL_DAYS = 30


def expires_in(days: int = DEFAULT_TTL_DAYS) -> datetime:
    return datetime.utcnow() + timedelta(days=days)


class MongoModel(BaseModel):
    """Base for stored documents; ObjectId references are kept as-is."""

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        arbitrary_types_allowed = True

    def to_document(self) -> Dict[str, Any]:
        """Dump to a dict ready for insert_one."""
        return self.model_dump()


# ---------------------------------------------------------------- users

class NotificationPreferences(BaseModel):
    email: bool = True
    sms: bool = False
    whatsapp: bool = False


class UserPreferences(BaseModel):
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    policy_categories: List[PolicyCategory] = Field(default_factory=lambda: ["health", "life"])
    risk_tolerance: RiskTolerance = "medium"


class User(MongoModel):
    name: str
    email: str
    phone: str
    password: str = Field(description="bcrypt hash")
    policy_number: str
    role: Role = "user"
    region: str = "National"
    preferences: UserPreferences = Field(default_factory=UserPreferences)
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[datetime] = None


# ---------------------------------------------------------------- policies

class Premium(BaseModel):
    base: float = Field(ge=0, description="Base premium amount")
    factors: Dict[str, float] = Field(default_factory=dict)


class Eligibility(BaseModel):
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    region: List[str] = Field(default_factory=list)
    occupation: List[str] = Field(default_factory=list)
    health_conditions: List[str] = Field(default_factory=list)


class Policy(MongoModel):
    name: str
    description: str
    category: PolicyCategory
    coverage: Dict[str, Any]
    premium: Premium
    eligibility: Eligibility = Field(default_factory=Eligibility)
    benefits: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    documents: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_by: ObjectId


# ---------------------------------------------------------------- claims

class ClaimNote(BaseModel):
    text: str
    created_by: ObjectId
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        arbitrary_types_allowed = True


class ClaimResolution(BaseModel):
    status: ResolutionStatus
    date: datetime = Field(default_factory=datetime.utcnow)
    details: Optional[str] = None


class Claim(MongoModel):
    user: ObjectId
    policy: ObjectId
    claim_number: str
    incident_date: datetime
    description: str
    amount: float
    documents: List[str] = Field(default_factory=list)
    status: ClaimStatus = "pending"
    approved_amount: float = 0
    notes: List[ClaimNote] = Field(default_factory=list)
    resolution: Optional[ClaimResolution] = None


# ---------------------------------------------------------------- recommendations

class RecommendedPolicy(BaseModel):
    policy: ObjectId
    score: int = Field(ge=0, le=100)
    reasons: List[str] = Field(default_factory=list)
    custom_premium: Optional[float] = None

    class Config:
        arbitrary_types_allowed = True


class RecommendationContext(BaseModel):
    user_profile: Dict[str, Any] = Field(default_factory=dict)
    triggers: List[str] = Field(default_factory=list)
    life_events: List[str] = Field(default_factory=list)


class InteractionStatus(BaseModel):
    viewed: bool = False
    clicked: bool = False
    purchased: bool = False


class Recommendation(MongoModel):
    user: ObjectId
    recommendations: List[RecommendedPolicy]
    context: RecommendationContext = Field(default_factory=RecommendationContext)
    interaction_status: InteractionStatus = Field(default_factory=InteractionStatus)
    generated_by: GeneratedBy = "ai"
    expires_at: datetime = Field(default_factory=expires_in)


# ---------------------------------------------------------------- notifications

class RelatedTo(BaseModel):
    model: Optional[RelatedModel] = None
    id: Optional[ObjectId] = None

    class Config:
        arbitrary_types_allowed = True


class ChannelStatus(BaseModel):
    sent: bool = False
    sent_at: Optional[datetime] = None


class AppChannelStatus(ChannelStatus):
    read: bool = False
    read_at: Optional[datetime] = None


class NotificationChannels(BaseModel):
    app: AppChannelStatus = Field(default_factory=AppChannelStatus)
    email: ChannelStatus = Field(default_factory=ChannelStatus)
    sms: ChannelStatus = Field(default_factory=ChannelStatus)
    whatsapp: ChannelStatus = Field(default_factory=ChannelStatus)


class Notification(MongoModel):
    user: ObjectId
    title: str
    message: str
    type: NotificationType
    priority: Priority = "medium"
    related_to: RelatedTo = Field(default_factory=RelatedTo)
    channels: NotificationChannels = Field(default_factory=NotificationChannels)
    expires_at: datetime = Field(default_factory=expires_in)


# ---------------------------------------------------------------- AI interactions

class InteractionMetadata(BaseModel):
    processing_time: Optional[float] = Field(default=None, description="Milliseconds")
    token_count: Optional[int] = None
    confidence_score: Optional[float] = None


class InteractionFeedback(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comments: Optional[str] = None
    helpful: Optional[bool] = None


class AiInteraction(MongoModel):
    user: ObjectId
    session: str
    query: str
    context: Dict[str, Any] = Field(default_factory=dict)
    response: str
    metadata: InteractionMetadata = Field(default_factory=InteractionMetadata)
    feedback: InteractionFeedback = Field(default_factory=InteractionFeedback)
    tags: List[str] = Field(default_factory=list)


# ---------------------------------------------------------------- reports

class Report(MongoModel):
    name: str
    type: ReportType
    format: ReportFormat
    file_url: str
    file_path: str = Field(description="Location of the rendered file on the API host")
    file_size: int
    user: ObjectId
    parameters: Dict[str, Any] = Field(default_factory=dict)
    status: ReportStatus = "processing"
    expires_at: datetime = Field(default_factory=expires_in)
