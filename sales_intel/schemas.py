import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, get_args

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


Category = Literal[
    "prospecting", "qualification", "presentation", "negotiation", "closing", "follow-up", "support"
]
ActivityType = Literal[
    "call", "meeting", "email", "voice-note", "demo", "proposal", "negotiation", "follow-up-call", "site-visit"
]
ActivityStatus = Literal["pending", "completed", "follow-up", "cancelled"]
Priority = Literal["low", "medium", "high", "urgent"]
Grade = Literal["A", "B", "C", "D", "F"]
PerformanceLevel = Literal["Beginner", "Intermediate", "Advanced", "Expert", "Master"]

CATEGORIES: List[str] = list(get_args(Category))


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are stored as UTC"""
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CamelModel(BaseModel):
    """Base for records stored as camelCase documents"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CustomerInfo(CamelModel):
    name: Optional[str] = Field(None, description="Customer contact name")
    company: Optional[str] = Field(None, description="Customer company")
    position: Optional[str] = Field(None, description="Job title")
    email: Optional[str] = Field(None, description="Contact email")
    phone: Optional[str] = Field(None, description="Contact phone")


class DealInfo(CamelModel):
    value: Optional[str] = Field(None, description="Deal value as spoken (e.g. '500,000 บาท')")
    status: Optional[str] = Field(None, description="Current deal status")
    probability: Optional[float] = Field(None, ge=0, le=100, description="Win probability (0-100)")
    expected_close_date: Optional[str] = Field(None, description="Expected close date if mentioned")


class QualityMetrics(CamelModel):
    duration: float = Field(default=0, ge=0, description="Conversation length in seconds")
    engagement: float = Field(default=5, ge=0, le=10, description="Customer engagement (0-10)")
    outcomes: float = Field(default=5, ge=0, le=10, description="Concrete outcomes (0-10)")
    follow_up_completed: bool = Field(default=False, description="Follow-up was carried out")


class ExtractedData(CamelModel):
    """Structured fields pulled out of a transcript"""
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    deal_info: DealInfo = Field(default_factory=DealInfo)
    action_items: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)
    pain_points: List[str] = Field(default_factory=list)
    decision_makers: List[str] = Field(default_factory=list)
    competitors: List[str] = Field(default_factory=list)
    timeline: str = Field(default="")
    budget: str = Field(default="")


class AIClassification(CamelModel):
    suggested_category: Optional[Category] = Field(None, description="Category suggested by the classifier")
    suggested_sub_category: Optional[str] = Field(None, description="Sub-category suggested by the classifier")
    confidence: float = Field(default=0, ge=0, le=1)
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    human_confirmed: bool = Field(default=False)
    reviewed_by: Optional[str] = Field(None, description="Reviewer user id")
    reviewed_at: Optional[datetime] = Field(None)

    @field_validator("reviewed_at")
    @classmethod
    def utc_reviewed_at(cls, value):
        return _as_utc(value)


class Activity(CamelModel):
    """A recorded sales interaction, as read into the scoring core"""

    id: Optional[str] = Field(None, alias="_id")
    title: str = Field(default="")
    description: Optional[str] = Field(None)
    customer_name: Optional[str] = Field(None)
    contact_info: Optional[str] = Field(None)
    activity_type: Optional[ActivityType] = Field(None)
    status: ActivityStatus = Field(default="pending")
    priority: Priority = Field(default="medium")

    # Transcription
    transcript: Optional[str] = Field(
        None, validation_alias=AliasChoices("transcript", "transcription"), description="Raw transcribed content"
    )
    transcription_language: str = Field(default="th")
    transcription_confidence: Optional[float] = Field(None, ge=0, le=1)
    transcription_duration: Optional[float] = Field(None, ge=0, description="Audio length in seconds")
    is_enhanced: bool = Field(default=False)

    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    deal_info: DealInfo = Field(default_factory=DealInfo)

    # Categorization and scoring
    category: Category = Field(default="prospecting")
    sub_category: Optional[str] = Field(None)
    activity_score: float = Field(default=0, ge=0, le=100)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    ai_classification: AIClassification = Field(default_factory=AIClassification)

    action_items: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    assigned_to: Optional[str] = Field(None)
    due_date: Optional[datetime] = Field(None)
    completed_date: Optional[datetime] = Field(None)
    estimated_value: Optional[float] = Field(None, ge=0)
    actual_value: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None)
    created_by: Optional[str] = Field(None)
    created_at: Optional[datetime] = Field(None)
    updated_at: Optional[datetime] = Field(None)

    @model_validator(mode="before")
    @classmethod
    def drop_null_sub_objects(cls, data: Any) -> Any:
        # null sub-objects fall back to their defaults instead of failing validation
        if isinstance(data, dict):
            nullable_defaults = {
                "customer_info", "customerInfo", "deal_info", "dealInfo",
                "quality_metrics", "qualityMetrics", "ai_classification", "aiClassification",
                "action_items", "actionItems", "tags",
            }
            data = {k: v for k, v in data.items() if not (k in nullable_defaults and v is None)}
        return data

    @field_validator("due_date", "completed_date", "created_at", "updated_at")
    @classmethod
    def utc_dates(cls, value):
        return _as_utc(value)

    @classmethod
    def normalize(cls, data: Any) -> "Activity":
        """Build a fully-populated Activity from a stored document or an existing Activity"""
        if isinstance(data, Activity):
            return data.model_copy(deep=True)
        return cls.model_validate(data)

    @property
    def has_quality_metrics(self) -> bool:
        """True if quality metrics came from the record rather than defaults"""
        return "quality_metrics" in self.model_fields_set

    @property
    def is_classified(self) -> bool:
        return self.ai_classification.suggested_category is not None

    @property
    def is_overdue(self) -> bool:
        if not self.due_date or self.status in ("completed", "cancelled"):
            return False
        return datetime.now(timezone.utc) > self.due_date

    @property
    def days_until_due(self) -> Optional[int]:
        if not self.due_date:
            return None
        remaining = self.due_date - datetime.now(timezone.utc)
        return math.ceil(remaining.total_seconds() / 86400)


class ClassificationResult(CamelModel):
    category: Category = Field(..., description="Sales funnel stage")
    sub_category: str = Field(default="general")
    confidence: float = Field(..., ge=0, le=1)
    extracted_data: ExtractedData = Field(default_factory=ExtractedData)
    reasoning: str = Field(default="")
    quality_score: float = Field(..., ge=0, le=100)


class ClassificationOutcome(BaseModel):
    """Which path produced a classification, and why the AI path was left"""
    path: Literal["ai", "rule"]
    result: ClassificationResult
    fallback_reason: Optional[str] = None


class ScoreBreakdown(CamelModel):
    duration: float = Field(..., ge=0, le=35)
    engagement: float = Field(..., ge=0, le=25)
    outcomes: float = Field(..., ge=0, le=25)
    follow_up: float = Field(..., ge=0, le=15)
    category_bonus: float = Field(..., ge=0, le=25)


class ActivityScore(CamelModel):
    total_score: float = Field(..., ge=0, le=100)
    breakdown: ScoreBreakdown
    grade: Grade
    recommendations: List[str] = Field(default_factory=list)


class CategoryScore(CamelModel):
    score: float = 0
    count: int = 0
    average: float = 0


class PerformanceTrends(CamelModel):
    last_7_days: float = Field(default=0, alias="last7Days")
    last_30_days: float = Field(default=0, alias="last30Days")
    growth: float = Field(default=0)


class UserPerformanceScore(CamelModel):
    user_id: str = Field(default="")
    total_score: float = Field(default=0)
    average_activity_score: float = Field(default=0)
    activity_count: int = Field(default=0)
    category_scores: Dict[str, CategoryScore] = Field(default_factory=dict)
    trends: PerformanceTrends = Field(default_factory=PerformanceTrends)
    rank: int = Field(default=0, description="Cross-user rank, assigned by the caller")
    level: PerformanceLevel = Field(default="Beginner")


class FieldSuggestion(CamelModel):
    field: str
    value: str
    confidence: float = Field(..., ge=0, le=1)
    reason: str


class ActivityDraft(CamelModel):
    """Pre-filled activity form built from a voice transcript"""
    title: str
    description: str
    customer_name: str = ""
    contact_info: str = ""
    activity_type: ActivityType = "voice-note"
    priority: Priority = "medium"
    category: Category = "prospecting"
    action_items: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    estimated_value: Optional[int] = None
    notes: str = ""
    customer_info: CustomerInfo = Field(default_factory=CustomerInfo)
    deal_info: DealInfo = Field(default_factory=DealInfo)
    confidence: float = 0.75
    suggestions: List[FieldSuggestion] = Field(default_factory=list)


class ScoredActivity(CamelModel):
    """Flattened scoring record for report output"""
    activity_id: Optional[str] = None
    title: str = ""
    customer: Optional[str] = None
    category: Category
    sub_category: Optional[str] = None
    total_score: float
    grade: Grade
    breakdown: ScoreBreakdown
    recommendations: List[str] = Field(default_factory=list)
    scored_at: datetime
