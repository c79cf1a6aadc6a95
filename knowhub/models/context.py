"""
AI Context Models

The bundle assembled per query and handed to the downstream answer generator.
Constructed fresh for every query and discarded after use.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from knowhub.models.knowledge import (
    ExpertSuggestion,
    KnowledgeGraph,
    KnowledgeItem,
)


class QueryType(str, Enum):
    """Classified intent of a query."""

    USER_INQUIRY = "user_inquiry"
    SKILL_SEARCH = "skill_search"
    KNOWLEDGE_REQUEST = "knowledge_request"
    GENERAL_QUESTION = "general_question"


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class ActivityType(str, Enum):
    QA_RESPONSE = "qa_response"
    SURVEY_RESPONSE = "survey_response"
    STATUS_NOTE = "status_note"


class ActivityItem(BaseModel):
    type: ActivityType
    content: str
    timestamp: datetime


class TrendItem(BaseModel):
    topic: str
    frequency: int
    trend: TrendDirection
    timeframe: str = "last 2 months"


class RelatedUser(BaseModel):
    user_id: str
    user_name: str
    relevance_score: float
    common_skills: List[str] = Field(default_factory=list)
    department: Optional[str] = None


class UserContext(BaseModel):
    """Declared profile facts of the requesting user."""

    user_id: str
    user_name: str
    department: Optional[str] = None
    role: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)
    work_style: Optional[str] = None
    communication_style: Optional[str] = None
    availability: Optional[str] = None
    recent_activity: List[ActivityItem] = Field(default_factory=list)


class OrganizationContext(BaseModel):
    total_users: int = 0
    active_users: int = 0
    departments: List[str] = Field(default_factory=list)
    common_skills: List[str] = Field(default_factory=list)
    recent_trends: List[TrendItem] = Field(default_factory=list)
    knowledge_graph: KnowledgeGraph = Field(default_factory=KnowledgeGraph)


class KnowledgeContext(BaseModel):
    relevant_knowledge: List[KnowledgeItem] = Field(default_factory=list)
    related_users: List[RelatedUser] = Field(default_factory=list)
    suggested_experts: List[ExpertSuggestion] = Field(default_factory=list)
    knowledge_gaps: List[str] = Field(default_factory=list)


class ConversationContext(BaseModel):
    previous_queries: List[str] = Field(default_factory=list)
    query_type: QueryType = QueryType.GENERAL_QUESTION
    confidence: float = 0.5
    suggested_follow_ups: List[str] = Field(default_factory=list)


class AIContext(BaseModel):
    user_context: UserContext
    organization_context: OrganizationContext
    knowledge_context: KnowledgeContext
    conversation_context: ConversationContext


class KnowledgeInsights(BaseModel):
    """Organization-wide ranking summary of the current knowledge snapshot."""

    total_items: int = 0
    top_skills: List[str] = Field(default_factory=list)
    active_contributors: List[str] = Field(default_factory=list)
    recent_trends: List[TrendItem] = Field(default_factory=list)
