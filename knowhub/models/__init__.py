# Shared data models
from knowhub.models.records import (
    RosterUser,
    ProfileRecord,
    QuestionRecord,
    QAResponseRecord,
    SurveyQuestion,
    SurveyQuestionType,
    SurveyRecord,
    SurveyResponseRecord,
    StatusNoteRecord,
)
from knowhub.models.knowledge import (
    KnowledgeItem,
    KnowledgeKind,
    KnowledgeSource,
    ExtractionResult,
    KnowledgeGraph,
    GraphNode,
    GraphEdge,
    NodeType,
    EdgeType,
    ExpertSuggestion,
)
from knowhub.models.context import (
    AIContext,
    UserContext,
    OrganizationContext,
    KnowledgeContext,
    ConversationContext,
    QueryType,
    TrendItem,
    TrendDirection,
    RelatedUser,
    ActivityItem,
    ActivityType,
    KnowledgeInsights,
)

__all__ = [
    "RosterUser",
    "ProfileRecord",
    "QuestionRecord",
    "QAResponseRecord",
    "SurveyQuestion",
    "SurveyQuestionType",
    "SurveyRecord",
    "SurveyResponseRecord",
    "StatusNoteRecord",
    "KnowledgeItem",
    "KnowledgeKind",
    "KnowledgeSource",
    "ExtractionResult",
    "KnowledgeGraph",
    "GraphNode",
    "GraphEdge",
    "NodeType",
    "EdgeType",
    "ExpertSuggestion",
    "AIContext",
    "UserContext",
    "OrganizationContext",
    "KnowledgeContext",
    "ConversationContext",
    "QueryType",
    "TrendItem",
    "TrendDirection",
    "RelatedUser",
    "ActivityItem",
    "ActivityType",
    "KnowledgeInsights",
]
