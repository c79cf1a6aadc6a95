"""
Knowledge Models

This module defines the normalized knowledge item, the derived knowledge
graph and the expert suggestion aggregate.
"""

from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple
from enum import Enum
from pydantic import BaseModel, Field, PrivateAttr, field_validator

from knowhub.utils.helpers import ensure_utc, unique_preserving_order


class KnowledgeKind(str, Enum):
    """Kinds of knowledge items."""

    SKILL = "skill"
    EXPERIENCE = "experience"
    TIP = "tip"
    INSIGHT = "insight"
    PREFERENCE = "preference"


class KnowledgeSource(str, Enum):
    """Adapter that produced a knowledge item."""

    PROFILE = "profile"
    QA_RESPONSE = "qa_response"
    SURVEY_RESPONSE = "survey_response"
    STATUS_NOTE = "status_note"


class KnowledgeItem(BaseModel):
    """
    An atomic, attributed fact extracted from one source record.
    """

    id: str = Field(..., description="Deterministic id: source + record id (+ token)")
    kind: KnowledgeKind
    content: str
    source: KnowledgeSource
    record_id: Optional[str] = Field(
        None, description="Id of the source record the item was extracted from"
    )
    user_id: str
    user_name: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    tags: List[str] = Field(
        default_factory=list, description="Unique topic/skill/category labels"
    )
    created_at: datetime
    relevance_score: Optional[float] = Field(
        None, description="Derived per extraction pass or per query"
    )

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value: Any) -> List[str]:
        if not value:
            return []
        if isinstance(value, str):
            value = [value]
        cleaned = [str(tag).strip() for tag in value]
        return unique_preserving_order(tag for tag in cleaned if tag)

    @field_validator("created_at")
    @classmethod
    def _to_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def dedup_key(self) -> Tuple[str, str, str]:
        """Identity used for deduplication: user + kind + content prefix."""
        return (self.user_id, self.kind.value, self.content[:50])

    @property
    def origin(self) -> Tuple[str, str]:
        """Source record behind the item; items without one stand alone."""
        return (self.source.value, self.record_id or self.id)


class ExtractionResult(BaseModel):
    """Outcome of one extraction pass over every source."""

    items: List[KnowledgeItem] = Field(default_factory=list)
    total_processed: int = Field(0, description="Items extracted before dedup")
    new_items_found: int = Field(0, description="Items kept after dedup")
    processing_time_ms: float = 0.0


class NodeType(str, Enum):
    USER = "user"
    SKILL = "skill"
    TOPIC = "topic"


class EdgeType(str, Enum):
    HAS_SKILL = "has_skill"
    MENTIONED = "mentioned"


class GraphNode(BaseModel):
    id: str
    type: NodeType
    label: str
    properties: Dict[str, Any] = Field(default_factory=dict)


class GraphEdge(BaseModel):
    source: str
    target: str
    type: EdgeType
    weight: float


class KnowledgeGraph(BaseModel):
    """
    Derived graph of users, skills and topics.

    Nodes and edges reference each other by id only; the private index gives
    O(1) lookup by node id.
    """

    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    _index: Dict[str, GraphNode] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._index = {node.id: node for node in self.nodes}

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self._index.get(node_id)

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    def nodes_of_type(self, node_type: NodeType) -> List[GraphNode]:
        return [node for node in self.nodes if node.type == node_type]

    def edges_from(self, node_id: str) -> List[GraphEdge]:
        return [edge for edge in self.edges if edge.source == node_id]


class ExpertSuggestion(BaseModel):
    """A user inferred to be an expert in a skill from accumulated evidence."""

    user_id: str
    user_name: str
    skill: str
    confidence: float = Field(..., description="Maximum confidence across evidence")
    evidence_count: int = Field(..., description="Number of supporting items")
    last_activity: datetime

    @property
    def score(self) -> float:
        return self.confidence * self.evidence_count
