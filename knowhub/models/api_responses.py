"""
API Request/Response Models

Pydantic models for the knowledge endpoints.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict

from knowhub.models.context import AIContext


class ContextRequest(BaseModel):
    """Request model for the context endpoint."""

    user_id: str = Field(..., min_length=1, description="Requesting user's id")
    query: str = Field(..., description="Free-text question")
    previous_queries: Optional[List[str]] = Field(
        None, description="Earlier queries in the same conversation"
    )


class ContextResponse(BaseModel):
    """Response model for the context endpoint."""

    context: AIContext = Field(..., description="Assembled context bundle")
    suggested_actions: List[str] = Field(
        default_factory=list, description="Up to three follow-up actions"
    )


class ExtractionResponse(BaseModel):
    """
    Response model for the extraction endpoint.
    Carries counts only; items are re-derived on every query.
    """

    status: str = Field(..., description="Status: success or error")
    total_processed: int = Field(0, description="Items extracted before dedup")
    new_items_found: int = Field(0, description="Items kept after dedup")
    processing_time_ms: float = Field(0.0, description="Wall time of the pass")
    items_by_source: Dict[str, int] = Field(
        default_factory=dict, description="Kept item count per source"
    )
    items_by_kind: Dict[str, int] = Field(
        default_factory=dict, description="Kept item count per kind"
    )
