"""
Knowledge API Routes

Entry points of the knowledge engine:
1. POST /api/knowledge/extract - Run an extraction pass, return counts
2. POST /api/knowledge/context - Build the context bundle for a query
3. GET /api/knowledge/related - Rank knowledge items for a query
4. GET /api/knowledge/experts - Suggest experts for a query
5. GET /api/knowledge/insights - Top skills, contributors and trends
"""

import logging
from collections import Counter
from functools import lru_cache
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from knowhub.config import get_settings
from knowhub.core.prompts import generate_contextual_actions
from knowhub.integrations.sources import (
    adapters_from_snapshot,
    empty_adapters,
    load_snapshot,
)
from knowhub.models.api_responses import (
    ContextRequest,
    ContextResponse,
    ExtractionResponse,
)
from knowhub.models.context import KnowledgeInsights
from knowhub.models.knowledge import ExpertSuggestion, KnowledgeItem
from knowhub.services.context_builder import InvalidUserIdError
from knowhub.services.knowledge_orchestrator import KnowledgeOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


@lru_cache
def get_orchestrator() -> KnowledgeOrchestrator:
    """
    Build the orchestrator once per process.

    Records come from the configured snapshot file; without one the engine
    runs over empty sources.
    """
    settings = get_settings()
    if settings.data_snapshot_path:
        adapters = adapters_from_snapshot(load_snapshot(settings.data_snapshot_path))
    else:
        logger.warning("No data snapshot configured, serving empty sources")
        adapters = empty_adapters()
    return KnowledgeOrchestrator(adapters, settings=settings)


@router.post("/extract", response_model=ExtractionResponse)
async def extract_knowledge(
    orchestrator: KnowledgeOrchestrator = Depends(get_orchestrator),
):
    """
    Run one extraction pass over every source.

    Items are not stored; the response carries counts per source and kind.
    """
    logger.info("Extraction request")
    result = await orchestrator.extract_all()

    return ExtractionResponse(
        status="success",
        total_processed=result.total_processed,
        new_items_found=result.new_items_found,
        processing_time_ms=result.processing_time_ms,
        items_by_source=dict(Counter(item.source.value for item in result.items)),
        items_by_kind=dict(Counter(item.kind.value for item in result.items)),
    )


@router.post("/context", response_model=ContextResponse)
async def build_context(
    request: ContextRequest,
    orchestrator: KnowledgeOrchestrator = Depends(get_orchestrator),
):
    """
    Build the context bundle for a query.

    Example request body:
    ```json
    {
        "user_id": "U001",
        "query": "Who knows Docker?"
    }
    ```
    """
    try:
        logger.info(
            f"Context request: user_id={request.user_id}, query_length={len(request.query)}"
        )
        context = await orchestrator.build_context(
            request.user_id, request.query, previous_queries=request.previous_queries
        )
    except InvalidUserIdError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error in context endpoint: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to build context: {str(e)}",
        )

    return ContextResponse(
        context=context,
        suggested_actions=generate_contextual_actions(context),
    )


@router.get("/related", response_model=List[KnowledgeItem])
async def find_related(
    query: str = Query(..., min_length=1, description="Free-text query"),
    limit: int = Query(10, ge=1, le=100, description="Maximum items to return"),
    orchestrator: KnowledgeOrchestrator = Depends(get_orchestrator),
):
    """Knowledge items ranked against the query."""
    return await orchestrator.find_related(query, limit)


@router.get("/experts", response_model=List[ExpertSuggestion])
async def suggest_experts(
    query: str = Query(..., min_length=1, description="Free-text query"),
    orchestrator: KnowledgeOrchestrator = Depends(get_orchestrator),
):
    """Experts for the skills mentioned in the query."""
    return await orchestrator.suggest_experts(query)


@router.get("/insights", response_model=KnowledgeInsights)
async def knowledge_insights(
    orchestrator: KnowledgeOrchestrator = Depends(get_orchestrator),
):
    return await orchestrator.get_knowledge_insights()
