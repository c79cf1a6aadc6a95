"""
Knowledge Orchestrator Service

Facade over the knowledge engine for the two entry points and their helpers:
1. Run an extraction pass over every source
2. Build the context bundle for a query
3. Rank related knowledge and suggest experts for a query
4. Summarize the knowledge snapshot (top skills, contributors, trends)
5. Render the answer prompt for the downstream generator
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Callable, List, Optional

from langchain_core.messages import BaseMessage

from knowhub.config import Settings, get_settings
from knowhub.core.extraction import KnowledgeExtractor
from knowhub.core.prompts import build_answer_messages, generate_contextual_actions
from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.integrations.sources.base import SourceAdapters
from knowhub.models.context import AIContext, KnowledgeInsights
from knowhub.models.knowledge import (
    ExpertSuggestion,
    ExtractionResult,
    KnowledgeItem,
    NodeType,
)
from knowhub.services.context_builder import ContextBuilder
from knowhub.utils.helpers import utc_now

logger = logging.getLogger(__name__)

TOP_SKILLS_LIMIT = 10
TOP_CONTRIBUTORS_LIMIT = 5


class KnowledgeOrchestrator:
    """
    Wires the extractor and context builder to one set of source adapters.
    """

    def __init__(
        self,
        adapters: SourceAdapters,
        vocabulary: Optional[Vocabulary] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize orchestrator with all required services."""
        self.adapters = adapters
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary or load_vocabulary(self.settings.vocabulary_path)
        self._clock = clock or utc_now

        self.extractor = KnowledgeExtractor(
            adapters, vocabulary=self.vocabulary, settings=self.settings, clock=self._clock
        )
        self.context_builder = ContextBuilder(
            adapters,
            extractor=self.extractor,
            vocabulary=self.vocabulary,
            settings=self.settings,
            clock=self._clock,
        )

    async def extract_all(self) -> ExtractionResult:
        """Run one extraction pass over every source."""
        return await self.extractor.extract_all()

    async def build_context(
        self,
        user_id: str,
        query: str,
        previous_queries: Optional[List[str]] = None,
    ) -> AIContext:
        """
        Build the context bundle for a query.

        Raises:
            InvalidUserIdError: If user_id is missing or blank
        """
        return await self.context_builder.build_context(
            user_id, query, previous_queries=previous_queries
        )

    async def find_related(
        self, query: str, limit: Optional[int] = None
    ) -> List[KnowledgeItem]:
        """Rank the current knowledge snapshot against a query."""
        extraction = await self.extractor.extract_all()
        return self.context_builder.relevance.find_related(query, extraction.items, limit)

    async def suggest_experts(self, query: str) -> List[ExpertSuggestion]:
        """Suggest experts for the skills mentioned in a query."""
        extraction = await self.extractor.extract_all()
        roster = await self.context_builder.load_roster()
        return self.context_builder.experts.suggest_experts(query, extraction.items, roster)

    async def get_knowledge_insights(self) -> KnowledgeInsights:
        """
        Summarize the current snapshot: most mentioned skills, most active
        contributors and recent trends.
        """
        try:
            extraction = await self.extractor.extract_all()
            items = extraction.items
            roster = await self.context_builder.load_roster()

            graph = self.context_builder.graph_builder.build(items, roster)
            skill_nodes = sorted(
                graph.nodes_of_type(NodeType.SKILL),
                key=lambda node: node.properties.get("mention_count", 0),
                reverse=True,
            )

            contributor_counts = Counter(item.user_name for item in items)

            return KnowledgeInsights(
                total_items=len(items),
                top_skills=[node.label for node in skill_nodes[:TOP_SKILLS_LIMIT]],
                active_contributors=[
                    name for name, _ in contributor_counts.most_common(TOP_CONTRIBUTORS_LIMIT)
                ],
                recent_trends=self.context_builder.trends.calculate(items, now=self._clock()),
            )

        except Exception as e:
            logger.error(f"Error getting knowledge insights: {e}", exc_info=True)
            return KnowledgeInsights()

    async def prepare_answer_messages(
        self,
        user_id: str,
        query: str,
        previous_queries: Optional[List[str]] = None,
    ) -> List[BaseMessage]:
        """Build the context for a query and render it as chat messages."""
        context = await self.build_context(user_id, query, previous_queries)
        return build_answer_messages(context, query)

    @staticmethod
    def suggested_actions(context: AIContext) -> List[str]:
        return generate_contextual_actions(context)
