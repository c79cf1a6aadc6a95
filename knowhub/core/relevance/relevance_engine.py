"""
Relevance Engine

Scores knowledge items against a free-text query:

    score = (content_match + tag_matches + type_affinity) * confidence

- content_match: 3 when the content contains the query
- tag_matches: 2 per tag that is a substring of the query or contains it
- type_affinity: 1 when the query holds a keyword aligned with the item kind
"""

import logging
from typing import List, Optional

from knowhub.config import Settings, get_settings
from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.models.knowledge import KnowledgeItem

logger = logging.getLogger(__name__)

CONTENT_MATCH_SCORE = 3
TAG_MATCH_SCORE = 2
TYPE_AFFINITY_SCORE = 1


class RelevanceEngine:
    """Query-time ranking of knowledge items."""

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary or load_vocabulary(self.settings.vocabulary_path)

    def score(self, query: str, item: KnowledgeItem) -> float:
        query_lower = query.strip().lower()
        if not query_lower:
            return 0.0

        raw = 0
        if query_lower in item.content.lower():
            raw += CONTENT_MATCH_SCORE

        for tag in item.tags:
            tag_lower = tag.lower()
            if tag_lower and (tag_lower in query_lower or query_lower in tag_lower):
                raw += TAG_MATCH_SCORE

        keywords = self.vocabulary.kind_keywords_for(item.kind.value)
        if any(keyword.lower() in query_lower for keyword in keywords):
            raw += TYPE_AFFINITY_SCORE

        return raw * item.confidence

    def find_related(
        self, query: str, items: List[KnowledgeItem], limit: Optional[int] = None
    ) -> List[KnowledgeItem]:
        """
        Rank items for a query.

        Args:
            query: Free-text query; blank queries match nothing
            items: Knowledge item snapshot
            limit: Maximum number of items (defaults to relevant_knowledge_limit)

        Returns:
            Copies of the matching items with relevance_score set to the query
            score, best first (ties: newer first)
        """
        if limit is None:
            limit = self.settings.relevant_knowledge_limit
        if not query or not query.strip() or limit <= 0:
            return []

        scored = []
        for item in items:
            score = self.score(query, item)
            if score > 0:
                scored.append(item.model_copy(update={"relevance_score": score}))

        scored.sort(key=lambda i: (i.relevance_score, i.created_at), reverse=True)

        logger.debug(f"Query matched {len(scored)}/{len(items)} items")
        return scored[:limit]
