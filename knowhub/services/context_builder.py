"""
Context Builder Service

Assembles the per-query AIContext handed to the answer generator:
1. User context: roster entry, profile and recent activity of the requester
2. Organization context: headcount, departments, common skills, trends, graph
3. Knowledge context: relevant items, related users, experts, gaps
4. Conversation context: intent, confidence, follow-up suggestions

All four parts are computed concurrently from one extraction snapshot.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from knowhub.config import Settings, get_settings
from knowhub.core.experts import ExpertInference
from knowhub.core.extraction import KnowledgeExtractor, UNKNOWN_USER_NAME
from knowhub.core.graph import KnowledgeGraphBuilder
from knowhub.core.relevance import RelevanceEngine
from knowhub.core.trends import TrendCalculator
from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.integrations.sources.base import SourceAdapters, validate_records
from knowhub.models.context import (
    ActivityItem,
    ActivityType,
    AIContext,
    ConversationContext,
    KnowledgeContext,
    OrganizationContext,
    QueryType,
    RelatedUser,
    UserContext,
)
from knowhub.models.knowledge import KnowledgeGraph, KnowledgeItem, KnowledgeKind
from knowhub.models.records import (
    ProfileRecord,
    QAResponseRecord,
    RosterUser,
    StatusNoteRecord,
    SurveyResponseRecord,
)
from knowhub.utils.helpers import (
    age_in_days,
    ensure_utc,
    flatten_list,
    truncate,
    unique_preserving_order,
    utc_now,
)

logger = logging.getLogger(__name__)

# Intents are tried in this order; the first matching pattern wins
INTENT_ORDER = (
    QueryType.USER_INQUIRY,
    QueryType.SKILL_SEARCH,
    QueryType.KNOWLEDGE_REQUEST,
)

BASE_CONFIDENCE = 0.5
LENGTH_BONUS = 0.1
SHORT_QUERY_LENGTH = 10
LONG_QUERY_LENGTH = 20
KEYWORD_BONUS = 0.05
INTENT_BONUS = {
    QueryType.SKILL_SEARCH: 0.2,
    QueryType.USER_INQUIRY: 0.15,
    QueryType.KNOWLEDGE_REQUEST: 0.1,
    QueryType.GENERAL_QUESTION: 0.0,
}

MAX_FOLLOW_UPS = 3
MAX_RECENT_ACTIVITY = 5
MAX_ACTIVITY_LENGTH = 200

GAP_NO_INFORMATION = "Insufficient information in this area"
GAP_OUTDATED = "Information may be outdated"
GAP_FEW_CONTRIBUTORS = "More contributors are needed for this topic"


class InvalidUserIdError(ValueError):
    """Raised when build_context is called without a usable user id."""

    pass


class ContextBuilder:
    """
    Builds AIContext bundles for incoming queries.
    """

    def __init__(
        self,
        adapters: SourceAdapters,
        extractor: Optional[KnowledgeExtractor] = None,
        vocabulary: Optional[Vocabulary] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.adapters = adapters
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary or load_vocabulary(self.settings.vocabulary_path)
        self._clock = clock or utc_now

        self.extractor = extractor or KnowledgeExtractor(
            adapters, vocabulary=self.vocabulary, settings=self.settings, clock=self._clock
        )
        self.graph_builder = KnowledgeGraphBuilder(self.vocabulary)
        self.relevance = RelevanceEngine(self.vocabulary, self.settings)
        self.experts = ExpertInference(self.vocabulary, self.settings)
        self.trends = TrendCalculator(self.settings)

    async def build_context(
        self,
        user_id: str,
        query: str,
        previous_queries: Optional[List[str]] = None,
        items: Optional[List[KnowledgeItem]] = None,
    ) -> AIContext:
        """
        Build the full context for one query.

        Args:
            user_id: Requesting user's id
            query: Free-text question
            previous_queries: Earlier queries of the conversation, passed through
            items: Pre-extracted snapshot; a fresh extraction runs when omitted

        Returns:
            AIContext (sub-contexts degrade to empty defaults on failure)

        Raises:
            InvalidUserIdError: If user_id is missing or blank
        """
        if not user_id or not str(user_id).strip():
            raise InvalidUserIdError("user_id is required")

        query = query or ""
        logger.info(f"Building context for user {user_id} (query length {len(query)})")

        if items is None:
            extraction = await self.extractor.extract_all()
            items = extraction.items
        roster = await self.load_roster()

        user_context, organization_context, knowledge_context, conversation_context = (
            await asyncio.gather(
                self._guarded(
                    "user context",
                    self.build_user_context(user_id, roster),
                    lambda: UserContext(user_id=user_id, user_name=UNKNOWN_USER_NAME),
                ),
                self._guarded(
                    "organization context",
                    self.build_organization_context(items, roster),
                    OrganizationContext,
                ),
                self._guarded(
                    "knowledge context",
                    self.build_knowledge_context(query, items, roster),
                    KnowledgeContext,
                ),
                self._guarded(
                    "conversation context",
                    self.build_conversation_context(query, previous_queries),
                    lambda: ConversationContext(previous_queries=list(previous_queries or [])),
                ),
            )
        )

        return AIContext(
            user_context=user_context,
            organization_context=organization_context,
            knowledge_context=knowledge_context,
            conversation_context=conversation_context,
        )

    async def build_user_context(
        self, user_id: str, roster: List[RosterUser]
    ) -> UserContext:
        """Roster facts plus the latest profile and recent activity of one user."""
        user = next((u for u in roster if u.id == user_id), None)
        if user is None:
            logger.warning(f"User {user_id} not found in roster")

        raw_profiles, recent_activity = await asyncio.gather(
            self._guarded(
                "user profile", self._fetch_by_user(self.adapters.profiles, user_id), list
            ),
            self.collect_recent_activity(user_id),
        )
        profiles = validate_records(raw_profiles, "profiles", ProfileRecord)
        profile = max(
            profiles, key=lambda p: ensure_utc(p.updated_at or p.created_at), default=None
        )

        return UserContext(
            user_id=user_id,
            user_name=user.name if user else UNKNOWN_USER_NAME,
            department=user.department if user else None,
            role=user.role if user else None,
            expertise=flatten_list(profile.expertise) if profile else [],
            work_style=profile.work_style if profile else None,
            communication_style=profile.communication_style if profile else None,
            availability=profile.availability if profile else None,
            recent_activity=recent_activity,
        )

    async def collect_recent_activity(self, user_id: str) -> List[ActivityItem]:
        """
        Newest Q&A, survey and status-note activity of a user.

        A failing source is skipped; the others still contribute.
        """
        qa_raw, survey_raw, notes_raw = await asyncio.gather(
            self._guarded(
                "Q&A activity", self._fetch_by_user(self.adapters.qa_responses, user_id), list
            ),
            self._guarded(
                "survey activity",
                self._fetch_by_user(self.adapters.survey_responses, user_id),
                list,
            ),
            self._guarded(
                "status note activity",
                self._fetch_by_user(self.adapters.status_notes, user_id),
                list,
            ),
        )

        activity = []
        for response in validate_records(qa_raw, "qa_responses", QAResponseRecord):
            activity.append(
                ActivityItem(
                    type=ActivityType.QA_RESPONSE,
                    content=truncate(
                        f"{response.question.content}: {response.response.strip()}",
                        MAX_ACTIVITY_LENGTH,
                    ),
                    timestamp=response.created_at,
                )
            )
        for response in validate_records(survey_raw, "survey_responses", SurveyResponseRecord):
            activity.append(
                ActivityItem(
                    type=ActivityType.SURVEY_RESPONSE,
                    content=f"Answered survey: {response.survey.title}",
                    timestamp=response.created_at,
                )
            )
        for note in validate_records(notes_raw, "status_notes", StatusNoteRecord):
            text = (note.progress or note.notes or note.condition or "").strip()
            if not text:
                continue
            activity.append(
                ActivityItem(
                    type=ActivityType.STATUS_NOTE,
                    content=truncate(text, MAX_ACTIVITY_LENGTH),
                    timestamp=note.created_at,
                )
            )

        activity.sort(key=lambda a: ensure_utc(a.timestamp), reverse=True)
        return activity[:MAX_RECENT_ACTIVITY]

    async def build_organization_context(
        self, items: List[KnowledgeItem], roster: List[RosterUser]
    ) -> OrganizationContext:
        """
        Headcount, departments, declared skills, trends and the graph.

        Each part is computed on its own; a failing part falls back to empty
        while the rest is kept.
        """
        raw_profiles = await self._guarded(
            "organization profiles",
            asyncio.wait_for(
                self.adapters.profiles.list_all(),
                timeout=self.settings.source_timeout_seconds,
            ),
            list,
        )
        profiles = validate_records(raw_profiles, "profiles", ProfileRecord)

        departments = unique_preserving_order(u.department for u in roster if u.department)

        skill_counts: Counter = Counter()
        for profile in profiles:
            skill_counts.update(flatten_list(profile.expertise))
        common_skills = [
            skill for skill, _ in skill_counts.most_common(self.settings.common_skills_limit)
        ]

        return OrganizationContext(
            total_users=len(roster),
            active_users=len(profiles),
            departments=departments,
            common_skills=common_skills,
            recent_trends=self._attempt(
                "trends", lambda: self.trends.calculate(items, now=self._clock()), list
            ),
            knowledge_graph=self._attempt(
                "knowledge graph",
                lambda: self.graph_builder.build(items, roster),
                KnowledgeGraph,
            ),
        )

    async def build_knowledge_context(
        self, query: str, items: List[KnowledgeItem], roster: List[RosterUser]
    ) -> KnowledgeContext:
        relevant = self._attempt(
            "relevant knowledge",
            lambda: self.relevance.find_related(
                query, items, limit=self.settings.relevant_knowledge_limit
            ),
            list,
        )
        return KnowledgeContext(
            relevant_knowledge=relevant,
            related_users=self._attempt(
                "related users", lambda: self.find_related_users(relevant, roster), list
            ),
            suggested_experts=self._attempt(
                "expert suggestions",
                lambda: self.experts.suggest_experts(query, items, roster),
                list,
            ),
            knowledge_gaps=self._attempt(
                "knowledge gaps", lambda: self.identify_knowledge_gaps(relevant), list
            ),
        )

    async def build_conversation_context(
        self, query: str, previous_queries: Optional[List[str]] = None
    ) -> ConversationContext:
        query_type = self.classify_query(query)
        return ConversationContext(
            previous_queries=list(previous_queries or []),
            query_type=query_type,
            confidence=self.calculate_query_confidence(query, query_type),
            suggested_follow_ups=self.suggest_follow_ups(query_type),
        )

    def classify_query(self, query: str) -> QueryType:
        """First intent whose pattern matches wins; otherwise a general question."""
        for intent in INTENT_ORDER:
            if any(p.search(query) for p in self.vocabulary.intent_regexes(intent.value)):
                return intent
        return QueryType.GENERAL_QUESTION

    def calculate_query_confidence(self, query: str, query_type: QueryType) -> float:
        confidence = BASE_CONFIDENCE
        if len(query) > SHORT_QUERY_LENGTH:
            confidence += LENGTH_BONUS
        if len(query) > LONG_QUERY_LENGTH:
            confidence += LENGTH_BONUS

        confidence += INTENT_BONUS[query_type]

        query_lower = query.lower()
        for keyword in self.vocabulary.confidence_keywords:
            if keyword.lower() in query_lower:
                confidence += KEYWORD_BONUS

        return min(confidence, 1.0)

    def suggest_follow_ups(self, query_type: QueryType) -> List[str]:
        return list(self.vocabulary.follow_ups.get(query_type.value, []))[:MAX_FOLLOW_UPS]

    def identify_knowledge_gaps(
        self, relevant: List[KnowledgeItem], now: Optional[datetime] = None
    ) -> List[str]:
        """
        Flag missing, stale or narrowly sourced knowledge for the query.

        - no relevant items at all
        - fewer than half of the items are newer than the stale horizon
        - fewer than `min_contributors` users behind more than
          `narrow_source_min_items` items
        """
        if not relevant:
            return [GAP_NO_INFORMATION]

        now = now or self._clock()
        gaps = []

        fresh = [
            item
            for item in relevant
            if age_in_days(item.created_at, now) < self.settings.stale_after_days
        ]
        if len(fresh) < len(relevant) * 0.5:
            gaps.append(GAP_OUTDATED)

        contributors = {item.user_id for item in relevant}
        if (
            len(contributors) < self.settings.min_contributors
            and len(relevant) > self.settings.narrow_source_min_items
        ):
            gaps.append(GAP_FEW_CONTRIBUTORS)

        return gaps

    def find_related_users(
        self, relevant: List[KnowledgeItem], roster: Optional[List[RosterUser]] = None
    ) -> List[RelatedUser]:
        """Aggregate query scores per contributing user."""
        roster_by_id = {u.id: u for u in roster or []}
        scores: Dict[str, float] = {}
        names: Dict[str, str] = {}
        skills: Dict[str, List[str]] = {}

        for item in relevant:
            score = item.relevance_score if item.relevance_score is not None else item.confidence
            scores[item.user_id] = scores.get(item.user_id, 0.0) + score
            names.setdefault(item.user_id, item.user_name)
            user_skills = skills.setdefault(item.user_id, [])
            if item.kind == KnowledgeKind.SKILL and item.content not in user_skills:
                user_skills.append(item.content)

        related = []
        for user_id, score in scores.items():
            user = roster_by_id.get(user_id)
            related.append(
                RelatedUser(
                    user_id=user_id,
                    user_name=user.name if user else names[user_id],
                    relevance_score=score,
                    common_skills=skills[user_id],
                    department=user.department if user else None,
                )
            )

        related.sort(key=lambda u: u.relevance_score, reverse=True)
        return related[: self.settings.related_users_limit]

    async def load_roster(self) -> List[RosterUser]:
        """The roster, or an empty list when it cannot be fetched."""
        try:
            raw_users = await asyncio.wait_for(
                self.adapters.roster.list_all_users(),
                timeout=self.settings.source_timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Error loading roster: {e}", exc_info=True)
            return []
        return validate_records(raw_users, "roster", RosterUser)

    async def _fetch_by_user(self, adapter: Any, user_id: str) -> List[Any]:
        return await asyncio.wait_for(
            adapter.list_by_user(user_id),
            timeout=self.settings.source_timeout_seconds,
        )

    async def _guarded(
        self, label: str, operation: Awaitable, default: Callable[[], Any]
    ) -> Any:
        try:
            return await operation
        except Exception as e:
            logger.error(f"Error in {label}: {e}", exc_info=True)
            return default()

    def _attempt(
        self, label: str, operation: Callable[[], Any], default: Callable[[], Any]
    ) -> Any:
        try:
            return operation()
        except Exception as e:
            logger.error(f"Error in {label}: {e}", exc_info=True)
            return default()
