"""
Tests for the Context Builder

Tests intent classification, confidence, gaps, related users and the
assembled context bundle.
"""

from datetime import timedelta

import pytest

from knowhub.core.extraction import UNKNOWN_USER_NAME
from knowhub.models.context import ActivityType, OrganizationContext, QueryType
from knowhub.models.knowledge import KnowledgeKind
from knowhub.services.context_builder import (
    GAP_FEW_CONTRIBUTORS,
    GAP_NO_INFORMATION,
    GAP_OUTDATED,
    ContextBuilder,
    InvalidUserIdError,
)



class FailingAdapter:
    async def list_all(self):
        raise ConnectionError("source unavailable")

    async def list_by_user(self, user_id):
        raise ConnectionError("source unavailable")


@pytest.fixture
def builder(adapters, vocabulary, settings, clock):
    return ContextBuilder(adapters, vocabulary=vocabulary, settings=settings, clock=clock)


@pytest.mark.parametrize(
    "query,expected",
    [
        ("Who knows Docker?", QueryType.SKILL_SEARCH),
        ("We need someone for the data migration", QueryType.SKILL_SEARCH),
        ("Pythonが得意な人は？", QueryType.SKILL_SEARCH),
        ("Tell me about Alice", QueryType.USER_INQUIRY),
        ("What are Bob's skills?", QueryType.USER_INQUIRY),
        ("田中さんのスキルは？", QueryType.USER_INQUIRY),
        ("How do I deploy the frontend?", QueryType.KNOWLEDGE_REQUEST),
        ("デプロイのやり方は？", QueryType.KNOWLEDGE_REQUEST),
        ("Lunch plans?", QueryType.GENERAL_QUESTION),
    ],
)
def test_classify_query(builder, query, expected):
    assert builder.classify_query(query) == expected


def test_user_inquiry_checked_before_skill_search(builder):
    assert builder.classify_query("Tell me about who knows Docker") == QueryType.USER_INQUIRY


def test_query_confidence(builder):
    assert builder.calculate_query_confidence("hi", QueryType.GENERAL_QUESTION) == pytest.approx(0.5)
    assert builder.calculate_query_confidence(
        "Who knows Docker?", QueryType.SKILL_SEARCH
    ) == pytest.approx(0.8)
    assert builder.calculate_query_confidence(
        "Tell me about Alice's expertise and experience", QueryType.USER_INQUIRY
    ) == pytest.approx(1.0)


def test_follow_ups(builder):
    follow_ups = builder.suggest_follow_ups(QueryType.KNOWLEDGE_REQUEST)
    assert len(follow_ups) == 3


def test_gap_no_information(builder):
    assert builder.identify_knowledge_gaps([]) == [GAP_NO_INFORMATION]


def test_gap_outdated(builder, make_item, now):
    items = [
        make_item(item_id="old1", created_at=now - timedelta(days=200)),
        make_item(item_id="old2", created_at=now - timedelta(days=300)),
        make_item(item_id="new", created_at=now - timedelta(days=1)),
    ]
    assert builder.identify_knowledge_gaps(items, now=now) == [GAP_OUTDATED]


def test_gap_few_contributors(builder, make_item, now):
    items = [make_item(item_id=f"i{n}", user_id="U1" if n % 2 else "U2") for n in range(6)]
    assert builder.identify_knowledge_gaps(items, now=now) == [GAP_FEW_CONTRIBUTORS]


def test_no_gap_for_small_fresh_result(builder, make_item, now):
    assert builder.identify_knowledge_gaps([make_item()], now=now) == []


def test_find_related_users(builder, make_item, roster):
    items = [
        make_item(item_id="a", kind=KnowledgeKind.SKILL, content="Docker", confidence=0.6).model_copy(
            update={"relevance_score": 1.2}
        ),
        make_item(item_id="b", content="note", confidence=0.7).model_copy(
            update={"relevance_score": 1.4}
        ),
        make_item(item_id="c", user_id="U2", user_name="Bob", confidence=0.9),
    ]

    related = builder.find_related_users(items, roster)

    assert [u.user_id for u in related] == ["U1", "U2"]
    assert related[0].relevance_score == pytest.approx(2.6)
    assert related[0].common_skills == ["Docker"]
    assert related[0].department == "Engineering"
    # Without a query score the item's confidence counts
    assert related[1].relevance_score == pytest.approx(0.9)


@pytest.mark.asyncio
async def test_build_context_for_skill_search(builder):
    context = await builder.build_context("U1", "Who knows Docker?", previous_queries=["hello"])

    user = context.user_context
    assert user.user_name == "Alice"
    assert user.department == "Engineering"
    assert user.expertise == ["React"]
    assert user.work_style == "Deep focus in the mornings"
    assert [a.type for a in user.recent_activity] == [ActivityType.QA_RESPONSE]

    org = context.organization_context
    assert org.total_users == 2
    assert org.active_users == 2
    assert org.departments == ["Engineering", "Design"]
    assert org.common_skills == ["React", "Figma", "UX research"]
    assert org.knowledge_graph.has_node("user_U1")
    assert org.knowledge_graph.has_node("skill_docker")

    knowledge = context.knowledge_context
    assert {i.id for i in knowledge.relevant_knowledge} == {"qa_Q1", "qa_skill_Q1_docker"}
    assert [u.user_name for u in knowledge.related_users] == ["Alice"]
    assert knowledge.suggested_experts == []
    assert knowledge.knowledge_gaps == []

    conversation = context.conversation_context
    assert conversation.query_type == QueryType.SKILL_SEARCH
    assert conversation.confidence == pytest.approx(0.8)
    assert conversation.previous_queries == ["hello"]
    assert len(conversation.suggested_follow_ups) == 3


@pytest.mark.asyncio
async def test_build_context_zero_match_reports_gap(builder):
    context = await builder.build_context("U2", "What is the cafeteria menu?")

    assert context.knowledge_context.relevant_knowledge == []
    assert context.knowledge_context.knowledge_gaps == [GAP_NO_INFORMATION]
    assert context.conversation_context.query_type == QueryType.GENERAL_QUESTION


@pytest.mark.asyncio
async def test_recent_activity_newest_first(builder):
    activity = await builder.collect_recent_activity("U2")

    assert [a.type for a in activity] == [ActivityType.STATUS_NOTE, ActivityType.SURVEY_RESPONSE]
    assert activity[0].content == "Finished the onboarding flow redesign in Figma"
    assert activity[1].content == "Answered survey: Team Tools Survey"


@pytest.mark.asyncio
async def test_unknown_user_gets_fallback_context(builder):
    context = await builder.build_context("U9", "Who knows Docker?")

    assert context.user_context.user_id == "U9"
    assert context.user_context.user_name == UNKNOWN_USER_NAME
    assert context.user_context.expertise == []
    assert context.user_context.recent_activity == []


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", ["", "   ", None])
async def test_invalid_user_id_raises(builder, user_id):
    with pytest.raises(InvalidUserIdError):
        await builder.build_context(user_id, "Who knows Docker?")


@pytest.mark.asyncio
async def test_failing_sub_context_degrades(builder, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(builder, "build_organization_context", broken)

    context = await builder.build_context("U1", "Who knows Docker?")

    assert context.organization_context == OrganizationContext()
    assert context.user_context.user_name == "Alice"
    assert context.knowledge_context.relevant_knowledge


@pytest.mark.asyncio
async def test_failing_profiles_keep_rest_of_organization(builder, adapters):
    adapters.profiles = FailingAdapter()

    context = await builder.build_context("U1", "Who knows Docker?")

    org = context.organization_context
    assert org.total_users == 2
    assert org.departments == ["Engineering", "Design"]
    assert org.active_users == 0
    assert org.common_skills == []
    assert org.knowledge_graph.has_node("user_U1")
    assert org.knowledge_graph.has_node("skill_docker")

    user = context.user_context
    assert user.user_name == "Alice"
    assert user.department == "Engineering"
    assert user.expertise == []
    assert [a.type for a in user.recent_activity] == [ActivityType.QA_RESPONSE]


@pytest.mark.asyncio
async def test_failing_activity_source_keeps_user_details(builder, adapters):
    adapters.status_notes = FailingAdapter()

    context = await builder.build_context("U2", "Who knows Figma?")

    user = context.user_context
    assert user.user_name == "Bob"
    assert user.role == "Designer"
    assert user.expertise == ["Figma", "UX research"]
    assert [a.type for a in user.recent_activity] == [ActivityType.SURVEY_RESPONSE]


@pytest.mark.asyncio
async def test_failing_expert_inference_keeps_relevant_knowledge(builder, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(builder.experts, "suggest_experts", broken)

    context = await builder.build_context("U1", "Who knows Docker?")

    knowledge = context.knowledge_context
    assert knowledge.suggested_experts == []
    assert {i.id for i in knowledge.relevant_knowledge} == {"qa_Q1", "qa_skill_Q1_docker"}
    assert [u.user_name for u in knowledge.related_users] == ["Alice"]


@pytest.mark.asyncio
async def test_uses_provided_snapshot(builder, make_item, monkeypatch):
    async def no_extraction():
        raise AssertionError("extraction should not run")

    monkeypatch.setattr(builder.extractor, "extract_all", no_extraction)
    items = [make_item(item_id="only", tags=["docker"])]

    context = await builder.build_context("U1", "docker", items=items)

    assert [i.id for i in context.knowledge_context.relevant_knowledge] == ["only"]
