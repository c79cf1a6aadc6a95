"""
Tests for Knowledge Extraction

Tests per-source extraction rules, deduplication, relevance scoring and
degradation when sources fail.
"""

import asyncio
from datetime import timedelta

import pytest

from knowhub.config import Settings
from knowhub.core.extraction import KnowledgeExtractor, UNKNOWN_USER_NAME
from knowhub.integrations.sources import (
    InMemoryRosterProvider,
    InMemorySourceAdapter,
    adapters_from_snapshot,
)
from knowhub.models.knowledge import KnowledgeKind, KnowledgeSource


class FailingAdapter:
    async def list_all(self):
        raise ConnectionError("source unavailable")

    async def list_by_user(self, user_id):
        raise ConnectionError("source unavailable")


class SlowAdapter:
    async def list_all(self):
        await asyncio.sleep(1)
        return []

    async def list_by_user(self, user_id):
        return []


@pytest.fixture
def extractor(adapters, vocabulary, settings, clock):
    return KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)


def by_id(items):
    return {item.id: item for item in items}


@pytest.mark.asyncio
async def test_extract_all_counts(extractor):
    result = await extractor.extract_all()

    assert result.total_processed == 9
    assert result.new_items_found == 9
    assert len(result.items) == 9
    assert result.processing_time_ms >= 0


@pytest.mark.asyncio
async def test_profile_items(extractor):
    items = by_id(await extractor.extract_from_profiles({"U1": "Alice", "U2": "Bob"}))

    skill = items["profile_skill_P1_React"]
    assert skill.kind == KnowledgeKind.SKILL
    assert skill.content == "React"
    assert skill.confidence == 0.9
    assert skill.tags == ["skill", "expertise", "react"]
    assert skill.user_name == "Alice"

    work_style = items["profile_workstyle_P1"]
    assert work_style.kind == KnowledgeKind.PREFERENCE
    assert work_style.content == "Work style: Deep focus in the mornings"
    assert work_style.confidence == 0.8

    assert items["profile_communication_P1"].content == "Communication style: Async first"
    assert "profile_workstyle_P2" not in items
    assert "profile_skill_P2_UX research" in items


@pytest.mark.asyncio
async def test_qa_items_with_skill_tokens(extractor):
    items = by_id(await extractor.extract_from_qa_responses({"U1": "Alice"}))

    assert set(items) == {"qa_Q1", "qa_skill_Q1_docker"}

    answer = items["qa_Q1"]
    assert answer.kind == KnowledgeKind.TIP
    assert answer.source == KnowledgeSource.QA_RESPONSE
    assert answer.confidence == 0.7
    assert answer.content == (
        "How do you set up local environments?\n"
        "Answer: I use Docker for local development every day."
    )
    assert answer.tags == ["technology", "qa_response", "tools", "docker"]

    token = items["qa_skill_Q1_docker"]
    assert token.kind == KnowledgeKind.SKILL
    assert token.content == "docker"
    assert token.confidence == 0.6
    assert token.tags == ["skill", "extracted", "docker"]


@pytest.mark.asyncio
async def test_qa_category_kinds(vocabulary, settings, clock, now):
    def qa(record_id, category, response="Reading docs every morning helps"):
        return {
            "id": record_id,
            "user_id": "U1",
            "question": {"id": "q", "content": "Question?", "category": category},
            "response": response,
            "created_at": now,
        }

    adapters = adapters_from_snapshot(
        {
            "qa_responses": [
                qa("A", "learning"),
                qa("B", "productivity"),
                qa("C", "hobbies"),
                qa("D", "learning", response="   "),
            ]
        }
    )
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    items = by_id(await extractor.extract_from_qa_responses())

    assert items["qa_A"].kind == KnowledgeKind.INSIGHT
    assert "growth" in items["qa_A"].tags
    assert items["qa_B"].kind == KnowledgeKind.TIP
    assert items["qa_C"].kind == KnowledgeKind.EXPERIENCE
    assert items["qa_C"].tags == ["hobbies", "qa_response"]
    assert "qa_D" not in items


@pytest.mark.asyncio
async def test_survey_only_long_text_answers(extractor):
    items = await extractor.extract_from_survey_responses({"U2": "Bob"})

    assert len(items) == 1
    item = items[0]
    assert item.id == "survey_S1_q1"
    assert item.kind == KnowledgeKind.INSIGHT
    assert item.confidence == 0.6
    assert item.content == "Which tool helps you most?\nAnswer: Figma for quick prototyping"
    assert item.tags == ["survey_response", "team_tools_survey"]


@pytest.mark.asyncio
async def test_survey_short_answer_ignored(vocabulary, settings, clock, now):
    adapters = adapters_from_snapshot(
        {
            "survey_responses": [
                {
                    "id": "S2",
                    "user_id": "U1",
                    "survey": {
                        "id": "SV",
                        "title": "Pulse",
                        "questions": [{"id": "q1", "type": "text", "question": "How?"}],
                    },
                    "responses": {"q1": "Fine thanks", "unknown": "Not a question of this survey"},
                    "created_at": now,
                }
            ]
        }
    )
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    # "Fine thanks" is 11 characters, just over the limit
    items = await extractor.extract_from_survey_responses()
    assert [i.id for i in items] == ["survey_S2_q1"]


@pytest.mark.asyncio
async def test_status_note_items(extractor):
    items = by_id(await extractor.extract_from_status_notes({"U2": "Bob"}))

    assert set(items) == {"status_progress_N1"}
    progress = items["status_progress_N1"]
    assert progress.kind == KnowledgeKind.EXPERIENCE
    assert progress.confidence == 0.5
    assert progress.content == "Progress: Finished the onboarding flow redesign in Figma"
    assert progress.tags == ["status_note", "progress", "figma"]


@pytest.mark.asyncio
async def test_status_notes_text_becomes_insight(vocabulary, settings, clock, now):
    adapters = adapters_from_snapshot(
        {
            "status_notes": [
                {
                    "id": "N2",
                    "user_id": "U1",
                    "notes": "Pairing sessions made the review queue much shorter",
                    "created_at": now,
                }
            ]
        }
    )
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    items = await extractor.extract_from_status_notes()

    assert [i.id for i in items] == ["status_notes_N2"]
    assert items[0].kind == KnowledgeKind.INSIGHT
    assert items[0].confidence == 0.4
    assert items[0].tags == ["status_note", "notes"]


@pytest.mark.asyncio
async def test_extraction_is_idempotent(extractor):
    first = await extractor.extract_all()
    second = await extractor.extract_all()

    assert [i.id for i in first.items] == [i.id for i in second.items]
    assert first.new_items_found == second.new_items_found
    assert first.total_processed == second.total_processed


@pytest.mark.asyncio
async def test_dedup_keeps_first_occurrence(snapshot_sections, vocabulary, settings, clock):
    duplicate = dict(snapshot_sections["profiles"][0], id="P1-copy")
    snapshot_sections["profiles"].append(duplicate)
    extractor = KnowledgeExtractor(
        adapters_from_snapshot(snapshot_sections),
        vocabulary=vocabulary,
        settings=settings,
        clock=clock,
    )

    result = await extractor.extract_all()

    ids = [i.id for i in result.items]
    assert result.total_processed == 12
    assert result.new_items_found == 9
    assert "profile_skill_P1_React" in ids
    assert "profile_skill_P1-copy_React" not in ids

    keys = [i.dedup_key for i in result.items]
    assert len(keys) == len(set(keys))


def test_deduplicate_uses_content_prefix(extractor, make_item):
    long_a = "x" * 50 + " first ending"
    long_b = "x" * 50 + " second ending"
    items = [
        make_item(item_id="a", content=long_a),
        make_item(item_id="b", content=long_b),
        make_item(item_id="c", content=long_a, kind=KnowledgeKind.INSIGHT),
        make_item(item_id="d", content=long_a, user_id="U2"),
    ]

    assert [i.id for i in extractor.deduplicate(items)] == ["a", "c", "d"]


def test_deduplicate_does_not_confuse_field_boundaries(extractor, make_item):
    items = [
        make_item(item_id="a", user_id="A_skill", kind=KnowledgeKind.TIP, content="docs"),
        make_item(item_id="b", user_id="A", kind=KnowledgeKind.SKILL, content="tip_docs"),
    ]

    assert [i.id for i in extractor.deduplicate(items)] == ["a", "b"]


@pytest.mark.asyncio
async def test_items_remember_source_record(extractor):
    result = await extractor.extract_all()
    items = by_id(result.items)

    assert items["qa_Q1"].record_id == "Q1"
    assert items["qa_skill_Q1_docker"].origin == items["qa_Q1"].origin
    assert items["profile_skill_P1_React"].record_id == "P1"


def test_relevance_score_enhancement(extractor, make_item, now):
    fresh = make_item(item_id="fresh", confidence=0.9, created_at=now)
    old = make_item(item_id="old", confidence=0.9, created_at=now - timedelta(days=400))
    half = make_item(item_id="half", confidence=0.5, created_at=now - timedelta(days=182.5))
    future = make_item(item_id="future", confidence=0.5, created_at=now + timedelta(days=3))

    scored = by_id(extractor.enhance_with_relevance_scores([fresh, old, half, future], now=now))

    assert scored["fresh"].relevance_score == pytest.approx(0.93)
    assert scored["old"].relevance_score == pytest.approx(0.63)
    assert scored["half"].relevance_score == pytest.approx(0.5 * 0.7 + 0.5 * 0.3)
    assert scored["future"].relevance_score == pytest.approx(0.65)
    assert fresh.relevance_score is None


@pytest.mark.asyncio
async def test_unknown_user_fallback(vocabulary, settings, clock, now):
    adapters = adapters_from_snapshot(
        {
            "roster": [{"id": "U1", "name": "Alice"}],
            "profiles": [
                {"id": "P9", "user_id": "U9", "expertise": ["Go"], "created_at": now}
            ],
        }
    )
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert [i.user_name for i in result.items] == [UNKNOWN_USER_NAME]


@pytest.mark.asyncio
async def test_malformed_records_skipped(snapshot_sections, vocabulary, settings, clock):
    snapshot_sections["profiles"].append({"id": "BROKEN", "user_id": "U1"})
    snapshot_sections["qa_responses"].append({"id": "BROKEN", "response": "no question"})
    extractor = KnowledgeExtractor(
        adapters_from_snapshot(snapshot_sections),
        vocabulary=vocabulary,
        settings=settings,
        clock=clock,
    )

    result = await extractor.extract_all()

    assert result.new_items_found == 9


@pytest.mark.asyncio
async def test_failing_source_contributes_nothing(adapters, vocabulary, settings, clock):
    adapters.qa_responses = FailingAdapter()
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert result.new_items_found == 7
    assert all(i.source != KnowledgeSource.QA_RESPONSE for i in result.items)


@pytest.mark.asyncio
async def test_slow_source_times_out(adapters, vocabulary, clock):
    adapters.status_notes = SlowAdapter()
    settings = Settings(_env_file=None, source_timeout_seconds=0.01)
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert result.new_items_found == 8
    assert all(i.source != KnowledgeSource.STATUS_NOTE for i in result.items)


@pytest.mark.asyncio
async def test_unavailable_roster_uses_fallback_names(adapters, vocabulary, settings, clock):
    class BrokenRoster:
        async def list_all_users(self):
            raise RuntimeError("roster down")

    adapters.roster = BrokenRoster()
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert result.new_items_found == 9
    assert {i.user_name for i in result.items} == {UNKNOWN_USER_NAME}


@pytest.mark.asyncio
async def test_empty_sources(vocabulary, settings, clock):
    adapters = adapters_from_snapshot({})
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert result.items == []
    assert result.total_processed == 0


@pytest.mark.asyncio
async def test_accepts_model_records(roster, vocabulary, settings, clock, now):
    from knowhub.integrations.sources.base import SourceAdapters
    from knowhub.models.records import ProfileRecord

    profile = ProfileRecord(id="P1", user_id="U1", expertise=["React"], created_at=now)
    adapters = SourceAdapters(
        profiles=InMemorySourceAdapter([profile]),
        qa_responses=InMemorySourceAdapter(),
        survey_responses=InMemorySourceAdapter(),
        status_notes=InMemorySourceAdapter(),
        roster=InMemoryRosterProvider(roster),
    )
    extractor = KnowledgeExtractor(adapters, vocabulary=vocabulary, settings=settings, clock=clock)

    result = await extractor.extract_all()

    assert [(i.id, i.user_name) for i in result.items] == [("profile_skill_P1_React", "Alice")]
