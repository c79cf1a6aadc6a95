"""
Knowledge Extraction Module

Turns the records of every source into normalized KnowledgeItems.
Each pass:
1. Fetches profiles, Q&A responses, survey responses and status notes concurrently
2. Applies the per-source extraction rules (plus skill/tool token mining)
3. Deduplicates by user + kind + content prefix (first occurrence wins)
4. Attaches an age-decayed relevance score
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

from knowhub.config import Settings, get_settings
from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.integrations.sources.base import (
    SourceAdapter,
    SourceAdapters,
    validate_records,
)
from knowhub.models.knowledge import (
    ExtractionResult,
    KnowledgeItem,
    KnowledgeKind,
    KnowledgeSource,
)
from knowhub.models.records import (
    ProfileRecord,
    QAResponseRecord,
    RosterUser,
    StatusNoteRecord,
    SurveyQuestionType,
    SurveyResponseRecord,
)
from knowhub.utils.helpers import (
    age_in_days,
    flatten_list,
    slugify_label,
    utc_now,
)

logger = logging.getLogger(__name__)

UNKNOWN_USER_NAME = "Unknown User"

# Fixed confidence per extraction rule
PROFILE_SKILL_CONFIDENCE = 0.9
PROFILE_PREFERENCE_CONFIDENCE = 0.8
QA_RESPONSE_CONFIDENCE = 0.7
QA_SKILL_CONFIDENCE = 0.6
SURVEY_ANSWER_CONFIDENCE = 0.6
STATUS_PROGRESS_CONFIDENCE = 0.5
STATUS_NOTES_CONFIDENCE = 0.4

# Minimum free-text lengths (exclusive)
MIN_SURVEY_ANSWER_LENGTH = 10
MIN_STATUS_TEXT_LENGTH = 20


class KnowledgeExtractor:
    """
    Extracts knowledge items from all record sources.
    """

    def __init__(
        self,
        adapters: SourceAdapters,
        vocabulary: Optional[Vocabulary] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Args:
            adapters: Record sources and roster
            vocabulary: Keyword vocabulary (defaults to the configured one)
            settings: Scoring settings (defaults to get_settings())
            clock: Returns "now" for recency decay; defaults to UTC wall clock
        """
        self.adapters = adapters
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary or load_vocabulary(self.settings.vocabulary_path)
        self._clock = clock or utc_now

    async def extract_all(self) -> ExtractionResult:
        """
        Run one full extraction pass.

        Never raises: a failing source contributes nothing, and a failure of
        the pass itself yields an empty result.

        Returns:
            ExtractionResult with deduplicated, scored items
        """
        start_time = time.perf_counter()

        try:
            logger.info("Starting knowledge extraction process")

            user_names = await self._load_user_names()

            (
                profile_items,
                qa_items,
                survey_items,
                status_items,
            ) = await asyncio.gather(
                self.extract_from_profiles(user_names),
                self.extract_from_qa_responses(user_names),
                self.extract_from_survey_responses(user_names),
                self.extract_from_status_notes(user_names),
            )

            all_items = profile_items + qa_items + survey_items + status_items

            unique_items = self.deduplicate(all_items)
            enhanced_items = self.enhance_with_relevance_scores(unique_items)

            processing_time_ms = (time.perf_counter() - start_time) * 1000

            logger.info(
                f"Knowledge extraction completed: {len(enhanced_items)} items "
                f"({len(all_items)} before dedup) in {processing_time_ms:.1f}ms"
            )

            return ExtractionResult(
                items=enhanced_items,
                total_processed=len(all_items),
                new_items_found=len(enhanced_items),
                processing_time_ms=processing_time_ms,
            )

        except Exception as e:
            logger.error(f"Error in knowledge extraction: {e}", exc_info=True)
            return ExtractionResult(
                processing_time_ms=(time.perf_counter() - start_time) * 1000
            )

    async def extract_from_profiles(
        self, user_names: Optional[Dict[str, str]] = None
    ) -> List[KnowledgeItem]:
        """Declared expertise becomes skill items; styles become preferences."""
        try:
            profiles = await self._fetch_records(
                self.adapters.profiles, "profiles", ProfileRecord
            )
            items: List[KnowledgeItem] = []

            for profile in profiles:
                user_name = self._user_name(profile.user_id, user_names)

                for skill in flatten_list(profile.expertise):
                    items.append(
                        KnowledgeItem(
                            id=f"profile_skill_{profile.id}_{skill}",
                            kind=KnowledgeKind.SKILL,
                            content=skill,
                            source=KnowledgeSource.PROFILE,
                            record_id=profile.id,
                            user_id=profile.user_id,
                            user_name=user_name,
                            confidence=PROFILE_SKILL_CONFIDENCE,
                            tags=["skill", "expertise", skill.lower()],
                            created_at=profile.created_at,
                        )
                    )

                if profile.work_style and profile.work_style.strip():
                    items.append(
                        KnowledgeItem(
                            id=f"profile_workstyle_{profile.id}",
                            kind=KnowledgeKind.PREFERENCE,
                            content=f"Work style: {profile.work_style.strip()}",
                            source=KnowledgeSource.PROFILE,
                            record_id=profile.id,
                            user_id=profile.user_id,
                            user_name=user_name,
                            confidence=PROFILE_PREFERENCE_CONFIDENCE,
                            tags=["workstyle", "preference"],
                            created_at=profile.created_at,
                        )
                    )

                if profile.communication_style and profile.communication_style.strip():
                    items.append(
                        KnowledgeItem(
                            id=f"profile_communication_{profile.id}",
                            kind=KnowledgeKind.PREFERENCE,
                            content=f"Communication style: {profile.communication_style.strip()}",
                            source=KnowledgeSource.PROFILE,
                            record_id=profile.id,
                            user_id=profile.user_id,
                            user_name=user_name,
                            confidence=PROFILE_PREFERENCE_CONFIDENCE,
                            tags=["communication", "preference"],
                            created_at=profile.created_at,
                        )
                    )

            return items

        except asyncio.TimeoutError:
            logger.error("Timed out fetching profiles, treating source as empty")
            return []
        except Exception as e:
            logger.error(f"Error extracting from profiles: {e}", exc_info=True)
            return []

    async def extract_from_qa_responses(
        self, user_names: Optional[Dict[str, str]] = None
    ) -> List[KnowledgeItem]:
        """
        One item per answer, typed by question category, plus one skill item
        per skill/tool token mentioned in the answer.
        """
        try:
            responses = await self._fetch_records(
                self.adapters.qa_responses, "qa_responses", QAResponseRecord
            )
            items: List[KnowledgeItem] = []

            for response in responses:
                answer = response.response.strip()
                if not answer:
                    logger.debug(f"Skipping empty Q&A response {response.id}")
                    continue

                user_name = self._user_name(response.user_id, user_names)
                category = response.question.category.strip().lower()

                kind = KnowledgeKind.EXPERIENCE
                tags = [category, "qa_response"]
                rule = self.vocabulary.qa_rule(category)
                if rule:
                    kind = rule.kind
                    tags.extend(rule.tags)

                tokens = self.vocabulary.extract_tokens(answer)

                items.append(
                    KnowledgeItem(
                        id=f"qa_{response.id}",
                        kind=kind,
                        content=f"{response.question.content}\nAnswer: {answer}",
                        source=KnowledgeSource.QA_RESPONSE,
                        record_id=response.id,
                        user_id=response.user_id,
                        user_name=user_name,
                        confidence=QA_RESPONSE_CONFIDENCE,
                        tags=tags + tokens,
                        created_at=response.created_at,
                    )
                )

                for token in tokens:
                    items.append(
                        KnowledgeItem(
                            id=f"qa_skill_{response.id}_{token}",
                            kind=KnowledgeKind.SKILL,
                            content=token,
                            source=KnowledgeSource.QA_RESPONSE,
                            record_id=response.id,
                            user_id=response.user_id,
                            user_name=user_name,
                            confidence=QA_SKILL_CONFIDENCE,
                            tags=["skill", "extracted", token],
                            created_at=response.created_at,
                        )
                    )

            return items

        except asyncio.TimeoutError:
            logger.error("Timed out fetching Q&A responses, treating source as empty")
            return []
        except Exception as e:
            logger.error(f"Error extracting from Q&A responses: {e}", exc_info=True)
            return []

    async def extract_from_survey_responses(
        self, user_names: Optional[Dict[str, str]] = None
    ) -> List[KnowledgeItem]:
        """Free-text survey answers become insights; choice/rating answers are ignored."""
        try:
            responses = await self._fetch_records(
                self.adapters.survey_responses, "survey_responses", SurveyResponseRecord
            )
            items: List[KnowledgeItem] = []

            for response in responses:
                user_name = self._user_name(response.user_id, user_names)
                survey_tag = slugify_label(response.survey.title)

                for question_id, answer in response.responses.items():
                    question = response.survey.get_question(question_id)
                    if question is None or not answer:
                        continue
                    if question.type != SurveyQuestionType.TEXT or not isinstance(answer, str):
                        continue

                    answer_text = answer.strip()
                    if len(answer_text) <= MIN_SURVEY_ANSWER_LENGTH:
                        continue

                    items.append(
                        KnowledgeItem(
                            id=f"survey_{response.id}_{question_id}",
                            kind=KnowledgeKind.INSIGHT,
                            content=f"{question.question}\nAnswer: {answer_text}",
                            source=KnowledgeSource.SURVEY_RESPONSE,
                            record_id=response.id,
                            user_id=response.user_id,
                            user_name=user_name,
                            confidence=SURVEY_ANSWER_CONFIDENCE,
                            tags=["survey_response", survey_tag],
                            created_at=response.created_at,
                        )
                    )

            return items

        except asyncio.TimeoutError:
            logger.error("Timed out fetching survey responses, treating source as empty")
            return []
        except Exception as e:
            logger.error(f"Error extracting from survey responses: {e}", exc_info=True)
            return []

    async def extract_from_status_notes(
        self, user_names: Optional[Dict[str, str]] = None
    ) -> List[KnowledgeItem]:
        """Progress text becomes experience; notes text becomes insight."""
        try:
            notes = await self._fetch_records(
                self.adapters.status_notes, "status_notes", StatusNoteRecord
            )
            items: List[KnowledgeItem] = []

            for note in notes:
                user_name = self._user_name(note.user_id, user_names)

                progress = (note.progress or "").strip()
                if len(progress) > MIN_STATUS_TEXT_LENGTH:
                    tokens = self.vocabulary.extract_tokens(progress)
                    items.append(
                        KnowledgeItem(
                            id=f"status_progress_{note.id}",
                            kind=KnowledgeKind.EXPERIENCE,
                            content=f"Progress: {progress}",
                            source=KnowledgeSource.STATUS_NOTE,
                            record_id=note.id,
                            user_id=note.user_id,
                            user_name=user_name,
                            confidence=STATUS_PROGRESS_CONFIDENCE,
                            tags=["status_note", "progress"] + tokens,
                            created_at=note.created_at,
                        )
                    )

                text = (note.notes or "").strip()
                if len(text) > MIN_STATUS_TEXT_LENGTH:
                    items.append(
                        KnowledgeItem(
                            id=f"status_notes_{note.id}",
                            kind=KnowledgeKind.INSIGHT,
                            content=f"Notes: {text}",
                            source=KnowledgeSource.STATUS_NOTE,
                            record_id=note.id,
                            user_id=note.user_id,
                            user_name=user_name,
                            confidence=STATUS_NOTES_CONFIDENCE,
                            tags=["status_note", "notes"],
                            created_at=note.created_at,
                        )
                    )

            return items

        except asyncio.TimeoutError:
            logger.error("Timed out fetching status notes, treating source as empty")
            return []
        except Exception as e:
            logger.error(f"Error extracting from status notes: {e}", exc_info=True)
            return []

    def deduplicate(self, items: List[KnowledgeItem]) -> List[KnowledgeItem]:
        """Keep the first item per (user_id, kind, content[:50])."""
        seen = set()
        unique = []
        for item in items:
            key = item.dedup_key
            if key in seen:
                continue
            seen.add(key)
            unique.append(item)
        return unique

    def enhance_with_relevance_scores(
        self, items: List[KnowledgeItem], now: Optional[datetime] = None
    ) -> List[KnowledgeItem]:
        """
        Attach relevance = confidence * w_c + recency * w_r, where recency
        decays linearly to zero over the configured horizon.
        """
        now = now or self._clock()
        return [
            item.model_copy(update={"relevance_score": self.relevance_score(item, now)})
            for item in items
        ]

    def relevance_score(self, item: KnowledgeItem, now: datetime) -> float:
        age = max(0.0, age_in_days(item.created_at, now))
        recency = max(0.0, 1 - age / self.settings.recency_horizon_days)
        return (
            item.confidence * self.settings.confidence_weight
            + recency * self.settings.recency_weight
        )

    async def _fetch_records(
        self, adapter: SourceAdapter, source_name: str, model: Type[BaseModel]
    ) -> List[Any]:
        raw_records = await asyncio.wait_for(
            adapter.list_all(), timeout=self.settings.source_timeout_seconds
        )
        return validate_records(raw_records or [], source_name, model)

    async def _load_user_names(self) -> Dict[str, str]:
        """Map user id → name. An unavailable roster yields an empty map."""
        try:
            raw_users = await asyncio.wait_for(
                self.adapters.roster.list_all_users(),
                timeout=self.settings.source_timeout_seconds,
            )
        except Exception as e:
            logger.error(f"Roster unavailable, using fallback names: {e}", exc_info=True)
            return {}

        users = validate_records(raw_users or [], "roster", RosterUser)
        return {user.id: user.name for user in users}

    def _user_name(self, user_id: str, user_names: Optional[Dict[str, str]]) -> str:
        if user_names and user_id in user_names:
            return user_names[user_id]
        return UNKNOWN_USER_NAME
