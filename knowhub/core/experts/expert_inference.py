"""
Expert Inference

Infers (user, skill) experts from accumulated evidence across knowledge items.
A pair is only suggested once it is backed by enough independent items.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set, Tuple

from knowhub.config import Settings, get_settings
from knowhub.core.vocabulary import Vocabulary, load_vocabulary
from knowhub.models.knowledge import ExpertSuggestion, KnowledgeItem, KnowledgeKind
from knowhub.models.records import RosterUser

logger = logging.getLogger(__name__)


@dataclass
class _SkillEvidence:
    """Running aggregate for one (user, skill) pair."""

    user_name: str
    skill: str
    confidence: float
    last_activity: datetime
    origins: Set[Tuple[str, str]] = field(default_factory=set)

    @property
    def evidence_count(self) -> int:
        return len(self.origins)

    def add(self, item: KnowledgeItem) -> None:
        self.confidence = max(self.confidence, item.confidence)
        self.origins.add(item.origin)
        if item.created_at > self.last_activity:
            self.last_activity = item.created_at


class ExpertInference:
    """
    Ranks likely experts for the skills mentioned in a query.
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.vocabulary = vocabulary or load_vocabulary(self.settings.vocabulary_path)

    def suggest_experts(
        self,
        query: str,
        items: List[KnowledgeItem],
        roster: Optional[List[RosterUser]] = None,
    ) -> List[ExpertSuggestion]:
        """
        Suggest experts for a query.

        Skill-kind items always count as evidence for their own content; other
        items count when one of their tags is a skill keyword found in the query.
        Skills are grouped case-insensitively, and items extracted from the
        same source record count as one piece of evidence.

        Args:
            query: Free-text query
            items: Knowledge item snapshot
            roster: When given, users missing from it are dropped and names
                are taken from it

        Returns:
            Up to `expert_limit` suggestions ranked by confidence * evidence_count,
            ties broken by the most recent activity
        """
        mentioned_skills = {kw.lower() for kw in self.vocabulary.query_skills(query or "")}
        evidence: Dict[Tuple[str, str], _SkillEvidence] = {}

        for item in items:
            skill = self._evidence_skill(item, mentioned_skills)
            if not skill:
                continue

            key = (item.user_id, skill.lower())
            if key not in evidence:
                evidence[key] = _SkillEvidence(
                    user_name=item.user_name,
                    skill=skill,
                    confidence=item.confidence,
                    last_activity=item.created_at,
                )
            evidence[key].add(item)

        roster_names = None
        if roster is not None:
            roster_names = {user.id: user.name for user in roster}

        suggestions = []
        for (user_id, _), data in evidence.items():
            if data.evidence_count < self.settings.expert_min_evidence:
                continue

            user_name = data.user_name
            if roster_names is not None:
                if user_id not in roster_names:
                    continue
                user_name = roster_names[user_id]

            suggestions.append(
                ExpertSuggestion(
                    user_id=user_id,
                    user_name=user_name,
                    skill=data.skill,
                    confidence=data.confidence,
                    evidence_count=data.evidence_count,
                    last_activity=data.last_activity,
                )
            )

        suggestions.sort(key=lambda s: (s.score, s.last_activity), reverse=True)

        logger.debug(
            f"Expert inference: {len(evidence)} candidate pairs, "
            f"{len(suggestions)} with enough evidence"
        )
        return suggestions[: self.settings.expert_limit]

    @staticmethod
    def _evidence_skill(item: KnowledgeItem, mentioned_skills: set) -> Optional[str]:
        if item.kind == KnowledgeKind.SKILL:
            return item.content
        return next((tag for tag in item.tags if tag.lower() in mentioned_skills), None)
