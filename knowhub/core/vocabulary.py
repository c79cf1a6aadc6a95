"""
Keyword Vocabulary

Loads the fixed keyword lists (skill/tool patterns, graph tag lists, query
keywords, intent patterns, follow-ups) from YAML so they can be extended
without touching the scoring logic.
"""

import re
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Pattern

import yaml
from pydantic import BaseModel, Field, PrivateAttr, ValidationError

from knowhub.models.knowledge import KnowledgeKind

logger = logging.getLogger(__name__)

DEFAULT_VOCABULARY_PATH = Path(__file__).parent / "data" / "vocabulary.yaml"

# ASCII-only boundaries so tokens still match next to CJK characters.
_TOKEN_BOUNDARY_BEFORE = r"(?<![A-Za-z0-9_])"
_TOKEN_BOUNDARY_AFTER = r"(?![A-Za-z0-9_])"


class VocabularyError(Exception):
    """
    Raised when the vocabulary file is missing or malformed.
    This is a configuration error and is not recovered.
    """

    pass


class QACategoryRule(BaseModel):
    kind: KnowledgeKind
    tags: List[str] = Field(default_factory=list)


class Vocabulary(BaseModel):
    """Keyword lists driving tagging, graph classification and query analysis."""

    skill_patterns: List[str] = Field(default_factory=list)
    tool_patterns: List[str] = Field(default_factory=list)
    skill_tags: List[str] = Field(default_factory=list)
    topic_tags: List[str] = Field(default_factory=list)
    query_skill_keywords: List[str] = Field(default_factory=list)
    kind_keywords: Dict[str, List[str]] = Field(default_factory=dict)
    qa_categories: Dict[str, QACategoryRule] = Field(default_factory=dict)
    intent_patterns: Dict[str, List[str]] = Field(default_factory=dict)
    confidence_keywords: List[str] = Field(default_factory=list)
    follow_ups: Dict[str, List[str]] = Field(default_factory=dict)

    _token_patterns: List[tuple] = PrivateAttr(default_factory=list)
    _intent_regexes: Dict[str, List[Pattern]] = PrivateAttr(default_factory=dict)
    _skill_tag_set: set = PrivateAttr(default_factory=set)
    _topic_tag_set: set = PrivateAttr(default_factory=set)

    def model_post_init(self, __context) -> None:
        tokens = []
        for keyword in self.skill_patterns + self.tool_patterns:
            canonical = keyword.lower()
            if any(existing == canonical for existing, _ in tokens):
                continue
            pattern = re.compile(
                _TOKEN_BOUNDARY_BEFORE + re.escape(keyword) + _TOKEN_BOUNDARY_AFTER,
                re.IGNORECASE,
            )
            tokens.append((canonical, pattern))
        self._token_patterns = tokens

        try:
            self._intent_regexes = {
                intent: [re.compile(p, re.IGNORECASE) for p in patterns]
                for intent, patterns in self.intent_patterns.items()
            }
        except re.error as e:
            raise VocabularyError(f"Invalid intent pattern: {e}") from e

        self._skill_tag_set = {tag.lower() for tag in self.skill_tags}
        self._topic_tag_set = {tag.lower() for tag in self.topic_tags}

    def extract_tokens(self, text: str) -> List[str]:
        """
        Find skill and tool tokens mentioned in free text.

        Returns:
            Lowercased tokens in vocabulary order, each at most once
        """
        if not text:
            return []
        return [canonical for canonical, pattern in self._token_patterns if pattern.search(text)]

    def query_skills(self, query: str) -> List[str]:
        """Skill keywords contained in the query (case-insensitive substring)."""
        query_lower = query.lower()
        return [kw for kw in self.query_skill_keywords if kw.lower() in query_lower]

    def is_skill_tag(self, tag: str) -> bool:
        return tag.lower() in self._skill_tag_set

    def is_topic_tag(self, tag: str) -> bool:
        return tag.lower() in self._topic_tag_set

    def intent_regexes(self, intent: str) -> List[Pattern]:
        return self._intent_regexes.get(intent, [])

    def kind_keywords_for(self, kind: str) -> List[str]:
        return self.kind_keywords.get(kind, [])

    def qa_rule(self, category: str) -> Optional[QACategoryRule]:
        return self.qa_categories.get(category.lower())


@lru_cache
def load_vocabulary(path: Optional[str] = None) -> Vocabulary:
    """
    Load and validate the vocabulary file.

    Args:
        path: Optional path to a YAML vocabulary; defaults to the packaged file

    Returns:
        Vocabulary instance (cached per path)

    Raises:
        VocabularyError: If the file cannot be read or does not validate
    """
    vocabulary_path = Path(path) if path else DEFAULT_VOCABULARY_PATH

    try:
        with open(vocabulary_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise VocabularyError(
            f"Failed to load vocabulary from {vocabulary_path}: {e}"
        ) from e

    if not isinstance(data, dict):
        raise VocabularyError(f"Vocabulary file {vocabulary_path} must be a mapping")

    try:
        vocabulary = Vocabulary(**data)
    except ValidationError as e:
        raise VocabularyError(f"Invalid vocabulary in {vocabulary_path}: {e}") from e

    logger.debug(
        f"Loaded vocabulary from {vocabulary_path}: "
        f"{len(vocabulary.skill_tags)} skill tags, {len(vocabulary.topic_tags)} topic tags"
    )
    return vocabulary
