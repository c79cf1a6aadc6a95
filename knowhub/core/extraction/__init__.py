"""Knowledge extraction package."""

from knowhub.core.extraction.knowledge_extractor import (
    KnowledgeExtractor,
    UNKNOWN_USER_NAME,
)

__all__ = [
    "KnowledgeExtractor",
    "UNKNOWN_USER_NAME",
]
