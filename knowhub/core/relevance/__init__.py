"""Relevance ranking package."""

from knowhub.core.relevance.relevance_engine import RelevanceEngine

__all__ = ["RelevanceEngine"]
