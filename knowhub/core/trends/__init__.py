"""Trend detection package."""

from knowhub.core.trends.trend_calculator import TrendCalculator

__all__ = ["TrendCalculator"]
