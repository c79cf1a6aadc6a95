"""
Trend Calculator

Compares tag frequency across two trailing windows (recent vs. the window
before it) and labels each sufficiently frequent tag as increasing,
decreasing or stable.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional

from knowhub.config import Settings, get_settings
from knowhub.models.context import TrendDirection, TrendItem
from knowhub.models.knowledge import KnowledgeItem
from knowhub.utils.helpers import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class TrendCalculator:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def calculate(
        self, items: List[KnowledgeItem], now: Optional[datetime] = None
    ) -> List[TrendItem]:
        """
        Args:
            items: Knowledge item snapshot
            now: Reference time (defaults to the current UTC time)

        Returns:
            Up to `trend_limit` trends, most frequent first (ties by topic)
        """
        now = ensure_utc(now) if now else utc_now()
        window = timedelta(days=self.settings.trend_window_days)
        recent_start = now - window
        older_start = now - 2 * window

        recent_counts: Counter = Counter()
        older_counts: Counter = Counter()

        for item in items:
            if item.created_at > recent_start:
                target = recent_counts
            elif older_start < item.created_at <= recent_start:
                target = older_counts
            else:
                continue
            for tag in item.tags:
                target[tag] += 1

        ratio = self.settings.trend_ratio
        trends = []
        for tag in set(recent_counts) | set(older_counts):
            recent = recent_counts[tag]
            older = older_counts[tag]
            if recent + older < self.settings.trend_min_frequency:
                continue

            direction = TrendDirection.STABLE
            if recent > older * ratio:
                direction = TrendDirection.INCREASING
            elif older > recent * ratio:
                direction = TrendDirection.DECREASING

            trends.append(
                TrendItem(
                    topic=tag,
                    frequency=recent + older,
                    trend=direction,
                    timeframe=f"last {2 * self.settings.trend_window_days} days",
                )
            )

        trends.sort(key=lambda t: (-t.frequency, t.topic))
        return trends[: self.settings.trend_limit]
