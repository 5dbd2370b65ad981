"""
Dashboard statistics for WordGuard Gateway

Derived rollups over the word list and the violation log. Holds no state.
"""

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Optional

from .models import ViolationStats, WordStats
from .violation_store import ViolationStore
from .word_store import WordStore

logger = logging.getLogger(__name__)


class StatsAggregator:
    """Summary counts for the admin dashboard."""

    def __init__(self, word_store: WordStore, violation_store: ViolationStore):
        self.word_store = word_store
        self.violation_store = violation_store

    def word_stats(self) -> WordStats:
        words = self.word_store.list()
        enabled = sum(1 for word in words if word.enabled)

        return WordStats(
            total=len(words),
            enabled=enabled,
            disabled=len(words) - enabled,
            by_category=dict(Counter(word.category for word in words)),
            by_match_type=dict(Counter(word.match_type for word in words)),
        )

    def dashboard(
        self,
        api_key_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Combined word and violation statistics.

        Args:
            api_key_id: Restrict violation counts to one caller
            start_date: Start of the violation range (open if omitted)
            end_date: End of the violation range (open if omitted)

        Returns:
            ``{"words": ..., "violations": ...}``
        """
        word_stats = self.word_stats()
        violation_stats = self.violation_stats(api_key_id, start_date, end_date)

        logger.info(
            f"Generated dashboard stats: {word_stats.total} words, {violation_stats.total} violations"
        )
        return {
            "words": word_stats.model_dump(),
            "violations": violation_stats.model_dump(),
        }

    def violation_stats(
        self,
        api_key_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ViolationStats:
        return self.violation_store.get_violation_stats(
            api_key_id=api_key_id, start_date=start_date, end_date=end_date
        )
