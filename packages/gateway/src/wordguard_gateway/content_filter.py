"""
Content filter for WordGuard Gateway

Checks request text against every enabled sensitive word. This is a
read-only path: it never writes to the store.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .matcher import match_word
from .models import FilterResult, MatchedWord
from .word_store import WordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckOutcome:
    """Either a filter result or the error that prevented one."""

    result: Optional[FilterResult] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def fail_open(self) -> FilterResult:
        """Treat a failed check as "no violation" so the request proceeds."""
        if self.error is None:
            return self.result
        logger.warning(f"Content filter unavailable, allowing request: {self.error}")
        return FilterResult()

    def unwrap(self) -> FilterResult:
        """Return the result or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.result


class ContentFilter:
    """Applies the sensitive word list to a text."""

    def __init__(self, word_store: WordStore):
        self.word_store = word_store

    def check(self, text: str) -> FilterResult:
        """
        Check text for sensitive words.

        Every enabled word is evaluated; one entry is reported per matching
        word with the offset of its first occurrence.

        Raises:
            StoreUnavailableError: The word list could not be loaded
        """
        if not isinstance(text, str) or not text.strip():
            return FilterResult()

        words = self.word_store.list(only_enabled=True)
        if not words:
            return FilterResult()

        lower_text = text.lower()
        matches = []
        for word in words:
            outcome = match_word(text, lower_text, word)
            if outcome.matched:
                matches.append(
                    MatchedWord(word=word.word, category=word.category, position=outcome.position)
                )

        return FilterResult(is_violation=bool(matches), matches=matches)

    def try_check(self, text: str) -> CheckOutcome:
        """Run ``check`` and capture any failure instead of raising it."""
        try:
            return CheckOutcome(result=self.check(text))
        except Exception as e:
            logger.exception("Content check failed")
            return CheckOutcome(error=e)
