"""
Sensitive word matching strategies.

All strategies are case-insensitive:

- ``exact``: substring search of the lowercased word in the lowercased text.
- ``fuzzy``: the word's characters may be separated by whitespace or
  punctuation, so "b a d" and "b.a.d" both match "bad".
- ``regex``: the word is itself a regular expression.
"""

import logging
import re
from functools import lru_cache
from typing import NamedTuple, Optional

from .errors import PatternError
from .models import MatchType, SensitiveWord

logger = logging.getLogger(__name__)

FUZZY_SEPARATOR = r"[\s\W]*"


class MatchOutcome(NamedTuple):
    matched: bool
    position: Optional[int] = None


NO_MATCH = MatchOutcome(False, None)


@lru_cache(maxsize=2048)
def compile_pattern(pattern: str) -> "re.Pattern[str]":
    """Compile a case-insensitive pattern, raising PatternError if invalid."""
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e


def fuzzy_pattern(word: str) -> str:
    """Build a pattern allowing separators between every character of ``word``."""
    return FUZZY_SEPARATOR.join(re.escape(char) for char in word)


def _search(pattern: str, text: str) -> MatchOutcome:
    found = compile_pattern(pattern).search(text)
    if found is None:
        return NO_MATCH
    return MatchOutcome(True, found.start())


def match_word(text: str, lower_text: str, word: SensitiveWord) -> MatchOutcome:
    """
    Match one word against a text.

    Args:
        text: Original text
        lower_text: ``text.lower()``, computed once per scan by the caller
        word: Sensitive word record

    Returns:
        MatchOutcome with the offset of the first occurrence
    """
    if word.match_type == MatchType.EXACT.value:
        index = lower_text.find(word.word.lower())
        return MatchOutcome(True, index) if index != -1 else NO_MATCH

    if word.match_type == MatchType.FUZZY.value:
        return _search(fuzzy_pattern(word.word), text)

    if word.match_type == MatchType.REGEX.value:
        try:
            return _search(word.word, text)
        except PatternError as e:
            logger.warning(f"Skipping sensitive word {word.id}: {e}")
            return NO_MATCH

    logger.warning(f"Unknown match type {word.match_type!r} for sensitive word {word.id}")
    return NO_MATCH
