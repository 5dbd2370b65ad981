"""
WordGuard Gateway

Sensitive word filtering for AI relay requests, with a Redis-backed audit
log of every blocked request.
"""

__version__ = "0.1.0"
__author__ = "WordGuard Team"
__email__ = "team@wordguard.dev"

from .content_filter import CheckOutcome, ContentFilter
from .models import (Category, FilterResult, MatchedWord, MatchType,
                     SensitiveWord, ViolationRecord)
from .violation_store import ViolationStore
from .word_store import WordStore

__all__ = [
    "CheckOutcome",
    "ContentFilter",
    "Category",
    "FilterResult",
    "MatchedWord",
    "MatchType",
    "SensitiveWord",
    "ViolationRecord",
    "ViolationStore",
    "WordStore",
]
