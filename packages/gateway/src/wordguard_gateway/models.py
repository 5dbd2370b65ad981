"""
WordGuard Gateway Models

Pydantic models for sensitive words, filter results and violation logs.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pydantic
from pydantic import BaseModel, Field

from .errors import ValidationError


class Category(str, Enum):
    """Sensitive word category."""

    NSFW = "nsfw"
    VIOLENCE = "violence"
    POLITICS = "politics"
    OTHER = "other"


class MatchType(str, Enum):
    """Strategy used to compare a word against request text."""

    EXACT = "exact"
    FUZZY = "fuzzy"
    REGEX = "regex"


class SensitiveWord(BaseModel):
    """A configured sensitive word."""

    id: str
    word: str
    category: str = Category.OTHER.value
    match_type: str = MatchType.EXACT.value
    enabled: bool = True
    created_by: str = "admin"
    created_at: datetime
    updated_at: datetime


class SensitiveWordCreate(BaseModel):
    """Fields accepted when creating a sensitive word."""

    word: str
    category: Category = Category.OTHER
    match_type: MatchType = MatchType.EXACT
    enabled: bool = True
    created_by: str = "admin"


class SensitiveWordUpdate(BaseModel):
    """Partial update for a sensitive word. Unset fields are left alone."""

    word: Optional[str] = None
    category: Optional[Category] = None
    match_type: Optional[MatchType] = None
    enabled: Optional[bool] = None


class MatchedWord(BaseModel):
    """A sensitive word found in checked text."""

    word: str
    category: str
    position: Optional[int] = None


class FilterResult(BaseModel):
    """Outcome of checking one text against the word list."""

    is_violation: bool = False
    matches: List[MatchedWord] = []

    def matched_categories(self) -> List[str]:
        """Distinct categories of all matches, in first-seen order."""
        return list(dict.fromkeys(match.category for match in self.matches))


class ViolationData(BaseModel):
    """Request details captured when a request is blocked."""

    api_key_name: Optional[str] = None
    matched_words: List[MatchedWord] = []
    content: Optional[str] = None
    request_path: Optional[str] = None
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    details: Dict[str, Any] = {}


class ViolationRecord(BaseModel):
    """Immutable audit entry for a blocked request."""

    id: str
    api_key_id: Optional[str] = None
    api_key_name: str = "Unknown"
    matched_words: List[MatchedWord] = []
    content_sample: str = ""
    request_path: str = "Unknown"
    client_ip: str = "Unknown"
    user_agent: str = "Unknown"
    request_id: str = "Unknown"
    timestamp: datetime
    details: Dict[str, Any] = {}


class ViolationQuery(BaseModel):
    """Pagination and range options for violation queries."""

    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    api_key_id: Optional[str] = None


class ViolationPage(BaseModel):
    """One page of violation records, newest first."""

    logs: List[ViolationRecord] = []
    total: int = 0
    page: int = 1
    limit: int = 50

    @property
    def pages(self) -> int:
        return -(-self.total // self.limit) if self.limit else 0


class ViolationStats(BaseModel):
    """Rollup of violation records."""

    total: int = 0
    by_category: Dict[str, int] = {}
    by_api_key: Dict[str, int] = {}
    by_day: Dict[str, int] = {}
    top_matched_words: Dict[str, int] = {}


class WordStats(BaseModel):
    """Rollup of the sensitive word list."""

    total: int = 0
    enabled: int = 0
    disabled: int = 0
    by_category: Dict[str, int] = {}
    by_match_type: Dict[str, int] = {}


class BatchError(BaseModel):
    """Failure of a single item in a batch operation."""

    item: str
    error: str


class BatchResult(BaseModel):
    """Aggregated result of a best-effort batch operation."""

    total: int = 0
    success: int = 0
    failed: int = 0
    errors: List[BatchError] = []

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[Tuple[str, Optional[str]]]) -> "BatchResult":
        """Fold ``(item, error_or_None)`` pairs into a result."""
        result = cls()
        for item, error in outcomes:
            result.total += 1
            if error is None:
                result.success += 1
            else:
                result.failed += 1
                result.errors.append(BatchError(item=item, error=error))
        return result


def parse_model(model_cls, data):
    """Validate ``data`` as ``model_cls``, raising the gateway ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'value'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(reasons) from e
