"""
Sensitive word storage for WordGuard Gateway

Words are stored as Redis hashes keyed by id, enumerated through a set index,
and served to the content filter through a single-slot TTL cache that every
mutation invalidates.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import pydantic
import redis

from .cache import WordCache
from .errors import NotFoundError, PatternError, StoreUnavailableError, ValidationError
from .matcher import compile_pattern
from .models import (BatchResult, MatchType, SensitiveWord, SensitiveWordCreate,
                     SensitiveWordUpdate, parse_model)
from .redis_client import WORD_INDEX_KEY, store_errors, word_key

logger = logging.getLogger(__name__)

WordSpec = Union[SensitiveWordCreate, Dict[str, Any]]


def validate_word(word: Any, match_type: str) -> str:
    """Return the trimmed word, checking it is usable with ``match_type``."""
    if not isinstance(word, str) or not word.strip():
        raise ValidationError("Sensitive word must not be empty")
    word = word.strip()
    if match_type == MatchType.REGEX.value:
        try:
            compile_pattern(word)
        except PatternError as e:
            raise ValidationError(str(e)) from e
    return word


def _to_hash(word: SensitiveWord) -> Dict[str, str]:
    return {
        "id": word.id,
        "word": word.word,
        "category": word.category,
        "match_type": word.match_type,
        "enabled": "true" if word.enabled else "false",
        "created_by": word.created_by,
        "created_at": word.created_at.isoformat(),
        "updated_at": word.updated_at.isoformat(),
    }


def _from_hash(data: Dict[str, str]) -> Optional[SensitiveWord]:
    if not data:
        return None
    try:
        return SensitiveWord(
            id=data["id"],
            word=data["word"],
            category=data.get("category", "other"),
            match_type=data.get("match_type", "exact"),
            enabled=data.get("enabled") == "true",
            created_by=data.get("created_by", "admin"),
            created_at=data["created_at"],
            updated_at=data.get("updated_at", data["created_at"]),
        )
    except (KeyError, pydantic.ValidationError) as e:
        logger.warning(f"Skipping malformed sensitive word {data.get('id')}: {e}")
        return None


class WordStore:
    """CRUD over sensitive words with a cached full list."""

    def __init__(self, client: redis.Redis, cache: Optional[WordCache] = None):
        self.client = client
        self.cache: WordCache[List[SensitiveWord]] = cache or WordCache()

    def create(self, spec: WordSpec) -> SensitiveWord:
        """
        Create a sensitive word.

        Raises:
            ValidationError: Empty word, unknown category or match type,
                or a regex that does not compile
            StoreUnavailableError: Redis is unreachable
        """
        spec = parse_model(SensitiveWordCreate, spec)
        text = validate_word(spec.word, spec.match_type.value)

        now = datetime.now(timezone.utc)
        word = SensitiveWord(
            id=str(uuid.uuid4()),
            word=text,
            category=spec.category.value,
            match_type=spec.match_type.value,
            enabled=spec.enabled,
            created_by=spec.created_by,
            created_at=now,
            updated_at=now,
        )

        with store_errors():
            pipe = self.client.pipeline()
            pipe.hset(word_key(word.id), mapping=_to_hash(word))
            pipe.sadd(WORD_INDEX_KEY, word.id)
            pipe.execute()

        self.cache.invalidate()
        logger.info(f"Created sensitive word: {word.word} ({word.category})")
        return word

    def get(self, word_id: str) -> Optional[SensitiveWord]:
        with store_errors():
            data = self.client.hgetall(word_key(word_id))
        return _from_hash(data)

    def update(self, word_id: str, updates: Union[SensitiveWordUpdate, Dict[str, Any]]) -> SensitiveWord:
        """
        Merge ``updates`` into an existing word.

        The resulting word/match type pair is validated again, so switching
        an existing word to ``regex`` checks that it compiles.

        Raises:
            NotFoundError: No word with ``word_id``
            ValidationError: The merged word is invalid
        """
        updates = parse_model(SensitiveWordUpdate, updates)
        existing = self.get(word_id)
        if existing is None:
            raise NotFoundError(f"Sensitive word {word_id} not found")

        fields = updates.model_dump(exclude_unset=True, exclude_none=True, mode="json")
        merged = existing.model_copy(update=fields)
        merged.word = validate_word(merged.word, merged.match_type)
        merged.updated_at = datetime.now(timezone.utc)

        with store_errors():
            self.client.hset(word_key(word_id), mapping=_to_hash(merged))

        self.cache.invalidate()
        logger.info(f"Updated sensitive word: {word_id}")
        return merged

    def delete(self, word_id: str) -> bool:
        """Delete a word. Missing ids are a no-op; returns whether it existed."""
        with store_errors():
            pipe = self.client.pipeline()
            pipe.delete(word_key(word_id))
            pipe.srem(WORD_INDEX_KEY, word_id)
            removed, _ = pipe.execute()

        self.cache.invalidate()
        logger.info(f"Deleted sensitive word: {word_id}")
        return bool(removed)

    def batch_delete(self, word_ids: List[str]) -> BatchResult:
        if not word_ids:
            raise ValidationError("Sensitive word id list must not be empty")

        result = BatchResult.from_outcomes(self._each(word_ids, self.delete))
        self.cache.invalidate()
        logger.info(f"Batch deleted {result.success} sensitive words ({result.failed} failed)")
        return result

    def batch_import(self, specs: List[WordSpec], created_by: str = "admin") -> BatchResult:
        """
        Create many words, validating each independently.

        Failures are reported per item and never roll back earlier successes.
        """
        if not specs:
            raise ValidationError("Sensitive word list must not be empty")

        def _create(spec: WordSpec) -> None:
            if isinstance(spec, SensitiveWordCreate):
                spec = spec.model_copy(update={"created_by": created_by})
            elif isinstance(spec, dict):
                spec = {**spec, "created_by": created_by}
            self.create(spec)

        result = BatchResult.from_outcomes(self._each(specs, _create, label=_spec_label))
        logger.info(f"Batch import completed: {result.success} success, {result.failed} failed")
        return result

    def list(self, only_enabled: bool = False) -> List[SensitiveWord]:
        """All words, newest first. Filtering is applied to the cached list."""
        words = self.cache.get(self._load_all)
        if only_enabled:
            return [w for w in words if w.enabled]
        return list(words)

    def refresh_cache(self) -> None:
        self.cache.invalidate()
        logger.info("Sensitive words cache cleared")

    def _load_all(self) -> List[SensitiveWord]:
        with store_errors():
            word_ids = self.client.smembers(WORD_INDEX_KEY)
            if not word_ids:
                return []
            pipe = self.client.pipeline(transaction=False)
            for word_id in word_ids:
                pipe.hgetall(word_key(word_id))
            rows = pipe.execute()

        words = [w for w in (_from_hash(row) for row in rows) if w is not None]
        words.sort(key=lambda w: w.created_at, reverse=True)
        logger.debug(f"Loaded {len(words)} sensitive words from Redis")
        return words

    @staticmethod
    def _each(items: Iterable[Any], action, label=str) -> Iterator[Tuple[str, Optional[str]]]:
        for item in items:
            try:
                action(item)
            except (ValidationError, StoreUnavailableError, redis.RedisError) as e:
                logger.error(f"Batch item {label(item)!r} failed: {e}")
                yield label(item), str(e)
            else:
                yield label(item), None


def _spec_label(spec: WordSpec) -> str:
    if isinstance(spec, SensitiveWordCreate):
        return spec.word
    if isinstance(spec, dict):
        return str(spec.get("word", ""))
    return str(spec)
