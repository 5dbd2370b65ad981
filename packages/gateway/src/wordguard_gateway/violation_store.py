"""
Violation log storage for WordGuard Gateway

Each blocked request becomes a Redis hash. Two sorted sets scored by the
record's timestamp (epoch milliseconds) index the records: one global and one
per API key. Range queries, pagination and retention cleanup all run over
these indices.
"""

import json
import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pydantic
import redis

from .errors import StoreUnavailableError, ValidationError
from .models import (BatchResult, MatchedWord, ViolationData, ViolationPage,
                     ViolationQuery, ViolationRecord, ViolationStats, parse_model)
from .redis_client import (VIOLATION_GLOBAL_INDEX_KEY, store_errors,
                           violation_key, violation_key_index)

logger = logging.getLogger(__name__)

CONTENT_SAMPLE_MAX_LENGTH = 200
ELLIPSIS = "..."
TOP_MATCHED_WORDS = 10
CLEANUP_BATCH_SIZE = 500
UNKNOWN = "Unknown"


def sanitize_content(content: Optional[str], matched_words: Sequence[MatchedWord] = ()) -> str:
    """
    Reduce request content to a short excerpt for the audit log.

    Content that fits in ``CONTENT_SAMPLE_MAX_LENGTH`` is kept as is. Longer
    content is cut to a window centred on the first match, at most
    ``CONTENT_SAMPLE_MAX_LENGTH`` characters including ellipses. Without a
    match position the head of the content is kept, followed by an ellipsis.
    """
    if not content or not isinstance(content, str):
        return ""

    max_length = CONTENT_SAMPLE_MAX_LENGTH
    if len(content) <= max_length:
        return content

    position = matched_words[0].position if matched_words else None
    if position is None or position < 0:
        return content[:max_length] + ELLIPSIS

    start = max(0, position - max_length // 2)
    prefix = ELLIPSIS if start > 0 else ""
    room = max_length - len(prefix) - len(ELLIPSIS)
    # Clamp so a match near the end still fills the window
    if start + room > len(content):
        start = max(0, len(content) - room)
    return prefix + content[start : start + room] + ELLIPSIS


def _score(moment: datetime) -> int:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def _safe_json(raw: Optional[str], fallback: Any) -> Any:
    try:
        return json.loads(raw) if raw else fallback
    except (TypeError, ValueError):
        return fallback


def _to_hash(record: ViolationRecord) -> Dict[str, str]:
    return {
        "id": record.id,
        "api_key_id": record.api_key_id or "",
        "api_key_name": record.api_key_name,
        "matched_words": json.dumps([m.model_dump() for m in record.matched_words]),
        "content_sample": record.content_sample,
        "request_path": record.request_path,
        "client_ip": record.client_ip,
        "user_agent": record.user_agent,
        "request_id": record.request_id,
        "timestamp": record.timestamp.isoformat(),
        "details": json.dumps(record.details),
    }


def _from_hash(data: Dict[str, str]) -> Optional[ViolationRecord]:
    if not data:
        return None
    try:
        return ViolationRecord(
            id=data["id"],
            api_key_id=data.get("api_key_id") or None,
            api_key_name=data.get("api_key_name") or UNKNOWN,
            matched_words=_safe_json(data.get("matched_words"), []),
            content_sample=data.get("content_sample", ""),
            request_path=data.get("request_path") or UNKNOWN,
            client_ip=data.get("client_ip") or UNKNOWN,
            user_agent=data.get("user_agent") or UNKNOWN,
            request_id=data.get("request_id") or UNKNOWN,
            timestamp=data["timestamp"],
            details=_safe_json(data.get("details"), {}),
        )
    except (KeyError, pydantic.ValidationError) as e:
        logger.warning(f"Skipping malformed violation log {data.get('id')}: {e}")
        return None


def _resolve_query(query: Optional[ViolationQuery], options: Dict[str, Any]) -> ViolationQuery:
    if query is None:
        return parse_model(ViolationQuery, options)
    if options:
        raise ValidationError(
            f"Pass either a ViolationQuery or keyword options, not both: {sorted(options)}"
        )
    return query


class ViolationStore:
    """Audit log of blocked requests."""

    def __init__(
        self,
        client: redis.Redis,
        retention_days: int = 90,
        stats_limit: int = 10000,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.client = client
        self.retention_days = retention_days
        self.stats_limit = stats_limit
        self.clock = clock

    def record(
        self, api_key_id: Optional[str], data: Union[ViolationData, Dict[str, Any]]
    ) -> Optional[ViolationRecord]:
        """
        Record a blocked request.

        The body and both index entries are written in one MULTI block.
        Store failures are logged and yield None; recording must never
        fail the request that was already rejected.

        Args:
            api_key_id: Caller whose request was blocked
            data: Request details; ``content`` is reduced to a sample

        Returns:
            The stored record, or None if it could not be written
        """
        data = parse_model(ViolationData, data)
        timestamp = self.clock()
        record = ViolationRecord(
            id=str(uuid.uuid4()),
            api_key_id=api_key_id or None,
            api_key_name=data.api_key_name or UNKNOWN,
            matched_words=data.matched_words,
            content_sample=sanitize_content(data.content, data.matched_words),
            request_path=data.request_path or UNKNOWN,
            client_ip=data.client_ip or UNKNOWN,
            user_agent=data.user_agent or UNKNOWN,
            request_id=data.request_id or UNKNOWN,
            timestamp=timestamp,
            details=data.details,
        )
        score = _score(timestamp)

        try:
            with store_errors():
                pipe = self.client.pipeline()
                pipe.hset(violation_key(record.id), mapping=_to_hash(record))
                pipe.zadd(VIOLATION_GLOBAL_INDEX_KEY, {record.id: score})
                if record.api_key_id:
                    pipe.zadd(violation_key_index(record.api_key_id), {record.id: score})
                pipe.execute()
        except (StoreUnavailableError, redis.RedisError) as e:
            logger.error(f"Failed to record violation log: {e}")
            return None

        logger.warning(
            f"Violation recorded: {record.api_key_name} matched {len(record.matched_words)} word(s)"
        )
        return record

    def get_violation(self, violation_id: str) -> Optional[ViolationRecord]:
        with store_errors():
            data = self.client.hgetall(violation_key(violation_id))
        return _from_hash(data)

    def get_violations_by_api_key(
        self, api_key_id: str, query: Optional[ViolationQuery] = None, **options: Any
    ) -> ViolationPage:
        """Page through one caller's violations, newest first."""
        query = _resolve_query(query, options)
        return self._range_page(violation_key_index(api_key_id), query)

    def get_all_violations(self, query: Optional[ViolationQuery] = None, **options: Any) -> ViolationPage:
        """
        Page through all violations, newest first.

        With ``api_key_id`` set this is the same query as
        ``get_violations_by_api_key``.
        """
        query = _resolve_query(query, options)
        if query.api_key_id:
            return self.get_violations_by_api_key(query.api_key_id, query)
        return self._range_page(VIOLATION_GLOBAL_INDEX_KEY, query)

    def delete_violation(self, violation_id: str) -> bool:
        """
        Delete a record and its index entries.

        The record is read first to find its per-key index. Returns whether
        the record body existed.
        """
        with store_errors():
            api_key_id = self.client.hget(violation_key(violation_id), "api_key_id")
            pipe = self.client.pipeline()
            if api_key_id:
                pipe.zrem(violation_key_index(api_key_id), violation_id)
            pipe.zrem(VIOLATION_GLOBAL_INDEX_KEY, violation_id)
            pipe.delete(violation_key(violation_id))
            results = pipe.execute()

        logger.info(f"Deleted violation log: {violation_id}")
        return bool(results[-1])

    def batch_delete_violations(self, violation_ids: List[str]) -> BatchResult:
        if not violation_ids:
            raise ValidationError("Violation log id list must not be empty")

        def _outcomes():
            for violation_id in violation_ids:
                try:
                    self.delete_violation(violation_id)
                except (StoreUnavailableError, redis.RedisError) as e:
                    logger.error(f"Failed to delete violation log {violation_id}: {e}")
                    yield violation_id, str(e)
                else:
                    yield violation_id, None

        result = BatchResult.from_outcomes(_outcomes())
        logger.info(f"Batch deleted {result.success} violation logs ({result.failed} failed)")
        return result

    def cleanup_expired_violations(self, retention_days: Optional[int] = None) -> int:
        """
        Delete violations older than the retention window.

        Args:
            retention_days: Days to keep; defaults to the configured value.
                Zero or less disables cleanup.

        Returns:
            Number of records removed
        """
        retention = self.retention_days if retention_days is None else retention_days
        if retention <= 0:
            logger.debug("Violation log cleanup disabled (retention <= 0)")
            return 0

        cutoff = self.clock() - timedelta(days=retention)
        max_score = f"({_score(cutoff)}"

        removed = 0
        while True:
            with store_errors():
                expired_ids = self.client.zrangebyscore(
                    VIOLATION_GLOBAL_INDEX_KEY, "-inf", max_score, start=0, num=CLEANUP_BATCH_SIZE
                )
            if not expired_ids:
                break
            for violation_id in expired_ids:
                self.delete_violation(violation_id)
            removed += len(expired_ids)

        if removed:
            logger.info(f"Cleaned up {removed} expired violation logs")
        else:
            logger.debug("No expired violation logs to clean up")
        return removed

    def get_violation_stats(
        self,
        api_key_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> ViolationStats:
        """
        Aggregate violations by category, caller, day and matched word.

        At most ``stats_limit`` of the newest matching records are aggregated;
        ``total`` still counts every record in range.
        """
        query = ViolationQuery(
            page=1,
            limit=self.stats_limit,
            start_date=start_date,
            end_date=end_date,
            api_key_id=api_key_id,
        )
        page = self.get_all_violations(query)

        by_category: Counter = Counter()
        by_api_key: Counter = Counter()
        by_day: Counter = Counter()
        words: Counter = Counter()
        for log in page.logs:
            for match in log.matched_words:
                by_category[match.category or "other"] += 1
                words[match.word] += 1
            by_api_key[log.api_key_name] += 1
            by_day[log.timestamp.date().isoformat()] += 1

        return ViolationStats(
            total=page.total,
            by_category=dict(by_category),
            by_api_key=dict(by_api_key),
            by_day=dict(by_day),
            top_matched_words=dict(words.most_common(TOP_MATCHED_WORDS)),
        )

    def _range_page(self, index_key: str, query: ViolationQuery) -> ViolationPage:
        min_score = _score(query.start_date) if query.start_date else "-inf"
        max_score = _score(query.end_date) if query.end_date else "+inf"

        with store_errors():
            total = self.client.zcount(index_key, min_score, max_score)
            if total == 0:
                return ViolationPage(total=0, page=query.page, limit=query.limit)

            offset = (query.page - 1) * query.limit
            violation_ids = self.client.zrevrangebyscore(
                index_key, max_score, min_score, start=offset, num=query.limit
            )
            logs = self._fetch_logs(violation_ids)

        return ViolationPage(logs=logs, total=total, page=query.page, limit=query.limit)

    def _fetch_logs(self, violation_ids: List[str]) -> List[ViolationRecord]:
        if not violation_ids:
            return []

        pipe = self.client.pipeline(transaction=False)
        for violation_id in violation_ids:
            pipe.hgetall(violation_key(violation_id))
        rows = pipe.execute()

        # Index entries whose body is gone are skipped
        return [log for log in (_from_hash(row) for row in rows) if log is not None]
