#!/usr/bin/env python3
"""
Sensitive word import script for WordGuard Gateway

Loads a JSON array of word specs into Redis.

Usage:
    python import_sensitive_words.py --file words.json [--dry-run]
"""

import argparse
import json
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List

import redis

from wordguard_gateway.config import get_settings
from wordguard_gateway.errors import StoreUnavailableError, ValidationError
from wordguard_gateway.models import SensitiveWordCreate, parse_model
from wordguard_gateway.redis_client import get_redis_client
from wordguard_gateway.word_store import WordStore, validate_word

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def load_words(path: Path) -> List[Dict[str, Any]]:
    """Read and check the word file; exits on malformed entries."""
    if not path.exists():
        logger.error(f"File not found: {path}")
        sys.exit(1)

    words = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(words, list) or not words:
        logger.error("Word file must contain a non-empty JSON array")
        sys.exit(1)

    invalid = []
    for index, entry in enumerate(words):
        try:
            spec = parse_model(SensitiveWordCreate, entry)
            validate_word(spec.word, spec.match_type.value)
        except ValidationError as e:
            invalid.append((index, str(e)))

    if invalid:
        logger.error("Malformed sensitive words:")
        for index, reason in invalid:
            logger.error(f"  [{index}] {reason}")
        sys.exit(1)

    return words


def summarize(words: List[Dict[str, Any]]) -> None:
    enabled = sum(1 for w in words if w.get("enabled", True) is not False)
    by_category = Counter(w.get("category", "other") for w in words)
    by_match_type = Counter(w.get("match_type", "exact") for w in words)

    print(f"Total: {len(words)}")
    print(f"Enabled: {enabled} | Disabled: {len(words) - enabled}")
    print("By category:")
    for category, count in by_category.items():
        print(f"  {category}: {count}")
    print("By match type:")
    for match_type, count in by_match_type.items():
        print(f"  {match_type}: {count}")


def main():
    """Import sensitive words from a JSON file."""
    parser = argparse.ArgumentParser(description="Import sensitive words")
    parser.add_argument("--file", required=True, type=Path, help="JSON array of word specs")
    parser.add_argument("--dry-run", action="store_true", help="Validate and summarize only")
    parser.add_argument("--created-by", default="import", help="Creator recorded on each word")

    args = parser.parse_args()

    words = load_words(args.file)
    summarize(words)

    if args.dry_run:
        print("\nDry run: first entries")
        for index, word in enumerate(words[:5], start=1):
            print(f"  {index}. {word['word']} [{word.get('category', 'other')}] [{word.get('match_type', 'exact')}]")
        return

    settings = get_settings()
    logger.info(f"Redis URL: {settings.redis_url}")

    try:
        store = WordStore(get_redis_client())
        existing = store.list()
        if existing:
            logger.warning(f"{len(existing)} sensitive words already exist; new words are added alongside them")

        result = store.batch_import(words, created_by=args.created_by)
    except (StoreUnavailableError, redis.RedisError) as e:
        logger.error(f"Import failed: {e}")
        sys.exit(1)

    print(f"\nImported {result.success} of {result.total} ({result.failed} failed)")
    for error in result.errors:
        print(f"  {error.item}: {error.error}")


if __name__ == "__main__":
    main()
