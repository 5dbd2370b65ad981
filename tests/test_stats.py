"""
Tests for dashboard statistics.
"""

import pytest

from wordguard_gateway.models import MatchedWord, ViolationData, ViolationStats
from wordguard_gateway.stats import StatsAggregator


@pytest.fixture
def aggregator(word_store, violation_store):
    return StatsAggregator(word_store, violation_store)


def test_word_stats(aggregator, word_store):
    word_store.create({"word": "a", "category": "nsfw"})
    word_store.create({"word": "b", "category": "nsfw", "match_type": "fuzzy"})
    word_store.create({"word": "c", "category": "politics", "enabled": False})

    stats = aggregator.word_stats()

    assert stats.total == 3
    assert stats.enabled == 2
    assert stats.disabled == 1
    assert stats.by_category == {"nsfw": 2, "politics": 1}
    assert stats.by_match_type == {"exact": 2, "fuzzy": 1}


def test_word_stats_empty(aggregator):
    stats = aggregator.word_stats()
    assert stats.total == 0
    assert stats.by_category == {}


def test_dashboard_combines_words_and_violations(aggregator, word_store, violation_store):
    word_store.create({"word": "spam"})
    violation_store.record(
        "key-1",
        ViolationData(
            api_key_name="One",
            matched_words=[MatchedWord(word="spam", category="other", position=0)],
            content="spam",
        ),
    )

    dashboard = aggregator.dashboard()

    assert dashboard["words"]["total"] == 1
    assert dashboard["violations"]["total"] == 1
    assert dashboard["violations"]["top_matched_words"] == {"spam": 1}


def test_violation_stats_filters_by_key(aggregator, violation_store):
    for key_id in ("key-1", "key-2"):
        violation_store.record(
            key_id,
            ViolationData(
                api_key_name=key_id,
                matched_words=[MatchedWord(word="spam", category="other", position=0)],
            ),
        )

    stats = aggregator.violation_stats(api_key_id="key-2")

    assert isinstance(stats, ViolationStats)
    assert stats.total == 1
    assert stats.by_api_key == {"key-2": 1}
