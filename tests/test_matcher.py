"""
Tests for sensitive word matching strategies.
"""

from datetime import datetime, timezone

import pytest

from wordguard_gateway.errors import PatternError
from wordguard_gateway.matcher import NO_MATCH, compile_pattern, fuzzy_pattern, match_word
from wordguard_gateway.models import SensitiveWord


def make_word(word, match_type="exact", category="other", word_id="w1"):
    now = datetime.now(timezone.utc)
    return SensitiveWord(
        id=word_id,
        word=word,
        category=category,
        match_type=match_type,
        created_at=now,
        updated_at=now,
    )


def match(text, word):
    return match_word(text, text.lower(), word)


class TestExactMatch:
    def test_case_insensitive_substring(self):
        outcome = match("this has a BadWord inside", make_word("badword"))
        assert outcome.matched
        assert outcome.position == 11

    def test_reports_first_occurrence(self):
        outcome = match("x spam spam", make_word("spam"))
        assert outcome.position == 2

    def test_no_match(self):
        assert match("perfectly clean", make_word("badword")) == NO_MATCH

    def test_separators_defeat_exact(self):
        assert not match("b-a-d w.o.r.d", make_word("bad word")).matched


class TestFuzzyMatch:
    def test_separators_between_characters(self):
        outcome = match("please say b-a-d w.o.r.d now", make_word("bad word", "fuzzy"))
        assert outcome.matched
        assert outcome.position == 11

    def test_spaced_letters(self):
        assert match("B A D", make_word("bad", "fuzzy")).matched

    def test_special_characters_are_literal(self):
        assert match("price is a+b", make_word("a+b", "fuzzy")).matched
        assert not match("aab", make_word("a+b", "fuzzy")).matched

    def test_pattern_escapes_word(self):
        assert fuzzy_pattern("a.") == r"a[\s\W]*\."


class TestRegexMatch:
    def test_pattern_is_case_insensitive(self):
        outcome = match("How to CR@CK it", make_word(r"\bcr[a@]ck\b", "regex"))
        assert outcome.matched
        assert outcome.position == 7

    def test_invalid_pattern_never_matches(self):
        assert match("anything ([", make_word("([", "regex")) == NO_MATCH

    def test_compile_pattern_raises_pattern_error(self):
        with pytest.raises(PatternError) as exc_info:
            compile_pattern("([")
        assert exc_info.value.pattern == "(["


def test_unknown_match_type_never_matches():
    assert match("badword", make_word("badword", "phonetic")) == NO_MATCH
