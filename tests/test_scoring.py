"""
Tests for candidate scoring components.
"""

from datetime import datetime, timedelta, timezone

import pytest

from recall.recommend.schemas import UserPreferences
from recall.recommend.scoring import (
    age_in_days,
    code_complexity,
    complexity,
    freshness,
    preference_score,
    quality_score,
    score_item,
    temporal_score,
    usage_score,
)
from recall.recommend.types import UsageRecord

from conftest import NOW


def usage(**counts):
    return UsageRecord(item_id="item", first_accessed=NOW, last_accessed=NOW, **counts)


class TestTemporalScore:

    @pytest.mark.parametrize("days, expected", [(0, 1.0), (15, 0.5), (30, 0.0), (45, 0.0)])
    def test_recent(self, make_item, days, expected):
        item = make_item("a", "x", days_old=days)
        assert temporal_score(item, "recent", NOW) == pytest.approx(expected)

    @pytest.mark.parametrize("days, expected", [(0, 0.0), (15, 0.5), (60, 1.0)])
    def test_historical(self, make_item, days, expected):
        item = make_item("a", "x", days_old=days)
        assert temporal_score(item, "historical", NOW) == pytest.approx(expected)

    def test_all(self, make_item):
        assert temporal_score(make_item("a", "x", days_old=400), "all", NOW) == 0.5


def test_age_with_mixed_timezones():
    aware = NOW.replace(tzinfo=timezone.utc)
    assert age_in_days(NOW - timedelta(days=2), aware) == pytest.approx(2.0)


class TestPreferenceScore:

    def test_type_match(self, make_item):
        preferences = UserPreferences(preferred_types=["code"], language_preferences=[])
        assert preference_score(make_item("a", "x"), preferences) == pytest.approx(0.3)

    def test_topics_capped(self, make_item):
        preferences = UserPreferences(
            preferred_types=[],
            topic_interests=["react", "hooks", "jsx", "component", "vue"],
        )
        item = make_item("a", "react hooks jsx component vue")
        assert preference_score(item, preferences) == pytest.approx(0.4)

    def test_language_is_case_insensitive(self, make_item):
        preferences = UserPreferences(preferred_types=["code"], language_preferences=["TypeScript"])
        item = make_item("a", "x", language="typescript")
        assert preference_score(item, preferences) == pytest.approx(0.6)

    def test_language_ignored_for_non_code(self, make_item):
        preferences = UserPreferences(preferred_types=[], language_preferences=["python"])
        item = make_item("a", "x", item_type="text", language="python")
        assert preference_score(item, preferences) == 0.0

    def test_capped_at_one(self, make_item):
        preferences = UserPreferences(
            preferred_types=["code"],
            topic_interests=["a1", "a2", "a3", "a4"],
            language_preferences=["python"],
        )
        item = make_item("a", "a1 a2 a3 a4", language="python")
        assert preference_score(item, preferences) == pytest.approx(1.0)


class TestUsageScore:

    def test_no_history(self):
        assert usage_score(None) == 0.0

    def test_like(self):
        assert usage_score(usage(like_count=1)) == pytest.approx(0.37)

    def test_like_then_dislike(self):
        assert usage_score(usage(like_count=1, dislike_count=1)) == pytest.approx(0.22)

    def test_dislikes_do_not_count_as_interactions(self):
        assert usage_score(usage(dislike_count=5)) == 0.0

    def test_frequency_saturates(self):
        assert usage_score(usage(view_count=20, use_count=5)) == pytest.approx(0.7)


class TestQualityScore:

    def test_bare_item(self, make_item):
        assert quality_score(make_item("a", "short")) == 0.5

    def test_full_item(self, make_item):
        item = make_item("a", "x" * 500, preview="preview", language="python")
        assert quality_score(item) == pytest.approx(1.0)

    def test_long_content_gets_no_length_bonus(self, make_item):
        assert quality_score(make_item("a", "x" * 2500)) == 0.5


class TestComplexity:

    def test_plain_code(self):
        assert code_complexity("x = 1") == 0.0

    def test_busy_code_saturates(self):
        code = "if (a) { for (b) { while (c) { try { function f() => {} } } } }\n" * 10
        assert code_complexity(code) == pytest.approx(1.0)

    def test_text_uses_length_only(self, make_item):
        item = make_item("a", "if for while " * 100, item_type="text")
        assert complexity(item) == pytest.approx(len(item.content) / 5000)

    def test_code_combines_length_and_structure(self, make_item):
        item = make_item("a", "def f():\n    if x:\n        return 1\n")
        expected = len(item.content) / 5000 + (0.1 + 0.2 + 0.0) * 0.6
        assert complexity(item) == pytest.approx(expected)


def test_freshness(make_item):
    assert freshness(NOW, NOW) == 1.0
    assert freshness(NOW - timedelta(days=365 / 2), NOW) == pytest.approx(0.5)
    assert freshness(NOW - timedelta(days=800), NOW) == 0.0


def test_score_item_weights(make_item):
    preferences = UserPreferences(preferred_types=["code"], language_preferences=[], time_preference="recent")
    item = make_item("a", "short")

    breakdown = score_item(item, preferences, usage=usage(like_count=1), similarity=0.5, now=NOW)

    assert breakdown.semantic == pytest.approx(0.2)
    assert breakdown.temporal == pytest.approx(0.2)
    assert breakdown.preference == pytest.approx(0.06)
    assert breakdown.usage == pytest.approx(0.037)
    assert breakdown.quality == pytest.approx(0.05)
    assert breakdown.total == pytest.approx(0.547)
    assert [name for name, _ in breakdown.components()] == [
        "semantic", "temporal", "preference", "usage", "quality",
    ]


def test_score_without_similarity(make_item):
    breakdown = score_item(make_item("a", "short"), UserPreferences(), now=NOW)
    assert breakdown.semantic == 0.0
