"""Tests for notification levels and filtering."""

import itertools

import pytest

from stratwire.exceptions import MalformedArguments
from stratwire.notifications import (
    Notification,
    NotificationLevel,
    Severity,
    meets_threshold,
)

ALL = NotificationLevel.ALL
IMPORTANT = NotificationLevel.IMPORTANT
ERRORS_ONLY = NotificationLevel.ERRORS_ONLY
NONE = NotificationLevel.NONE


class TestMeetsThreshold:

    @pytest.mark.parametrize("severity,level,expected", [
        (Severity.INFO, ALL, True),
        (Severity.INFO, IMPORTANT, False),
        (Severity.INFO, ERRORS_ONLY, False),
        (Severity.INFO, NONE, False),
        (Severity.WARNING, ALL, True),
        (Severity.WARNING, IMPORTANT, True),
        (Severity.WARNING, ERRORS_ONLY, False),
        (Severity.WARNING, NONE, False),
        (Severity.ERROR, ALL, True),
        (Severity.ERROR, IMPORTANT, True),
        (Severity.ERROR, ERRORS_ONLY, True),
        (Severity.ERROR, NONE, False),
    ])
    def test_threshold_table(self, severity, level, expected):
        assert meets_threshold(severity, level) is expected

    def test_nothing_passes_at_none(self):
        assert not any(meets_threshold(s, NONE) for s in Severity)

    def test_is_pure(self):
        for severity, level in itertools.product(Severity, NotificationLevel):
            first = meets_threshold(severity, level)
            assert all(meets_threshold(severity, level) == first for _ in range(3))

    def test_more_verbose_level_passes_superset(self):
        """Anything passing a level also passes every more verbose level."""
        for severity in Severity:
            for low, high in itertools.product(NotificationLevel, repeat=2):
                if low < high and meets_threshold(severity, low):
                    assert meets_threshold(severity, high)


class TestLevelOrdering:

    def test_sorted_order(self):
        assert sorted(NotificationLevel) == [NONE, ERRORS_ONLY, IMPORTANT, ALL]

    def test_total_order(self):
        for a, b in itertools.product(NotificationLevel, repeat=2):
            assert (a < b) + (a == b) + (a > b) == 1

    def test_transitive(self):
        for a, b, c in itertools.product(NotificationLevel, repeat=3):
            if a > b and b > c:
                assert a > c

    def test_comparison_with_other_types_not_supported(self):
        with pytest.raises(TypeError):
            ALL < 3  # noqa: B015


class TestLevelParsing:

    @pytest.mark.parametrize("text,expected", [
        ("all", ALL),
        ("ALL", ALL),
        ("Important", IMPORTANT),
        ("errorsonly", ERRORS_ONLY),
        ("ErrorsOnly", ERRORS_ONLY),
        (" none ", NONE),
    ])
    def test_parse_case_insensitive(self, text, expected):
        assert NotificationLevel.parse(text) is expected

    @pytest.mark.parametrize("text", ["", "critical", "errors", "al l"])
    def test_parse_rejects_unknown(self, text):
        with pytest.raises(MalformedArguments) as exc_info:
            NotificationLevel.parse(text)
        assert exc_info.value.usage.startswith("/notifications")

    def test_labels(self):
        assert ERRORS_ONLY.label == "ErrorsOnly"
        assert IMPORTANT.label == "Important"


class TestNotification:

    def test_constructors(self):
        assert Notification.info("a").severity is Severity.INFO
        assert Notification.warning("b").severity is Severity.WARNING
        assert Notification.error("c").severity is Severity.ERROR

    def test_passes_uses_threshold(self):
        assert Notification.warning("w").passes(IMPORTANT)
        assert not Notification.warning("w").passes(ERRORS_ONLY)

    def test_is_immutable(self):
        note = Notification.info("x")
        with pytest.raises(AttributeError):
            note.text = "y"
