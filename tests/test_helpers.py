from datetime import datetime, timedelta, timezone

import pytest

from helpers import page_bounds, to_fixed, window_contains


@pytest.mark.parametrize(
    "number, expected",
    [
        (19.995, 20.0),
        (19.994, 19.99),
        (2.675, 2.68),
        (10, 10.0),
        (-1.005, -1.01),
    ],
)
def test_to_fixed_rounds_half_up(number, expected):
    assert to_fixed(number, 2) == expected


def test_to_fixed_other_precision():
    assert to_fixed(3.14159, 3) == 3.142
    assert to_fixed(7.5, 0) == 8.0


class TestWindowContains:
    now = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def test_inside(self):
        assert window_contains(self.now - timedelta(days=1), self.now + timedelta(days=1), self.now)

    def test_before_start(self):
        start = self.now + timedelta(hours=1)
        assert not window_contains(start, start + timedelta(days=1), self.now)

    def test_after_end(self):
        end = self.now - timedelta(hours=1)
        assert not window_contains(end - timedelta(days=1), end, self.now)

    def test_bounds_are_exclusive(self):
        assert not window_contains(self.now, self.now + timedelta(days=1), self.now)
        assert not window_contains(self.now - timedelta(days=1), self.now, self.now)

    def test_inverted_window(self):
        assert not window_contains(self.now + timedelta(days=1), self.now - timedelta(days=1), self.now)


@pytest.mark.parametrize(
    "record_per_page, page, expected",
    [
        (None, None, (0, 10)),
        ("10", "3", (20, 10)),
        ("5", "1", (0, 5)),
        ("0", "2", (10, 10)),
        ("-4", "-1", (0, 10)),
        ("abc", "x", (0, 10)),
        ("25", "2", (25, 25)),
    ],
)
def test_page_bounds(record_per_page, page, expected):
    assert page_bounds(record_per_page, page) == expected
