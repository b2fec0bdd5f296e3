# ============================================================================
# FILE: tests/unit/test_clock.py
# ============================================================================
"""
Unit tests for clock time helpers
"""

from datetime import datetime

import pytest

from app.utils.clock import current_clock, normalize_times, to_clock_24h, to_display_12h


@pytest.mark.parametrize("value,expected", [
    ("08:00", "08:00"),
    ("8:05", "08:05"),
    ("20:00", "20:00"),
    ("8:00 AM", "08:00"),
    ("8:00 PM", "20:00"),
    ("9pm", "21:00"),
    ("9PM", "21:00"),
    ("7:30am", "07:30"),
    ("12:00 PM", "12:00"),
    ("12 am", "00:00"),
    ("10 p.m.", "22:00"),
    ("  6:30 AM ", "06:30"),
])
def test_to_clock_24h(value, expected):
    assert to_clock_24h(value) == expected


@pytest.mark.parametrize("value", ["", None, "noon", "25:00", "8:75", "13pm", "0 am", "8"])
def test_to_clock_24h_rejects(value):
    assert to_clock_24h(value) is None


@pytest.mark.parametrize("hhmm,expected", [
    ("08:00", "8:00 AM"),
    ("20:00", "8:00 PM"),
    ("12:30", "12:30 PM"),
    ("00:15", "12:15 AM"),
])
def test_to_display_12h(hhmm, expected):
    assert to_display_12h(hhmm) == expected


def test_normalize_times():
    assert normalize_times(["8:00 PM", "20:00", "8am", "bogus"]) == ["08:00", "20:00"]


def test_current_clock():
    assert current_clock(datetime(2024, 5, 1, 7, 5, 59)) == "07:05"
