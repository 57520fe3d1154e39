"""Tests for shared helpers."""

import logging
from datetime import datetime, timezone

import pytest

from cronscale.core.utils import TimeUtils, parse_integer, resolve_reference, setup_logging


@pytest.mark.parametrize("token,expected", [
    ("5", 5),
    (" 12 ", 12),
    ("-3", -3),
    ("+4", 4),
    ("1_000", None),
    ("4.5", None),
    ("", None),
    ("abc", None),
])
def test_parse_integer(token, expected):
    assert parse_integer(token) == expected


def test_resolve_reference_prefers_literals():
    assert resolve_reference("3", {'3': 9}) == 3
    assert resolve_reference(" busy ", {'busy': 9}) == 9
    assert resolve_reference("idle", {'busy': 9}) is None


def test_resolve_now(wednesday_10am):
    assert TimeUtils.resolve_now(wednesday_10am) is wednesday_10am
    assert TimeUtils.resolve_now(lambda: wednesday_10am) is wednesday_10am
    assert TimeUtils.resolve_now().tzinfo == timezone.utc


def test_cron_weekday():
    # 2025-10-19 is a Sunday
    assert TimeUtils.cron_weekday(datetime(2025, 10, 19)) == 0
    assert TimeUtils.cron_weekday(datetime(2025, 10, 15)) == 3


def test_setup_logging(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))
    setup_logging(logging.DEBUG)
    assert calls['level'] == logging.DEBUG
    assert '%(levelname)s' in calls['format']
