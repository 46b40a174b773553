"""
Tests for the request time source.
"""
from pastedrop import clock
from pastedrop.clock import ms_to_iso, resolve_now_ms, wall_clock_ms
from pastedrop.config import settings


def test_wall_clock_is_epoch_ms():
    # 2020-01-01 in ms; catches accidental seconds
    assert wall_clock_ms() > 1_577_836_800_000


def test_override_ignored_without_test_mode(monkeypatch):
    monkeypatch.setattr(settings, "TEST_MODE", False)
    monkeypatch.setattr(clock, "wall_clock_ms", lambda: 111)

    assert resolve_now_ms("5000") == 111


def test_override_honoured_in_test_mode(monkeypatch):
    monkeypatch.setattr(settings, "TEST_MODE", True)

    assert resolve_now_ms("5000") == 5000


def test_bad_override_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "TEST_MODE", True)
    monkeypatch.setattr(clock, "wall_clock_ms", lambda: 111)

    assert resolve_now_ms("tomorrow") == 111
    assert resolve_now_ms(None) == 111
    assert resolve_now_ms("") == 111


def test_ms_to_iso():
    assert ms_to_iso(None) is None
    assert ms_to_iso(0) == "1970-01-01T00:00:00.000Z"
    assert ms_to_iso(1_700_000_000_123) == "2023-11-14T22:13:20.123Z"


def test_ms_to_iso_clamps_past_datetime_range():
    assert ms_to_iso(10**20) == "9999-12-31T23:59:59.999Z"
