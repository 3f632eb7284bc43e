"""Tests for the inclusive leave duration calculator."""

from __future__ import annotations

from datetime import date

import pytest

from leaveflow.exceptions import AppError
from leaveflow.services.duration import calculate_duration_days


def test_single_day_is_one() -> None:
    assert calculate_duration_days(date(2024, 3, 15), date(2024, 3, 15)) == 1


def test_inclusive_range() -> None:
    assert calculate_duration_days(date(2024, 12, 25), date(2024, 12, 27)) == 3


def test_six_day_range() -> None:
    assert calculate_duration_days(date(2024, 3, 15), date(2024, 3, 20)) == 6


def test_counts_weekends() -> None:
    """Calendar days, not working days: Fri..Mon is four days."""
    assert calculate_duration_days(date(2025, 1, 3), date(2025, 1, 6)) == 4


def test_spans_month_and_leap_day() -> None:
    assert calculate_duration_days(date(2024, 2, 28), date(2024, 3, 1)) == 3


def test_spans_year_boundary() -> None:
    assert calculate_duration_days(date(2024, 12, 31), date(2025, 1, 2)) == 3


def test_reversed_range_rejected() -> None:
    with pytest.raises(AppError) as exc_info:
        calculate_duration_days(date(2024, 3, 20), date(2024, 3, 15))
    assert exc_info.value.status_code == 400
