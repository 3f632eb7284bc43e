"""Leave duration calculator.

A request covers every calendar day from its start date to its end date,
both inclusive, so a single-day request has a duration of 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import status

from leaveflow.exceptions import AppError

if TYPE_CHECKING:
    from datetime import date


def calculate_duration_days(start_date: date, end_date: date) -> int:
    """Return the inclusive day count between two dates.

    Raises 400 when the range is reversed.
    """
    if end_date < start_date:
        raise AppError("end_date must not be before start_date", status_code=status.HTTP_400_BAD_REQUEST)
    return (end_date - start_date).days + 1
