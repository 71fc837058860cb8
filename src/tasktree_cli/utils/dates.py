"""Calendar date helpers.

Due dates are plain calendar dates, so "today" is the date in the user's
local timezone rather than in UTC.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta

import tzlocal

from tasktree_cli.exceptions import ValidationError

_RELATIVE_DAYS = {
    "yesterday": -1,
    "today": 0,
    "tomorrow": 1,
}


def today() -> date:
    """Current date in the system's local timezone."""
    return datetime.now(tzlocal.get_localzone()).date()


def parse_date(value: str | date | None, *, reference: date | None = None) -> date | None:
    """Parse a user-supplied due date.

    Accepts ISO dates (``2024-05-01``), ``today``/``tomorrow``/``yesterday``
    and day offsets such as ``+3d`` or ``-1d``.

    Raises:
        ValidationError: If the value cannot be understood
    """
    if value is None or isinstance(value, date):
        return value

    text = value.strip().lower()
    if not text:
        return None

    reference = reference or today()
    if text in _RELATIVE_DAYS:
        return reference + timedelta(days=_RELATIVE_DAYS[text])

    if text[0] in "+-" and text.endswith("d") and text[1:-1].isdigit():
        days = int(text[1:-1])
        return reference + timedelta(days=days if text[0] == "+" else -days)

    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid date: {value!r} (expected YYYY-MM-DD, today, tomorrow or +Nd)"
        ) from None


def days_until(due: date, reference: date) -> int:
    """Whole days from ``reference`` to ``due`` (negative when overdue)."""
    return (due - reference).days
