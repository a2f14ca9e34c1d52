"""Number formatting for the status lines."""

from __future__ import annotations

from decimal import Decimal

SECONDS_IN_A_DAY = 60 * 60 * 24


def format_number(value: float | Decimal, width: int = 14) -> str:
    return f"{value:,.4f}".rjust(width)


def format_percent(value: float | Decimal | None, width: int = 14) -> str:
    if value is None:
        return format_number(0, width)
    return format_number(value * 100, width)


def seconds_to_human(seconds: int) -> str:
    """HH:MM:SS clock reading of *seconds*, wrapping at one day."""
    seconds = int(seconds) % SECONDS_IN_A_DAY
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
