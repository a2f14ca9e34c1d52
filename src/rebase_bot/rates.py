"""Rebase rate projections derived from epoch and supply counters."""

from __future__ import annotations

import math

from rebase_bot.models import RateProjection, RawCounters

SECONDS_IN_A_DAY = 60 * 60 * 24

# Horizon name -> days
HORIZONS: dict[str, int] = {
    "daily": 1,
    "four_day": 4,
    "five_day": 5,
    "weekly": 7,
    "monthly": 30,
    "yearly": 365,
}


def _ratio(numerator: float, denominator: float) -> float:
    # Zero denominators propagate as non-finite values instead of raising
    if denominator == 0:
        if numerator == 0:
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def compound_rate(rate: float, days: float = 1, periods_per_day: float = 1) -> float:
    """Growth over *days* when *rate* compounds *periods_per_day* times a day."""
    try:
        return (1 + rate) ** (periods_per_day * days) - 1
    except OverflowError:
        return math.inf


def periods_per_day(blocks_per_second: float, epoch_length: int) -> float:
    return _ratio(blocks_per_second * SECONDS_IN_A_DAY, float(epoch_length))


def rebase_rate(distribute: int, circulating_supply: int) -> float:
    return _ratio(float(distribute), float(circulating_supply))


def project(counters: RawCounters) -> RateProjection:
    rate = rebase_rate(counters.distribute, counters.circulating_supply)
    per_day = periods_per_day(counters.blocks_per_second, counters.epoch_length)
    return RateProjection(
        rebase_rate=rate,
        periods_per_day=per_day,
        horizons={
            name: compound_rate(rate, days, per_day)
            for name, days in HORIZONS.items()
        },
    )
