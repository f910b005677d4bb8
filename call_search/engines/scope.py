"""Scope resolver - turns a scope and time-range filter into a lookback window."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..models import Scope, TimeRange

TIME_RANGE_DAYS = {
    TimeRange.LAST_30: 30,
    TimeRange.LAST_90: 90,
    TimeRange.LAST_180: 180,
    TimeRange.LAST_365: 365,
    TimeRange.ALL: 3650,
}

# A single account or deal has far sparser call volume than the whole org
GLOBAL_LOOKBACK_DAYS = 180
ENTITY_LOOKBACK_DAYS = 730


@dataclass(frozen=True)
class SearchWindow:
    start: datetime
    end: datetime
    lookback_days: int


def resolve_lookback_days(scope: Scope | str, time_range: TimeRange | str | None = None) -> int:
    """Lookback in days; an explicit time range wins over the scope default.

    Raises:
        ValueError: If the scope or time range is not recognised
    """
    scope = Scope(scope)
    if time_range:
        return TIME_RANGE_DAYS[TimeRange(time_range)]
    return GLOBAL_LOOKBACK_DAYS if scope == Scope.GLOBAL else ENTITY_LOOKBACK_DAYS


def resolve_window(
    scope: Scope | str, time_range: TimeRange | str | None, now: datetime
) -> SearchWindow:
    days = resolve_lookback_days(scope, time_range)
    return SearchWindow(start=now - timedelta(days=days), end=now, lookback_days=days)
