"""Timeframe parsing and overlap.

``parse_timeframe`` understands the shorthand used in filters and contexts
(``Q4_2025``, ``2025-11``, ``last_30_days``, ``this_quarter``...) and
normalises it to an inclusive UTC ``Timeframe``. Unparseable input yields
``None``; callers treat that as "constraint not applicable".
"""

from __future__ import annotations

import calendar
import logging
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

from contextops.domain.model import Granularity, Timeframe, utcnow

if TYPE_CHECKING:
    from contextops.domain.model import Clock

log = logging.getLogger(__name__)

type TimeframeSpec = Timeframe | Mapping[str, object] | str | date | None

_MIN = datetime.min.replace(tzinfo=UTC)
_MAX = datetime.max.replace(tzinfo=UTC)

_QUARTER = re.compile(r"^Q([1-4])[_\s-]*(\d{4})$", re.IGNORECASE)
_YEAR = re.compile(r"^(\d{4})$")
_MONTH = re.compile(r"^(\d{4})-(\d{2})$")
_DAY = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_LAST_DAYS = re.compile(r"^last[_-]?(\d+)[_-]?days?$", re.IGNORECASE)
_THIS_PERIOD = re.compile(r"^this[_-]?(week|month|quarter|year)$", re.IGNORECASE)
_LAST_PERIOD = re.compile(r"^last[_-]?(week|month|quarter|year)$", re.IGNORECASE)
_INTERVAL = re.compile(r"^(\d+)\s*(mo|s|m|h|d|w|y)$", re.IGNORECASE)

_INTERVAL_UNITS: dict[str, timedelta] = {
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
    "mo": timedelta(days=30),
    "y": timedelta(days=365),
}


def parse_timeframe(spec: TimeframeSpec, *, clock: Clock = utcnow) -> Timeframe | None:
    """Normalise a timeframe specification, or return ``None`` if it cannot be read."""

    if spec is None:
        return None
    if isinstance(spec, Timeframe):
        return spec
    if isinstance(spec, Mapping):
        return _from_mapping(spec)
    if isinstance(spec, datetime):
        return Timeframe(start=spec, end=spec, granularity=Granularity.INSTANT)
    if isinstance(spec, date):
        return _day_bounds(spec.year, spec.month, spec.day)

    text = str(spec).strip()
    if not text:
        return None
    try:
        return _from_text(text, now=clock())
    except (ValueError, OverflowError):
        log.debug("Unparseable timeframe %r", text)
        return None


def parse_interval(spec: str | int | float | timedelta) -> timedelta | None:
    """Parse ``"7d"``-style intervals. Bare numbers are milliseconds."""

    if isinstance(spec, timedelta):
        return spec
    try:
        if isinstance(spec, int | float):
            return timedelta(milliseconds=spec)
        match = _INTERVAL.match(str(spec).strip())
        if match is None:
            return None
        return int(match.group(1)) * _INTERVAL_UNITS[match.group(2).lower()]
    except (ValueError, OverflowError):
        log.debug("Interval %r out of range", spec)
        return None


def parse_instant(value: object) -> datetime | None:
    """Read a datetime from an ISO-8601 string; ``None`` when unreadable."""

    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if not isinstance(value, str) or not value.strip():
        return None
    normalized = value.strip()
    if normalized.endswith(("Z", "z")):
        normalized = normalized[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def timeframes_overlap(first: Timeframe | None, second: Timeframe | None) -> bool:
    """Inclusive interval overlap; an unspecified side overlaps everything."""

    if first is None or second is None:
        return True
    if first.is_unspecified or second.is_unspecified:
        return True
    first_start, first_end = first.start or _MIN, first.end or _MAX
    second_start, second_end = second.start or _MIN, second.end or _MAX
    return first_start <= second_end and second_start <= first_end


def _from_mapping(spec: Mapping[str, object]) -> Timeframe | None:
    start = parse_instant(spec.get("start"))
    if start is None:
        return None
    end = parse_instant(spec.get("end")) or start
    raw_granularity = spec.get("granularity")
    try:
        granularity = Granularity(raw_granularity) if raw_granularity else Granularity.DAY
    except ValueError:
        granularity = Granularity.DAY
    return Timeframe(start=start, end=end, granularity=granularity)


def _from_text(text: str, *, now: datetime) -> Timeframe | None:
    if match := _QUARTER.match(text):
        return _quarter_bounds(int(match.group(2)), int(match.group(1)))
    if match := _YEAR.match(text):
        return _year_bounds(int(match.group(1)))
    if match := _MONTH.match(text):
        return _month_bounds(int(match.group(1)), int(match.group(2)))
    if match := _DAY.match(text):
        return _day_bounds(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    if match := _LAST_DAYS.match(text):
        end = now.astimezone(UTC)
        return Timeframe(
            start=end - timedelta(days=int(match.group(1))),
            end=end,
            granularity=Granularity.DAY,
        )
    if match := _THIS_PERIOD.match(text):
        return _current_period(match.group(1).lower(), now.astimezone(UTC).date())
    if match := _LAST_PERIOD.match(text):
        return _previous_period(match.group(1).lower(), now.astimezone(UTC).date())

    instant = parse_instant(text)
    if instant is None:
        log.debug("Unparseable timeframe %r", text)
        return None
    return Timeframe(start=instant, end=instant, granularity=Granularity.INSTANT)


def _span(first: date, last: date, granularity: Granularity) -> Timeframe:
    return Timeframe(
        start=datetime.combine(first, time.min, tzinfo=UTC),
        end=datetime.combine(last, time.max, tzinfo=UTC),
        granularity=granularity,
    )


def _day_bounds(year: int, month: int, day: int) -> Timeframe:
    current = date(year, month, day)
    return _span(current, current, Granularity.DAY)


def _month_bounds(year: int, month: int) -> Timeframe:
    last_day = calendar.monthrange(year, month)[1]
    return _span(date(year, month, 1), date(year, month, last_day), Granularity.MONTH)


def _quarter_bounds(year: int, quarter: int) -> Timeframe:
    first_month = (quarter - 1) * 3 + 1
    last_month = first_month + 2
    last_day = calendar.monthrange(year, last_month)[1]
    return _span(
        date(year, first_month, 1),
        date(year, last_month, last_day),
        Granularity.QUARTER,
    )


def _year_bounds(year: int) -> Timeframe:
    return _span(date(year, 1, 1), date(year, 12, 31), Granularity.YEAR)


def _week_start(today: date) -> date:
    # Weeks start on Sunday.
    days_since_sunday = (today.weekday() + 1) % 7
    return today - timedelta(days=days_since_sunday)


def _current_period(period: str, today: date) -> Timeframe | None:
    match period:
        case "week":
            start = _week_start(today)
            return _span(start, start + timedelta(days=6), Granularity.WEEK)
        case "month":
            return _month_bounds(today.year, today.month)
        case "quarter":
            return _quarter_bounds(today.year, (today.month - 1) // 3 + 1)
        case "year":
            return _year_bounds(today.year)
    return None


def _previous_period(period: str, today: date) -> Timeframe | None:
    match period:
        case "week":
            start = _week_start(today) - timedelta(days=7)
            return _span(start, start + timedelta(days=6), Granularity.WEEK)
        case "month":
            if today.month == 1:
                return _month_bounds(today.year - 1, 12)
            return _month_bounds(today.year, today.month - 1)
        case "quarter":
            quarter = (today.month - 1) // 3 + 1
            if quarter == 1:
                return _quarter_bounds(today.year - 1, 4)
            return _quarter_bounds(today.year, quarter - 1)
        case "year":
            return _year_bounds(today.year - 1)
    return None


__all__ = [
    "TimeframeSpec",
    "parse_instant",
    "parse_interval",
    "parse_timeframe",
    "timeframes_overlap",
]
