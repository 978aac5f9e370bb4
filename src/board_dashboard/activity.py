"""
Calendar-bucketed activity series.

Every series ends at the bucket containing ``now`` and counts, per bucket, the
cards created in it and how many of those are completed. Completion time is
not recorded upstream, so a completed card is attributed to the bucket of its
creation date.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import AbstractSet, Callable, Collection, Dict, Hashable, Iterable, List, Literal, Optional, Tuple

from .dataset import is_card_completed, iter_dated_cards
from .models import ActivityBucket, Card


Granularity = Literal["month", "week", "day"]

DEFAULT_PERIODS: Dict[str, int] = {"month": 6, "week": 4, "day": 14}

MONTH_NAMES = {
    "en": (
        "January",
        "February",
        "March",
        "April",
        "May",
        "June",
        "July",
        "August",
        "September",
        "October",
        "November",
        "December",
    ),
    "zh-TW": tuple(f"{month}月" for month in range(1, 13)),
}

_END_OF_DAY = time(23, 59, 59, 999000)


def round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero for non-negative inputs."""
    if denominator == 0:
        return 0
    return (2 * numerator + denominator) // (2 * denominator)


def percent(part: int, whole: int) -> int:
    return round_half_up(part * 100, whole)


def days_since_sunday(day: date) -> int:
    return (day.weekday() + 1) % 7


def month_label(month: int, locale: str = "en") -> str:
    names = MONTH_NAMES.get(locale, MONTH_NAMES["en"])
    return names[month - 1]


def short_date_label(day: date) -> str:
    return f"{day.month}/{day.day}"


def _shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def _month_buckets(now: datetime, periods: int, locale: str):
    buckets = []
    for offset in range(periods - 1, -1, -1):
        year, month = _shift_month(now.year, now.month, -offset)
        next_year, next_month = _shift_month(year, month, 1)
        start = datetime(year, month, 1, tzinfo=now.tzinfo)
        end = datetime(next_year, next_month, 1, tzinfo=now.tzinfo) - timedelta(microseconds=1)
        buckets.append(((year, month), month_label(month, locale), start, end))
    return buckets


def _day_buckets(now: datetime, periods: int):
    today = now.date()
    buckets = []
    for offset in range(periods - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = datetime.combine(day, time.min, tzinfo=now.tzinfo)
        end = datetime.combine(day, _END_OF_DAY, tzinfo=now.tzinfo)
        buckets.append((day, short_date_label(day), start, end))
    return buckets


def _week_buckets(now: datetime, periods: int):
    today = now.date()
    current_week_start = today - timedelta(days=days_since_sunday(today))
    buckets = []
    for offset in range(periods - 1, -1, -1):
        week_start = current_week_start - timedelta(days=7 * offset)
        week_end = week_start + timedelta(days=6)
        start = datetime.combine(week_start, time.min, tzinfo=now.tzinfo)
        end = datetime.combine(week_end, _END_OF_DAY, tzinfo=now.tzinfo)
        buckets.append((week_start, short_date_label(week_start), start, end))
    return buckets


def _week_start(created_at: datetime) -> Optional[date]:
    try:
        return created_at.date() - timedelta(days=days_since_sunday(created_at.date()))
    except OverflowError:
        # The Sunday before 0001-01-01 is not representable.
        return None


def _bucket_key(granularity: Granularity) -> Callable[[datetime], Hashable]:
    if granularity == "month":
        return lambda created_at: (created_at.year, created_at.month)
    if granularity == "day":
        return lambda created_at: created_at.date()
    return _week_start


def activity_series(
    cards: Iterable[Card],
    terminal_list_ids: AbstractSet[str],
    granularity: Granularity,
    now: datetime,
    periods: Optional[int] = None,
    completed_labels: Collection[str] = (),
    locale: str = "en",
) -> List[ActivityBucket]:
    """
    Bucket ``cards`` by creation time into ``periods`` consecutive calendar
    buckets ending at ``now``.

    Month buckets follow calendar months, day buckets calendar dates and week
    buckets Sunday-aligned weeks. Cards with a missing or unparsable
    ``created_at``, or created outside the window, are not counted. Weekly
    buckets also carry ``productivity``, the completed share of created cards
    as an integer percentage.
    """

    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    periods = DEFAULT_PERIODS[granularity] if periods is None else periods

    if granularity == "month":
        layout = _month_buckets(now, periods, locale)
    elif granularity == "day":
        layout = _day_buckets(now, periods)
    elif granularity == "week":
        layout = _week_buckets(now, periods)
    else:
        raise ValueError(f"Unsupported granularity: {granularity!r}")

    index_by_key = {key: index for index, (key, _, _, _) in enumerate(layout)}
    created = [0] * len(layout)
    completed = [0] * len(layout)
    key_for = _bucket_key(granularity)

    for card, created_at in iter_dated_cards(cards, now.tzinfo):
        index = index_by_key.get(key_for(created_at))
        if index is None:
            continue
        created[index] += 1
        if is_card_completed(card, terminal_list_ids, completed_labels):
            completed[index] += 1

    return [
        ActivityBucket(
            label=label,
            start=start,
            end=end,
            created=created[index],
            completed=completed[index],
            productivity=percent(completed[index], created[index]) if granularity == "week" else 0,
        )
        for index, (_, label, start, end) in enumerate(layout)
    ]


def monthly_activity(cards, terminal_list_ids, now, **kwargs) -> List[ActivityBucket]:
    return activity_series(cards, terminal_list_ids, "month", now, **kwargs)


def daily_activity(cards, terminal_list_ids, now, **kwargs) -> List[ActivityBucket]:
    return activity_series(cards, terminal_list_ids, "day", now, **kwargs)


def weekly_activity(cards, terminal_list_ids, now, **kwargs) -> List[ActivityBucket]:
    return activity_series(cards, terminal_list_ids, "week", now, **kwargs)
