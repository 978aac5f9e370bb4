from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AbstractSet, Collection, Dict, Iterable, List, Sequence

from .activity import activity_series, percent, round_half_up
from .dataset import is_card_completed, iter_dated_cards, normalize_priority, parse_timestamp
from .models import Card, PriorityEfficiency, WorkEfficiencyStats


DEFAULT_PRIORITY_ORDER = ("high", "medium", "low", "unset")


def resolve_priority_order(priority_order: Sequence[str], default_priority: str) -> List[str]:
    """
    Normalized priority order that always contains the default bucket.

    A renamed default replaces the ``unset`` entry in place, or is appended
    when the order has no ``unset`` entry.
    """

    order = [priority.strip().lower() for priority in priority_order]
    default = normalize_priority(None, default_priority)
    if default in order:
        return order
    if "unset" in order:
        return [default if priority == "unset" else priority for priority in order]
    return order + [default]


def rolling_completion_rate(
    cards: Iterable[Card],
    terminal_list_ids: AbstractSet[str],
    now: datetime,
    window_days: int = 30,
    completed_labels: Collection[str] = (),
) -> int:
    window_start = now - timedelta(days=window_days)
    considered = 0
    completed = 0
    for card, created_at in iter_dated_cards(cards, now.tzinfo):
        if not (window_start <= created_at <= now):
            continue
        considered += 1
        if is_card_completed(card, terminal_list_ids, completed_labels):
            completed += 1
    return percent(completed, considered)


def priority_efficiency(
    cards: Iterable[Card],
    terminal_list_ids: AbstractSet[str],
    now: datetime,
    priority_order: Sequence[str] = DEFAULT_PRIORITY_ORDER,
    default_priority: str = "unset",
    completed_labels: Collection[str] = (),
) -> List[PriorityEfficiency]:
    """
    Per-priority card counts and average age of completed cards.

    Completion time is not tracked upstream, so ``average_days`` is the whole
    days elapsed between ``created_at`` and ``now`` for completed cards. It
    approximates latency only for cards that were closed recently.

    Priorities are matched trimmed and case-folded, the same way the
    composer groups ``cards_by_priority``; blank priorities count as
    ``default_priority``.
    """

    priority_order = resolve_priority_order(priority_order, default_priority)
    counts: Dict[str, int] = {priority: 0 for priority in priority_order}
    completed: Dict[str, int] = {priority: 0 for priority in priority_order}
    ages: Dict[str, List[int]] = {priority: [] for priority in priority_order}

    for card in cards:
        priority = normalize_priority(card.priority, default_priority)
        if priority not in counts:
            continue
        counts[priority] += 1
        if not is_card_completed(card, terminal_list_ids, completed_labels):
            continue
        completed[priority] += 1
        created_at = parse_timestamp(card.created_at, now.tzinfo)
        if created_at is not None:
            ages[priority].append(max(0, (now - created_at).days))

    return [
        PriorityEfficiency(
            priority=priority,
            count=counts[priority],
            completed=completed[priority],
            average_days=round_half_up(sum(ages[priority]), len(ages[priority])),
        )
        for priority in priority_order
        if counts[priority]
    ]


def work_efficiency(
    cards: Sequence[Card],
    terminal_list_ids: AbstractSet[str],
    now: datetime,
    completion_window_days: int = 30,
    daily_periods: int = 14,
    weekly_periods: int = 4,
    priority_order: Sequence[str] = DEFAULT_PRIORITY_ORDER,
    default_priority: str = "unset",
    completed_labels: Collection[str] = (),
) -> WorkEfficiencyStats:
    if not cards:
        return WorkEfficiencyStats()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    return WorkEfficiencyStats(
        average_completion_rate=rolling_completion_rate(
            cards, terminal_list_ids, now, completion_window_days, completed_labels
        ),
        daily_productivity=tuple(
            activity_series(
                cards, terminal_list_ids, "day", now, periods=daily_periods, completed_labels=completed_labels
            )
        ),
        priority_efficiency=tuple(
            priority_efficiency(
                cards,
                terminal_list_ids,
                now,
                priority_order=priority_order,
                default_priority=default_priority,
                completed_labels=completed_labels,
            )
        ),
        weekly_trend=tuple(
            activity_series(
                cards, terminal_list_ids, "week", now, periods=weekly_periods, completed_labels=completed_labels
            )
        ),
    )
