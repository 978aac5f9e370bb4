from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable, Optional, Sequence

from .activity import activity_series, percent
from .configuration import DashboardConfig
from .dataset import BoardDataset, coerce_timezone, normalize_priority
from .distribution import distribution_by_category, list_card_counts
from .efficiency import work_efficiency
from .models import BoardList, Card, DashboardStats, StatsComposition
from .repository import BoardDataRepository

logger = logging.getLogger(__name__)

ListFetcher = Callable[[], Awaitable[Sequence[BoardList]]]
CardFetcher = Callable[[], Awaitable[Sequence[Card]]]
Clock = Callable[[], datetime]


class DashboardStatsComposer:
    """
    Builds the task-board dashboard report from one fetched snapshot.

    Lists and cards are fetched concurrently. Any failure while fetching is
    logged and turns into ``DashboardStats.empty()``, so the caller renders the
    same all-zero dashboard for "no data" and "fetch failed";
    ``compose_with_status`` keeps the error for callers that need to tell the
    two apart.
    """

    def __init__(
        self,
        fetch_lists: ListFetcher,
        fetch_cards: CardFetcher,
        config: Optional[DashboardConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.fetch_lists = fetch_lists
        self.fetch_cards = fetch_cards
        self.config = config or DashboardConfig()
        self.clock = clock

    @classmethod
    def from_repository(
        cls,
        repository: BoardDataRepository,
        config: Optional[DashboardConfig] = None,
        clock: Optional[Clock] = None,
    ) -> "DashboardStatsComposer":
        return cls(repository.fetch_lists, repository.fetch_cards, config=config, clock=clock)

    async def compose(self) -> DashboardStats:
        return (await self.compose_with_status()).stats

    async def compose_with_status(self) -> StatsComposition:
        try:
            lists, cards = await asyncio.gather(self.fetch_lists(), self.fetch_cards())
        except Exception as exc:
            logger.warning("Error getting dashboard stats: %s", exc)
            return StatsComposition(stats=DashboardStats.empty(), error=str(exc) or type(exc).__name__)

        stats = self.build(lists, cards)
        logger.debug(
            "Composed dashboard stats: %s lists, %s cards, %s%% complete",
            stats.total_lists,
            stats.total_cards,
            stats.completion_rate,
        )
        return StatsComposition(stats=stats)

    def build(self, lists: Sequence[BoardList], cards: Sequence[Card]) -> DashboardStats:
        labels = self.config.labels
        windows = self.config.windows
        completed_labels = (labels.completed_label,)
        dataset = BoardDataset(lists=lists, cards=cards, completed_labels=completed_labels)
        now = self._now()

        cards_by_status = distribution_by_category(
            dataset.cards, lambda card: card.status, labels.default_status, self.config.palette
        )
        cards_by_priority = distribution_by_category(
            dataset.cards,
            lambda card: normalize_priority(card.priority, labels.default_priority),
            labels.default_priority,
            self.config.palette,
        )
        monthly = ()
        if dataset.cards:
            monthly = tuple(
                activity_series(
                    dataset.cards,
                    dataset.terminal_list_ids,
                    "month",
                    now,
                    periods=windows.months,
                    completed_labels=completed_labels,
                    locale=labels.locale,
                )
            )

        return DashboardStats(
            total_lists=len(dataset.lists),
            total_cards=len(dataset.cards),
            cards_by_status=tuple(cards_by_status),
            cards_by_priority=tuple(cards_by_priority),
            list_activity=tuple(list_card_counts(dataset.lists, dataset.cards)),
            monthly_activity=monthly,
            completion_rate=percent(dataset.completed_count(), len(dataset.cards)),
            work_efficiency=work_efficiency(
                dataset.cards,
                dataset.terminal_list_ids,
                now,
                completion_window_days=windows.completion_rate_days,
                daily_periods=windows.days,
                weekly_periods=windows.weeks,
                priority_order=labels.priority_order,
                default_priority=labels.default_priority,
                completed_labels=completed_labels,
            ),
        )

    def _now(self) -> datetime:
        tz = coerce_timezone(self.config.timezone)
        if self.clock is None:
            return datetime.now(tz)
        current = self.clock()
        if current.tzinfo is None:
            return current.replace(tzinfo=tz)
        return current.astimezone(tz)


async def compose_stats(
    fetch_lists: ListFetcher,
    fetch_cards: CardFetcher,
    config: Optional[DashboardConfig] = None,
    clock: Optional[Clock] = None,
) -> DashboardStats:
    composer = DashboardStatsComposer(fetch_lists, fetch_cards, config=config, clock=clock)
    return await composer.compose()
