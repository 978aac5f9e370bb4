from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import AbstractSet, Collection, FrozenSet, Iterable, Iterator, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import TypeAdapter, ValidationError

from .models import BoardList, Card, Timestamp


DONE_LIST_TITLE = "done"
COMPLETED_STATUSES = ("done", "completed")

_DATETIME_ADAPTER = TypeAdapter(datetime)


def coerce_timezone(name: str) -> tzinfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def normalize_datetime(dt: datetime, tz: tzinfo) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def parse_timestamp(value: Timestamp, tz: tzinfo) -> Optional[datetime]:
    """
    Return ``value`` as an aware datetime in ``tz``, or ``None`` when it is
    missing, cannot be parsed, or falls outside the representable range once
    converted to ``tz``.

    Strings go through pydantic, which accepts any number of fractional
    second digits (PostgREST trims trailing zeros) and a ``Z`` suffix.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = _DATETIME_ADAPTER.validate_python(value.strip())
        except ValidationError:
            return None
    else:
        return None
    try:
        return normalize_datetime(parsed, tz)
    except OverflowError:
        return None


def normalize_priority(priority: Optional[str], default_priority: str) -> str:
    """Trimmed, case-folded priority; blank values fall back to ``default_priority``."""
    return ((priority or "").strip() or default_priority).strip().lower()


def done_list_ids(lists: Iterable[BoardList]) -> FrozenSet[str]:
    return frozenset(
        board_list.id
        for board_list in lists
        if (board_list.title or "").strip().lower() == DONE_LIST_TITLE
    )


def is_card_completed(
    card: Card,
    terminal_list_ids: AbstractSet[str],
    completed_labels: Collection[str] = (),
) -> bool:
    """
    A card is completed when its status reads "done", "completed" or one of
    the localized ``completed_labels``, or when it sits in a terminal list.
    """

    status = (card.status or "").strip().lower()
    if status in COMPLETED_STATUSES:
        return True
    if status and status in {label.strip().lower() for label in completed_labels}:
        return True
    return card.list_id in terminal_list_ids


def iter_dated_cards(cards: Iterable[Card], tz: tzinfo) -> Iterator[Tuple[Card, datetime]]:
    """
    Yield ``(card, localized_created_at)`` for cards with a usable timestamp.
    """

    for card in cards:
        created_at = parse_timestamp(card.created_at, tz)
        if created_at is None:
            continue
        yield card, created_at


@dataclass
class BoardDataset:
    """
    One fetched snapshot of a board: lists, cards and the derived terminal
    list ids.
    """

    lists: Sequence[BoardList]
    cards: Sequence[Card]
    completed_labels: Collection[str] = ()

    def __post_init__(self) -> None:
        self.lists = tuple(self.lists)
        self.cards = tuple(self.cards)
        self.terminal_list_ids = done_list_ids(self.lists)

    def is_completed(self, card: Card) -> bool:
        return is_card_completed(card, self.terminal_list_ids, self.completed_labels)

    def completed_count(self) -> int:
        return sum(1 for card in self.cards if self.is_completed(card))
