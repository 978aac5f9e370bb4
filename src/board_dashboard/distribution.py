from __future__ import annotations

from collections import Counter
from typing import Callable, Iterable, List, Optional, Sequence

from .models import BoardList, Card, DistributionSlice, ListActivity


def distribution_by_category(
    cards: Iterable[Card],
    field_selector: Callable[[Card], Optional[str]],
    default_label: str,
    palette: Sequence[str],
) -> List[DistributionSlice]:
    """
    Count cards per value of ``field_selector``.

    Buckets keep the order in which their key first appears in ``cards`` so
    colour assignment is reproducible. Missing values fall into
    ``default_label``.
    """

    counts: Counter = Counter()
    for card in cards:
        counts[field_selector(card) or default_label] += 1

    # Counter preserves insertion order, i.e. first occurrence.
    return [
        DistributionSlice(
            name=name,
            value=value,
            color=palette[index % len(palette)] if palette else "",
        )
        for index, (name, value) in enumerate(counts.items())
    ]


def list_card_counts(lists: Iterable[BoardList], cards: Iterable[Card]) -> List[ListActivity]:
    per_list = Counter(card.list_id for card in cards)
    return [ListActivity(name=board_list.title, cards=per_list.get(board_list.id, 0)) for board_list in lists]
