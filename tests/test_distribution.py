from board_dashboard.distribution import distribution_by_category, list_card_counts
from board_dashboard.models import BoardList, Card, DistributionSlice, ListActivity


def _card(card_id, list_id="L1", status=None, priority=None):
    return Card(id=card_id, title=card_id, list_id=list_id, status=status, priority=priority)


def test_groups_in_first_seen_order_with_cycling_palette():
    cards = [
        _card("1", status="open"),
        _card("2"),
        _card("3", status="open"),
        _card("4", status="review"),
    ]
    slices = distribution_by_category(cards, lambda card: card.status, "uncategorized", ["#111", "#222"])
    assert slices == [
        DistributionSlice(name="open", value=2, color="#111"),
        DistributionSlice(name="uncategorized", value=1, color="#222"),
        DistributionSlice(name="review", value=1, color="#111"),
    ]


def test_values_sum_to_card_count():
    cards = [_card(str(i), priority=("high", None, "low", "")[i % 4]) for i in range(11)]
    slices = distribution_by_category(cards, lambda card: card.priority, "unset", ["#8884d8"])
    assert sum(s.value for s in slices) == len(cards)
    assert {s.name for s in slices} == {"high", "unset", "low"}


def test_empty_input_yields_no_buckets():
    assert distribution_by_category([], lambda card: card.status, "uncategorized", ["#111"]) == []


def test_list_card_counts_skip_orphans_and_keep_list_order():
    lists = [
        BoardList(id="L1", title="Todo", owner_id="u"),
        BoardList(id="L2", title="Done", owner_id="u"),
        BoardList(id="L3", title="Later", owner_id="u"),
    ]
    cards = [_card("1", "L2"), _card("2", "L1"), _card("3", "L2"), _card("4", "missing")]
    assert list_card_counts(lists, cards) == [
        ListActivity(name="Todo", cards=1),
        ListActivity(name="Done", cards=2),
        ListActivity(name="Later", cards=0),
    ]
