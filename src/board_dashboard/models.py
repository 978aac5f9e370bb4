from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence, Union


Timestamp = Union[datetime, str, None]


@dataclass(frozen=True)
class Card:
    """
    A single task record as returned by the record store.

    ``created_at`` is kept exactly as fetched: a ``datetime`` from the SQL
    driver, an ISO-8601 string from inline payloads, or ``None``. Parsing is
    deferred to the dataset layer so malformed values degrade to "absent".
    """

    id: str
    title: str
    list_id: str
    description: Optional[str] = None
    position: Optional[float] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    created_at: Timestamp = None


@dataclass(frozen=True)
class BoardList:
    """
    A workflow column. A list titled ``done`` (any case/whitespace) marks all
    of its cards as completed.
    """

    id: str
    title: str
    owner_id: str
    position: Optional[float] = None
    created_at: Timestamp = None


@dataclass(frozen=True)
class DistributionSlice:
    name: str
    value: int
    color: str


@dataclass(frozen=True)
class ListActivity:
    name: str
    cards: int


@dataclass(frozen=True)
class ActivityBucket:
    """
    One bucket of a time-bucketed series.

    ``productivity`` is only meaningful for weekly buckets, where the chart
    plots completed/created as a percentage instead of raw counts.
    """

    label: str
    start: datetime
    end: datetime
    created: int
    completed: int
    productivity: int = 0


@dataclass(frozen=True)
class PriorityEfficiency:
    priority: str
    count: int
    completed: int
    average_days: int


@dataclass(frozen=True)
class WorkEfficiencyStats:
    average_completion_rate: int = 0
    daily_productivity: Sequence[ActivityBucket] = field(default_factory=tuple)
    priority_efficiency: Sequence[PriorityEfficiency] = field(default_factory=tuple)
    weekly_trend: Sequence[ActivityBucket] = field(default_factory=tuple)


@dataclass(frozen=True)
class DashboardStats:
    total_lists: int = 0
    total_cards: int = 0
    cards_by_status: Sequence[DistributionSlice] = field(default_factory=tuple)
    cards_by_priority: Sequence[DistributionSlice] = field(default_factory=tuple)
    list_activity: Sequence[ListActivity] = field(default_factory=tuple)
    monthly_activity: Sequence[ActivityBucket] = field(default_factory=tuple)
    completion_rate: int = 0
    work_efficiency: WorkEfficiencyStats = field(default_factory=WorkEfficiencyStats)

    @classmethod
    def empty(cls) -> "DashboardStats":
        return cls()

    def as_dict(self) -> Dict[str, Any]:
        """
        Convert the nested dataclasses into the camelCase structure the chart
        front end reads. Series keys follow the chart bindings: monthly points
        expose ``date``/``cards``/``completed``, weekly points ``week``/
        ``productivity``.
        """

        def _slices(slices: Iterable[DistributionSlice]) -> list:
            return [{"name": s.name, "value": s.value, "color": s.color} for s in slices]

        efficiency = self.work_efficiency
        return {
            "totalLists": self.total_lists,
            "totalCards": self.total_cards,
            "cardsByStatus": _slices(self.cards_by_status),
            "cardsByPriority": _slices(self.cards_by_priority),
            "listActivity": [{"name": row.name, "cards": row.cards} for row in self.list_activity],
            "monthlyActivity": [
                {"date": bucket.label, "cards": bucket.created, "completed": bucket.completed}
                for bucket in self.monthly_activity
            ],
            "completionRate": self.completion_rate,
            "workEfficiency": {
                "averageCompletionRate": efficiency.average_completion_rate,
                "dailyProductivity": [
                    {"date": bucket.label, "created": bucket.created, "completed": bucket.completed}
                    for bucket in efficiency.daily_productivity
                ],
                "priorityEfficiency": [
                    {
                        "priority": row.priority,
                        "count": row.count,
                        "completed": row.completed,
                        "averageDays": row.average_days,
                    }
                    for row in efficiency.priority_efficiency
                ],
                "weeklyTrend": [
                    {
                        "week": bucket.label,
                        "created": bucket.created,
                        "completed": bucket.completed,
                        "productivity": bucket.productivity,
                    }
                    for bucket in efficiency.weekly_trend
                ],
            },
        }


@dataclass(frozen=True)
class StatsComposition:
    """
    A report plus the reason it was degraded, if it was.

    ``error`` is ``None`` when both fetches succeeded. An all-zero report with
    ``error`` set means the upstream fetch failed; without it the board is
    simply empty.
    """

    stats: DashboardStats
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None
