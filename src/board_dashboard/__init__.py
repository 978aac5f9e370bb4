"""
Task-board dashboard statistics.

This package turns a snapshot of board lists and cards into the aggregates
rendered by the dashboard charts: totals, status/priority distributions,
per-list counts, monthly activity and the work-efficiency block.
"""

from .models import (  # noqa: F401
    ActivityBucket,
    BoardList,
    Card,
    DashboardStats,
    DistributionSlice,
    ListActivity,
    PriorityEfficiency,
    StatsComposition,
    WorkEfficiencyStats,
)
from .repository import (  # noqa: F401
    BoardDataRepository,
    BoardFetchError,
    InMemoryBoardRepository,
    NotAuthenticatedError,
    RepositoryConfig,
    SQLBoardRepository,
    build_repository_from_env,
)
from .service import DashboardStatsComposer, compose_stats  # noqa: F401
