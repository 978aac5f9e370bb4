"""
Dashboard configuration.

Values come from the model defaults and can be overridden through environment
variables (a ``.env`` file is honoured by the server at import time).
"""

from __future__ import annotations

import os
from typing import List, Literal, Optional

from pydantic import BaseModel


DEFAULT_PALETTE = ["#8884d8", "#82ca9d", "#ffc658", "#ff7c7c", "#8dd1e1"]


# ========== 1. Labels ==========

class LabelConfig(BaseModel):
    locale: Literal["en", "zh-TW"] = "en"
    """Locale used for month names in the monthly activity series"""

    default_status: str = "uncategorized"
    """Bucket name for cards without a status"""

    default_priority: str = "unset"
    """Bucket name for cards without a priority"""

    completed_label: str = "已完成"
    """Localized status text that also marks a card as completed"""

    priority_order: List[str] = ["high", "medium", "low", "unset"]
    """Priorities reported by the efficiency block, in display order"""


# ========== 2. Time windows ==========

class WindowConfig(BaseModel):
    months: int = 6
    days: int = 14
    weeks: int = 4
    completion_rate_days: int = 30
    """Rolling window for the average completion rate"""


# ========== 3. Aggregate ==========

class DashboardConfig(BaseModel):
    """Configuration for the task-board dashboard."""

    labels: LabelConfig = LabelConfig()
    windows: WindowConfig = WindowConfig()
    palette: List[str] = list(DEFAULT_PALETTE)
    timezone: str = "UTC"
    """Timezone in which calendar buckets are cut"""


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    values = [item.strip() for item in raw.split(",") if item.strip()]
    return values or list(default)


def load_dashboard_config(overrides: Optional[dict] = None) -> DashboardConfig:
    cfg = DashboardConfig()
    overrides = overrides or {}

    label_cfg = overrides.get("labels", {})
    locale = os.getenv("BOARD_DASHBOARD_LOCALE", label_cfg.get("locale", cfg.labels.locale))
    cfg.labels = LabelConfig(
        locale=locale if locale in {"en", "zh-TW"} else cfg.labels.locale,
        default_status=os.getenv(
            "BOARD_DASHBOARD_DEFAULT_STATUS", label_cfg.get("default_status", cfg.labels.default_status)
        ),
        default_priority=os.getenv(
            "BOARD_DASHBOARD_DEFAULT_PRIORITY", label_cfg.get("default_priority", cfg.labels.default_priority)
        ),
        completed_label=os.getenv(
            "BOARD_DASHBOARD_COMPLETED_LABEL", label_cfg.get("completed_label", cfg.labels.completed_label)
        ),
        priority_order=_env_list(
            "BOARD_DASHBOARD_PRIORITIES", label_cfg.get("priority_order", cfg.labels.priority_order)
        ),
    )

    window_cfg = overrides.get("windows", {})
    cfg.windows = WindowConfig(
        months=_env_int("BOARD_DASHBOARD_MONTHS", window_cfg.get("months", cfg.windows.months)),
        days=_env_int("BOARD_DASHBOARD_DAYS", window_cfg.get("days", cfg.windows.days)),
        weeks=_env_int("BOARD_DASHBOARD_WEEKS", window_cfg.get("weeks", cfg.windows.weeks)),
        completion_rate_days=_env_int(
            "BOARD_DASHBOARD_COMPLETION_DAYS",
            window_cfg.get("completion_rate_days", cfg.windows.completion_rate_days),
        ),
    )

    cfg.palette = _env_list("BOARD_DASHBOARD_PALETTE", overrides.get("palette", cfg.palette))
    cfg.timezone = os.getenv("BOARD_DASHBOARD_TIMEZONE", overrides.get("timezone", cfg.timezone))
    return cfg
