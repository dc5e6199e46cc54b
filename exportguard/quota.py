"""
Export quota reporting for UI warnings
"""
from datetime import datetime
from typing import Sequence

from .config import ThresholdConfig
from .evaluators.frequency import count_exports
from .models import ExportEvent, UsageReport


def build_usage(history: Sequence[ExportEvent], now: datetime, thresholds: ThresholdConfig) -> UsageReport:
    """Report how much of each export cap the current attempt consumes"""
    counts = count_exports(history, now)
    return UsageReport(
        hourly_used=counts.hourly,
        hourly_limit=thresholds.max_exports_per_hour,
        daily_used=counts.daily,
        daily_limit=thresholds.max_exports_per_day,
        weekly_used=counts.weekly,
        weekly_limit=thresholds.max_exports_per_week
    )
