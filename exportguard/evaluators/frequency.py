"""
Export frequency evaluator
Flags users exporting more often than the hourly or daily caps allow
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Sequence

from ..models import ExportEvent
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator, events_within

logger = logging.getLogger(__name__)

HOUR = timedelta(hours=1)
DAY = timedelta(days=1)
WEEK = timedelta(days=7)


@dataclass(frozen=True)
class ExportCounts:
    """Exports per window, the current attempt included"""
    hourly: int
    daily: int
    weekly: int


def count_exports(history: Sequence[ExportEvent], now: datetime) -> ExportCounts:
    """Count windowed exports, adding one for the attempt being evaluated"""
    return ExportCounts(
        hourly=len(events_within(history, now, HOUR)) + 1,
        daily=len(events_within(history, now, DAY)) + 1,
        weekly=len(events_within(history, now, WEEK)) + 1
    )


class FrequencyEvaluator(RiskEvaluator):
    """Scores how close the user is to the export rate caps"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        counts = count_exports(context.history, context.now)
        logger.debug(
            f"Export frequency for user {context.candidate.user_id}: "
            f"{counts.hourly} in last hour, {counts.daily} in last day (including current)"
        )

        if counts.hourly >= self.thresholds.max_exports_per_hour:
            return self.flagged(1.0, "excessive_exports_per_hour")

        if counts.daily >= self.thresholds.max_exports_per_day:
            return self.flagged(0.8, "excessive_exports_per_day")

        pressure = max(
            counts.hourly / self.thresholds.max_exports_per_hour,
            counts.daily / self.thresholds.max_exports_per_day
        )
        return self.benign(pressure * 0.5)

    @property
    def name(self) -> str:
        return "frequency"
