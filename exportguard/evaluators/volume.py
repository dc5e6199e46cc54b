"""
Data volume evaluator
Flags users pulling more records than the hourly or daily caps allow
"""
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator, events_within
from .frequency import DAY, HOUR

# Partial-window pressure never reaches the warning threshold on its own
PRESSURE_CEILING = 0.6


class VolumeEvaluator(RiskEvaluator):
    """Scores the number of records exported in the recent windows"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        current = context.candidate.record_count
        records_last_hour = sum(
            e.record_count for e in events_within(context.history, context.now, HOUR)
        ) + current
        records_last_day = sum(
            e.record_count for e in events_within(context.history, context.now, DAY)
        ) + current

        if records_last_hour > self.thresholds.max_records_per_hour:
            return self.flagged(1.0, "excessive_data_volume_per_hour")

        if records_last_day > self.thresholds.max_records_per_day:
            return self.flagged(0.8, "excessive_data_volume_per_day")

        pressure = max(
            records_last_hour / self.thresholds.max_records_per_hour,
            records_last_day / self.thresholds.max_records_per_day
        )
        return self.benign(pressure * PRESSURE_CEILING)

    @property
    def name(self) -> str:
        return "volume"
