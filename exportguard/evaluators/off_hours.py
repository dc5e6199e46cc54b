"""
Off-hours evaluator
Flags exports made at night by users with an established export history
"""
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator


class OffHoursEvaluator(RiskEvaluator):
    """Scores exports outside the working-hours band"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        hour = context.now.hour
        is_unusual_hour = hour < self.settings.off_hours_start or hour > self.settings.off_hours_end

        if is_unusual_hour and len(context.history) > self.settings.off_hours_min_history:
            return self.flagged(0.4, "unusual_hour_export")

        return self.benign()

    @property
    def name(self) -> str:
        return "off_hours"
