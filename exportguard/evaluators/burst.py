"""
Burst evaluator
Flags several exports fired within a short window
"""
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator, events_within


class BurstEvaluator(RiskEvaluator):
    """Detects rapid sequential exports"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        recent = len(events_within(context.history, context.now, self.settings.burst_window)) + 1
        threshold = self.thresholds.rapid_export_threshold

        if recent >= threshold:
            return self.flagged(0.9, "rapid_sequential_exports")

        return self.benign(recent / threshold * 0.3)

    @property
    def name(self) -> str:
        return "burst"
