"""
Format variation evaluator
Flags users trying several export formats in a short time
"""
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator, events_within
from .frequency import HOUR


class FormatVariationEvaluator(RiskEvaluator):
    """Counts distinct export formats used in the last hour"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        formats = {
            event.format
            for event in events_within(context.history, context.now, HOUR)
            if event.format
        }
        formats.add(context.candidate.format)
        threshold = self.thresholds.different_formats_threshold

        if len(formats) >= threshold:
            return self.flagged(0.7, "multiple_format_exports")

        return self.benign(len(formats) / threshold * 0.2)

    @property
    def name(self) -> str:
        return "format_variation"
