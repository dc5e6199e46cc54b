"""
Origin novelty evaluator
Flags exports from an IP address never seen for the user during the last week
"""
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator


class OriginNoveltyEvaluator(RiskEvaluator):
    """Compares the request IP with the user's known IPs"""

    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        # Nothing to compare without an origin
        if not (ip := context.candidate.ip_address):
            return self.benign()

        if context.known_ips and ip not in context.known_ips:
            return self.flagged(0.5, "new_ip_location")

        return self.benign()

    @property
    def name(self) -> str:
        return "origin_novelty"
