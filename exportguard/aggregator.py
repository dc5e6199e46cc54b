"""
Risk aggregation across evaluator results
"""
from typing import List, Sequence, Tuple

from .evaluators.base import EvaluatorResult


def aggregate(results: Sequence[EvaluatorResult]) -> Tuple[float, List[str]]:
    """Combine evaluator results into one score and the fired patterns.

    The total is the highest single score, so one strong signal is never
    diluted by weak ones and correlated signals do not add up. Patterns keep
    evaluator order.

    Returns:
        Tuple of (total_score, patterns)
    """
    total_score = max((r.score for r in results), default=0.0)
    patterns = [r.pattern for r in results if r.suspicious and r.pattern]
    return min(max(total_score, 0.0), 1.0), patterns
