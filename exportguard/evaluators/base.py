"""
Base interface for export risk evaluators
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import FrozenSet, List, Optional, Sequence

from ..config import MonitorSettings, ThresholdConfig
from ..models import ExportEvent


@dataclass(frozen=True)
class EvaluatorResult:
    """Risk contribution of a single behavioral signal"""
    name: str
    score: float = 0.0
    suspicious: bool = False
    pattern: Optional[str] = None


@dataclass(frozen=True)
class EvaluationContext:
    """Everything an evaluator may look at for one export attempt"""
    candidate: ExportEvent
    history: Sequence[ExportEvent]
    now: datetime
    known_ips: FrozenSet[str] = field(default_factory=frozenset)


def events_within(history: Sequence[ExportEvent], now: datetime, window: timedelta) -> List[ExportEvent]:
    """Events younger than `window` relative to `now`"""
    return [event for event in history if now - event.timestamp < window]


class RiskEvaluator(ABC):
    """Abstract base class for risk evaluators.

    Evaluators are pure: the result depends only on the context and the
    configuration they were built with.
    """

    def __init__(self, thresholds: ThresholdConfig, settings: Optional[MonitorSettings] = None):
        """Initialize with the risk policy"""
        self.thresholds = thresholds
        self.settings = settings or MonitorSettings()
        self.enabled = self._is_enabled()

    def _is_enabled(self) -> bool:
        """Check if this evaluator is disabled in configuration"""
        return self.name not in self.settings.disabled_evaluators

    def evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        """
        Score the candidate export against this signal

        Args:
            context: Candidate event, retrospective history and known IPs

        Returns:
            EvaluatorResult with a score in [0, 1]
        """
        if not self.enabled:
            return self.benign()
        return self._evaluate(context)

    @abstractmethod
    def _evaluate(self, context: EvaluationContext) -> EvaluatorResult:
        pass

    def benign(self, score: float = 0.0) -> EvaluatorResult:
        return EvaluatorResult(name=self.name, score=min(score, 1.0))

    def flagged(self, score: float, pattern: str) -> EvaluatorResult:
        return EvaluatorResult(name=self.name, score=score, suspicious=True, pattern=pattern)

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this evaluator"""
        pass
