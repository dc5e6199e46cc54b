"""Export risk evaluators package"""
from typing import List, Optional

from ..config import MonitorSettings, ThresholdConfig
from .base import EvaluationContext, EvaluatorResult, RiskEvaluator, events_within
from .burst import BurstEvaluator
from .format_variation import FormatVariationEvaluator
from .frequency import ExportCounts, FrequencyEvaluator, count_exports
from .off_hours import OffHoursEvaluator
from .origin_novelty import OriginNoveltyEvaluator
from .volume import VolumeEvaluator


def default_evaluators(
    thresholds: ThresholdConfig,
    settings: Optional[MonitorSettings] = None
) -> List[RiskEvaluator]:
    """Create the six evaluators in declaration order"""
    return [
        FrequencyEvaluator(thresholds, settings),
        VolumeEvaluator(thresholds, settings),
        BurstEvaluator(thresholds, settings),
        FormatVariationEvaluator(thresholds, settings),
        OffHoursEvaluator(thresholds, settings),
        OriginNoveltyEvaluator(thresholds, settings)
    ]


__all__ = [
    'RiskEvaluator',
    'EvaluatorResult',
    'EvaluationContext',
    'events_within',
    'ExportCounts',
    'count_exports',
    'FrequencyEvaluator',
    'VolumeEvaluator',
    'BurstEvaluator',
    'FormatVariationEvaluator',
    'OffHoursEvaluator',
    'OriginNoveltyEvaluator',
    'default_evaluators'
]
