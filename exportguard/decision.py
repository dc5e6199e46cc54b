"""
Graduated response ladder: maps an aggregate risk score to an action
"""
from dataclasses import dataclass
from typing import Optional

from .config import ThresholdConfig
from .models import ExportAction

LOCKED_MESSAGE = "Account locked due to suspicious export activity"
BLOCKED_MESSAGE = "Export blocked due to unusual activity. Please contact administrator."
WARNING_MESSAGE = "Unusual export activity detected. This has been logged."


@dataclass(frozen=True)
class ActionOutcome:
    """Action chosen for a score, before any side effect runs"""
    action: ExportAction
    allowed: bool
    message: Optional[str] = None


def decide(score: float, thresholds: ThresholdConfig) -> ActionOutcome:
    """Classify a score, checking the most severe rung first"""
    if score >= thresholds.lock_threshold:
        return ActionOutcome(ExportAction.ACCOUNT_LOCKED, allowed=False, message=LOCKED_MESSAGE)

    if score >= thresholds.block_threshold:
        return ActionOutcome(ExportAction.EXPORT_BLOCKED, allowed=False, message=BLOCKED_MESSAGE)

    if score >= thresholds.warning_threshold:
        return ActionOutcome(ExportAction.WARNING_ISSUED, allowed=True, message=WARNING_MESSAGE)

    return ActionOutcome(ExportAction.ALLOWED, allowed=True)
