"""
Data models for export risk monitoring
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class ExportAction(Enum):
    """Graduated response taken for an export attempt"""
    ALLOWED = "allowed"
    WARNING_ISSUED = "warning_issued"
    EXPORT_BLOCKED = "export_blocked"
    ACCOUNT_LOCKED = "account_locked"


class Severity(Enum):
    """Severity of an audit record"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class ExportEvent:
    """Record of one export attempt. Never mutated once appended."""
    user_id: int
    timestamp: datetime
    export_type: str
    record_count: int
    format: str
    risk_score: float = 0.0
    patterns: Tuple[str, ...] = ()
    ip_address: Optional[str] = None
    device_fingerprint: Optional[str] = None


@dataclass(frozen=True)
class RequestContext:
    """Network origin of an export request"""
    ip: Optional[str] = None
    device_fingerprint: Optional[str] = None
    user_agent: Optional[str] = None


@dataclass
class AccountLockState:
    """Lock flag owned by the user record"""
    locked: bool = False
    locked_until: Optional[datetime] = None


@dataclass
class User:
    """User record as seen through the user directory"""
    id: int
    email: str
    username: str = ""
    is_admin: bool = False
    lock_state: AccountLockState = field(default_factory=AccountLockState)


@dataclass(frozen=True)
class UsageReport:
    """Export quota consumed in the current windows, the current export included"""
    hourly_used: int
    hourly_limit: int
    daily_used: int
    daily_limit: int
    weekly_used: int
    weekly_limit: int

    @property
    def hourly_remaining(self) -> int:
        return max(0, self.hourly_limit - self.hourly_used)

    @property
    def daily_remaining(self) -> int:
        return max(0, self.daily_limit - self.daily_used)

    @property
    def weekly_remaining(self) -> int:
        return max(0, self.weekly_limit - self.weekly_used)

    @property
    def is_low(self) -> bool:
        """True when the UI should warn that the quota is nearly spent"""
        return self.hourly_remaining <= 1 or self.daily_remaining <= 2

    def to_dict(self) -> Dict[str, int]:
        return {
            "hourly_used": self.hourly_used,
            "hourly_limit": self.hourly_limit,
            "hourly_remaining": self.hourly_remaining,
            "daily_used": self.daily_used,
            "daily_limit": self.daily_limit,
            "daily_remaining": self.daily_remaining,
            "weekly_used": self.weekly_used,
            "weekly_limit": self.weekly_limit,
            "weekly_remaining": self.weekly_remaining,
        }


@dataclass
class Decision:
    """Outcome of monitoring one export attempt"""
    allowed: bool
    risk_score: float
    action: ExportAction
    message: Optional[str] = None
    suspicious_patterns: List[str] = field(default_factory=list)
    usage: Optional[UsageReport] = None
    show_warning: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        result: Dict[str, Any] = {
            "allowed": self.allowed,
            "risk_score": self.risk_score,
            "action": self.action.value,
            "message": self.message,
            "suspicious_patterns": list(self.suspicious_patterns),
            "show_warning": self.show_warning,
        }
        if self.usage:
            result["usage"] = self.usage.to_dict()
        return result
