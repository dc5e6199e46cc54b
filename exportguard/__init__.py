"""
exportguard Package
Real-time risk scoring and graduated response for bulk data exports
"""
from .aggregator import aggregate
from .config import (
    ConfigurationError,
    ConfigurationManager,
    MonitorConfig,
    MonitorSettings,
    ThresholdConfig,
    ThresholdConfigError,
)
from .decision import ActionOutcome, decide
from .enforcement import EnforcementActions, Incident, NotificationReport
from .interfaces import AuditLogger, HistoryStore, Notifier, SecurityHistoryStore, UserDirectory
from .models import (
    AccountLockState,
    Decision,
    ExportAction,
    ExportEvent,
    RequestContext,
    Severity,
    UsageReport,
    User,
)
from .monitor import ExportMonitor
from .quota import build_usage

__all__ = [
    'ExportMonitor',
    'ConfigurationManager',
    'ConfigurationError',
    'ThresholdConfigError',
    'MonitorConfig',
    'MonitorSettings',
    'ThresholdConfig',
    'aggregate',
    'decide',
    'ActionOutcome',
    'build_usage',
    'EnforcementActions',
    'Incident',
    'NotificationReport',
    'HistoryStore',
    'SecurityHistoryStore',
    'UserDirectory',
    'Notifier',
    'AuditLogger',
    'AccountLockState',
    'Decision',
    'ExportAction',
    'ExportEvent',
    'RequestContext',
    'Severity',
    'UsageReport',
    'User'
]
