"""Shared fixtures for exportguard tests"""
from datetime import datetime, timedelta
from typing import Optional

import pytest

from exportguard import ExportEvent, ExportMonitor, MonitorConfig, User
from exportguard.stores import (
    InMemoryAuditLogger,
    InMemoryHistoryStore,
    InMemorySecurityHistoryStore,
    InMemoryUserDirectory,
    LoggingNotifier,
)

# Mid-afternoon, so the off-hours signal stays quiet unless a test moves the clock
NOW = datetime(2026, 3, 10, 14, 0, 0)

USER_ID = 1
ADMIN_IDS = (100, 101)


def make_event(
    ago: timedelta,
    fmt: str = "csv",
    records: int = 5,
    user_id: int = USER_ID,
    now: datetime = NOW,
    ip: Optional[str] = None
) -> ExportEvent:
    """Export event that happened `ago` before `now`"""
    return ExportEvent(
        user_id=user_id,
        timestamp=now - ago,
        export_type="analyses",
        record_count=records,
        format=fmt,
        ip_address=ip
    )


@pytest.fixture
def history_store():
    return InMemoryHistoryStore()


@pytest.fixture
def security_history():
    return InMemorySecurityHistoryStore()


@pytest.fixture
def user_directory():
    return InMemoryUserDirectory([
        User(id=USER_ID, email="analyst@example.com", username="analyst"),
        User(id=ADMIN_IDS[0], email="admin.one@example.com", username="admin1", is_admin=True),
        User(id=ADMIN_IDS[1], email="admin.two@example.com", username="admin2", is_admin=True),
    ])


@pytest.fixture
def notifier():
    return LoggingNotifier()


@pytest.fixture
def audit_logger():
    return InMemoryAuditLogger()


@pytest.fixture
def make_monitor(history_store, security_history, user_directory, notifier, audit_logger):
    """Factory building a monitor over the in-memory collaborators with a fixed clock"""
    def factory(config: Optional[MonitorConfig] = None, now: datetime = NOW, **kwargs) -> ExportMonitor:
        return ExportMonitor(
            history_store=kwargs.pop("history_store", history_store),
            security_history=kwargs.pop("security_history", security_history),
            user_directory=kwargs.pop("user_directory", user_directory),
            notifier=kwargs.pop("notifier", notifier),
            audit_logger=kwargs.pop("audit_logger", audit_logger),
            config=config,
            clock=lambda: now,
            **kwargs
        )
    return factory
