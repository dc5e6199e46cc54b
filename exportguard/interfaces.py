"""
Interfaces of the collaborators the export monitor depends on

Persistence, user records, delivery and audit storage live outside the
engine; these are the narrow contracts it needs from them.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from .models import ExportEvent, Severity, User

# Alert types sent through the Notifier
ALERT_EXPORT_WARNING = "export_warning"
ALERT_ACCOUNT_LOCKED = "account_locked"
ALERT_ADMIN_SUSPICIOUS_EXPORT = "admin_suspicious_export_activity"
ALERT_ADMIN_ACCOUNT_LOCKED = "admin_user_account_locked"


class HistoryStore(ABC):
    """Append-only store of past export events"""

    @abstractmethod
    async def recent_events(self, user_id: int, since: datetime) -> List[ExportEvent]:
        """Return all export events of the user at or after `since`, in any order"""
        pass

    @abstractmethod
    async def append(self, event: ExportEvent) -> None:
        """Persist one export event"""
        pass


class SecurityHistoryStore(ABC):
    """Security event history, queried for the network origins of a user"""

    @abstractmethod
    async def recent_ips(self, user_id: int, since: datetime) -> Set[str]:
        """Return the IP addresses seen for the user at or after `since`"""
        pass


class UserDirectory(ABC):
    """Access to user records"""

    @abstractmethod
    async def get(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def lock(self, user_id: int, until: datetime) -> None:
        """Lock the account until the given time, resetting any existing lock"""
        pass

    @abstractmethod
    async def list_admins(self) -> List[User]:
        pass


class Notifier(ABC):
    """Delivers security alerts to users"""

    @abstractmethod
    async def send_security_alert(self, target: User, alert_type: str, details: Dict[str, Any]) -> None:
        pass


class AuditLogger(ABC):
    """Writes security audit records"""

    @abstractmethod
    async def record(
        self,
        kind: str,
        severity: Severity,
        user_id: Optional[int],
        metadata: Dict[str, Any]
    ) -> None:
        pass
