"""
Reference implementations of the monitor's collaborators

In-memory stores back tests and single-process deployments; the JSON-lines
audit logger writes one file per day under a base directory.
"""
import asyncio
import json
import logging
import uuid
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .interfaces import AuditLogger, HistoryStore, Notifier, SecurityHistoryStore, UserDirectory
from .masking import mask_email
from .models import AccountLockState, ExportEvent, Severity, User

logger = logging.getLogger(__name__)


class InMemoryHistoryStore(HistoryStore):
    """Append-only export history kept per user"""

    def __init__(self, events: Optional[List[ExportEvent]] = None):
        self._events: Dict[int, List[ExportEvent]] = defaultdict(list)
        for event in events or []:
            self._events[event.user_id].append(event)

    async def recent_events(self, user_id: int, since: datetime) -> List[ExportEvent]:
        # Yield to the loop like an I/O-bound store would
        await asyncio.sleep(0)
        return [e for e in self._events.get(user_id, []) if e.timestamp >= since]

    async def append(self, event: ExportEvent) -> None:
        await asyncio.sleep(0)
        self._events[event.user_id].append(event)

    def events_for(self, user_id: int) -> List[ExportEvent]:
        return list(self._events.get(user_id, []))


class InMemorySecurityHistoryStore(SecurityHistoryStore):
    """IP addresses observed per user in security events"""

    def __init__(self):
        self._seen: Dict[int, List[Tuple[datetime, str]]] = defaultdict(list)

    def add(self, user_id: int, ip_address: str, timestamp: datetime) -> None:
        self._seen[user_id].append((timestamp, ip_address))

    async def recent_ips(self, user_id: int, since: datetime) -> Set[str]:
        await asyncio.sleep(0)
        return {ip for seen_at, ip in self._seen.get(user_id, []) if seen_at >= since}


class InMemoryUserDirectory(UserDirectory):
    """User records keyed by id"""

    def __init__(self, users: Optional[List[User]] = None):
        self.users: Dict[int, User] = {u.id: u for u in users or []}

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    async def get(self, user_id: int) -> Optional[User]:
        return self.users.get(user_id)

    async def lock(self, user_id: int, until: datetime) -> None:
        if not (user := self.users.get(user_id)):
            raise KeyError(f"Unknown user: {user_id}")
        # Re-locking replaces the previous window
        user.lock_state = AccountLockState(locked=True, locked_until=until)

    async def list_admins(self) -> List[User]:
        return [u for u in self.users.values() if u.is_admin]


@dataclass
class SentAlert:
    """Alert handed to the notifier"""
    user_id: int
    email: str
    alert_type: str
    details: Dict[str, Any]
    sent_at: datetime = field(default_factory=datetime.now)


class LoggingNotifier(Notifier):
    """Logs alerts and keeps them in an outbox instead of delivering them"""

    def __init__(self):
        self.outbox: List[SentAlert] = []

    async def send_security_alert(self, target: User, alert_type: str, details: Dict[str, Any]) -> None:
        logger.info(f"Security alert '{alert_type}' for {mask_email(target.email)} (user {target.id})")
        self.outbox.append(SentAlert(
            user_id=target.id,
            email=target.email,
            alert_type=alert_type,
            details=dict(details)
        ))

    def sent_to(self, user_id: int) -> List[SentAlert]:
        return [a for a in self.outbox if a.user_id == user_id]


@dataclass
class AuditRecord:
    """A single audit log entry"""
    id: str
    timestamp: str
    kind: str
    severity: str
    user_id: Optional[int]
    metadata: Dict[str, Any] = field(default_factory=dict)


def _new_record(kind: str, severity: Severity, user_id: Optional[int], metadata: Dict[str, Any]) -> AuditRecord:
    return AuditRecord(
        id=str(uuid.uuid4()),
        timestamp=datetime.now().isoformat(),
        kind=kind,
        severity=severity.value,
        user_id=user_id,
        metadata=dict(metadata)
    )


class InMemoryAuditLogger(AuditLogger):
    """Audit records kept in a list"""

    def __init__(self):
        self.records: List[AuditRecord] = []

    async def record(
        self,
        kind: str,
        severity: Severity,
        user_id: Optional[int],
        metadata: Dict[str, Any]
    ) -> None:
        self.records.append(_new_record(kind, severity, user_id, metadata))

    def of_kind(self, kind: str) -> List[AuditRecord]:
        return [r for r in self.records if r.kind == kind]

    def of_severity(self, severity: Severity) -> List[AuditRecord]:
        return [r for r in self.records if r.severity == severity.value]


class JsonlAuditLogger(AuditLogger):
    """File-based JSON audit logger.

    Records are appended as newline-delimited JSON to one file per day,
    named ``YYYY-MM-DD.jsonl``, under ``base_dir``.
    """

    def __init__(self, base_dir: Union[str, Path]):
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)

    def _log_file_for_date(self, dt: datetime) -> Path:
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    async def record(
        self,
        kind: str,
        severity: Severity,
        user_id: Optional[int],
        metadata: Dict[str, Any]
    ) -> None:
        entry = _new_record(kind, severity, user_id, metadata)
        path = self._log_file_for_date(datetime.now())
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(asdict(entry), default=str) + "\n")

    def read_entries(self) -> List[AuditRecord]:
        """Read every entry from all log files, oldest file first"""
        entries: List[AuditRecord] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            for line in path.read_text(encoding="utf-8").splitlines():
                if line.strip():
                    entries.append(AuditRecord(**json.loads(line)))
        return entries
