"""
Enforcement actions for monitored exports
Persists audit records, locks accounts and dispatches security alerts
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import MonitorSettings, ThresholdConfig
from .interfaces import (
    ALERT_ACCOUNT_LOCKED,
    ALERT_ADMIN_ACCOUNT_LOCKED,
    ALERT_ADMIN_SUSPICIOUS_EXPORT,
    ALERT_EXPORT_WARNING,
    AuditLogger,
    HistoryStore,
    Notifier,
    UserDirectory,
)
from .masking import EmailValidator, mask_email
from .models import ExportAction, ExportEvent, RequestContext, Severity, User
from .utils import mask_fingerprint

logger = logging.getLogger(__name__)

LOCK_REASON = "Excessive or suspicious data export activity"


@dataclass
class Incident:
    """A scored export attempt that may need enforcement"""
    user_id: int
    risk_score: float
    patterns: List[str]
    context: RequestContext
    timestamp: datetime
    user: Optional[User] = None
    locked_until: Optional[datetime] = None
    lock_persisted: bool = False
    lock_error: Optional[str] = None


@dataclass
class NotificationReport:
    """Outcome of an alert fan-out"""
    sent: List[int] = field(default_factory=list)
    failed: Dict[int, str] = field(default_factory=dict)


class EnforcementActions:
    """Side effects of the graduated response"""

    def __init__(
        self,
        history_store: HistoryStore,
        user_directory: UserDirectory,
        notifier: Notifier,
        audit_logger: AuditLogger,
        thresholds: ThresholdConfig,
        settings: MonitorSettings,
        email_validator: Optional[EmailValidator] = None
    ):
        self.history_store = history_store
        self.user_directory = user_directory
        self.notifier = notifier
        self.audit_logger = audit_logger
        self.thresholds = thresholds
        self.settings = settings
        self.email_validator = email_validator or EmailValidator()

    async def append_event(self, event: ExportEvent) -> None:
        """Add the scored export to the history. Errors propagate."""
        await self.history_store.append(event)

    async def record_suspicious_activity(self, event: ExportEvent) -> None:
        """Above the warning threshold, write a security record for the export. Errors propagate."""
        if event.risk_score > self.thresholds.warning_threshold:
            severity = Severity.HIGH if event.risk_score > self.thresholds.block_threshold else Severity.MEDIUM
            await self.audit_logger.record(
                "export.suspicious_activity",
                severity,
                event.user_id,
                {
                    "export_type": event.export_type,
                    "record_count": event.record_count,
                    "format": event.format,
                    "risk_score": event.risk_score,
                    "patterns": list(event.patterns),
                    "ip_address": event.ip_address,
                    "device_fingerprint": event.device_fingerprint
                }
            )

    async def lock_account(self, incident: Incident) -> None:
        """Lock the user's account. Never raises; failures are logged as critical."""
        try:
            incident.user = await self.user_directory.get(incident.user_id)
            if not incident.user:
                logger.warning(f"Cannot lock unknown user {incident.user_id}")
                return

            incident.locked_until = incident.timestamp + self.settings.lock_duration
            await self.user_directory.lock(incident.user_id, incident.locked_until)
            incident.lock_persisted = True
        except Exception as e:
            incident.lock_error = str(e)
            logger.critical(
                f"Failed to lock account of user {incident.user_id} after suspicious export activity: {e}"
            )
            await self._record_safely(
                "account.lock_failed",
                Severity.CRITICAL,
                incident.user_id,
                {"patterns": incident.patterns, "error": str(e), "reason": LOCK_REASON}
            )
            return

        logger.info(f"Locked account of user {incident.user_id} until {incident.locked_until.isoformat()}")
        await self._record_safely(
            "account.locked_suspicious_export",
            Severity.CRITICAL,
            incident.user_id,
            {
                "patterns": incident.patterns,
                "auto_locked": True,
                "reason": LOCK_REASON,
                "locked_until": incident.locked_until.isoformat()
            }
        )

    async def dispatch_notifications(self, action: ExportAction, incident: Incident) -> None:
        """Send the alerts belonging to an action. Delivery errors are logged, never raised."""
        try:
            report = None
            if action is ExportAction.ACCOUNT_LOCKED:
                if incident.user and incident.lock_persisted:
                    await self.alert_locked_user(incident)
                # Admins hear about failed locks too; an unknown user has nothing to report
                if incident.user or incident.lock_error:
                    report = await self.notify_admins(incident, account_locked=True)
            elif action is ExportAction.EXPORT_BLOCKED:
                report = await self.notify_admins(incident, account_locked=False)
            elif action is ExportAction.WARNING_ISSUED:
                await self.warn_user(incident)

            if report and report.failed:
                logger.warning(
                    f"Admin alert for user {incident.user_id} failed for {len(report.failed)} of "
                    f"{len(report.failed) + len(report.sent)} admins: {sorted(report.failed)}"
                )
        except Exception as e:
            logger.error(f"Notification dispatch failed for user {incident.user_id}: {e}")

    async def alert_locked_user(self, incident: Incident) -> bool:
        """Tell the locked user what happened"""
        user = incident.user
        details = {
            "user_id": user.id,
            "date_time": incident.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            "ip_address": incident.context.ip or "Unknown",
            "location": "Unknown",
            "device": mask_fingerprint(incident.context.device_fingerprint),
            "lockout_reason": f"Suspicious export activity: {', '.join(incident.patterns)}"
        }
        return await self._send(user, ALERT_ACCOUNT_LOCKED, details)

    async def warn_user(self, incident: Incident) -> bool:
        """Send a single warning summarizing the detected patterns"""
        if incident.user is None:
            incident.user = await self.user_directory.get(incident.user_id)
        if not (user := incident.user):
            logger.warning(f"Cannot warn unknown user {incident.user_id}")
            return False

        details = {
            "patterns": ", ".join(incident.patterns),
            "message": "Unusual export activity has been detected on your account",
            "timestamp": incident.timestamp.isoformat()
        }
        return await self._send(user, ALERT_EXPORT_WARNING, details)

    async def notify_admins(self, incident: Incident, account_locked: bool) -> NotificationReport:
        """Alert every administrator. One failed delivery never stops the others."""
        if incident.user is None:
            try:
                incident.user = await self.user_directory.get(incident.user_id)
            except Exception as e:
                logger.warning(f"Could not load user {incident.user_id} for admin alert: {e}")

        admins = await self.user_directory.list_admins()
        alert_type = ALERT_ADMIN_ACCOUNT_LOCKED if account_locked else ALERT_ADMIN_SUSPICIOUS_EXPORT
        details = self._admin_details(incident, account_locked)
        report = NotificationReport()

        logger.info(f"Sending '{alert_type}' for user {incident.user_id} to {len(admins)} admins")

        semaphore = asyncio.Semaphore(self.settings.admin_notify_concurrency)

        async def send_one(admin: User) -> None:
            # Internal hosts such as "localhost" fail validation yet still deliver
            if not self.email_validator.is_valid_address(admin.email):
                logger.warning(f"Admin {admin.id} has an unusual address {mask_email(admin.email)}, sending anyway")

            async with semaphore:
                try:
                    await self.notifier.send_security_alert(admin, alert_type, details)
                except Exception as e:
                    logger.warning(f"Failed to send admin alert to {mask_email(admin.email)}: {e}")
                    report.failed[admin.id] = str(e)
                    return

            report.sent.append(admin.id)

        await asyncio.gather(*(send_one(admin) for admin in admins))
        return report

    def _admin_details(self, incident: Incident, account_locked: bool) -> Dict[str, Any]:
        user = incident.user
        details = {
            "affected_user_id": incident.user_id,
            "affected_username": user.username if user else None,
            "affected_user_email": user.email if user else None,
            "risk_score": incident.risk_score,
            "patterns": ", ".join(incident.patterns),
            "account_locked": account_locked,
            "locked_until": incident.locked_until.isoformat() if account_locked and incident.locked_until else None,
            "timestamp": incident.timestamp.isoformat(),
            "ip_address": incident.context.ip,
            "device_fingerprint": incident.context.device_fingerprint,
            "user_agent": incident.context.user_agent
        }
        if account_locked:
            details["lock_persisted"] = incident.lock_persisted
            if incident.lock_error:
                details["lock_error"] = incident.lock_error
        return details

    async def _send(self, user: User, alert_type: str, details: Dict[str, Any]) -> bool:
        try:
            await self.notifier.send_security_alert(user, alert_type, details)
        except Exception as e:
            logger.warning(f"Failed to send '{alert_type}' alert to {mask_email(user.email)}: {e}")
            return False
        return True

    async def _record_safely(
        self,
        kind: str,
        severity: Severity,
        user_id: int,
        metadata: Dict[str, Any]
    ) -> None:
        try:
            await self.audit_logger.record(kind, severity, user_id, metadata)
        except Exception as e:
            logger.error(f"Failed to write '{kind}' audit record for user {user_id}: {e}")
