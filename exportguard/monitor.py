"""
Export monitor that scores every export attempt and applies the graduated response
"""
import asyncio
import logging
from collections import defaultdict
from dataclasses import replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

from .aggregator import aggregate
from .config import MonitorConfig
from .decision import decide
from .enforcement import EnforcementActions, Incident
from .evaluators import EvaluationContext, RiskEvaluator, default_evaluators
from .interfaces import AuditLogger, HistoryStore, Notifier, SecurityHistoryStore, UserDirectory
from .masking import EmailValidator
from .models import Decision, ExportAction, ExportEvent, RequestContext, Severity
from .quota import build_usage

logger = logging.getLogger(__name__)


class ExportMonitor:
    """Orchestrates risk evaluation and enforcement for bulk exports.

    Without ``serialize_per_user`` two concurrent exports of the same user
    may both read a history that lacks the other's event, so both can pass
    a cap that their combination exceeds. Enabling it runs one check at a
    time per user.
    """

    def __init__(
        self,
        history_store: HistoryStore,
        security_history: SecurityHistoryStore,
        user_directory: UserDirectory,
        notifier: Notifier,
        audit_logger: AuditLogger,
        config: Optional[MonitorConfig] = None,
        evaluators: Optional[List[RiskEvaluator]] = None,
        clock: Callable[[], datetime] = datetime.now,
        email_validator: Optional[EmailValidator] = None
    ):
        """Initialize with collaborators and configuration"""
        self.history_store = history_store
        self.security_history = security_history
        self.user_directory = user_directory
        self.notifier = notifier
        self.audit_logger = audit_logger
        self.clock = clock
        self.email_validator = email_validator or EmailValidator()
        self._custom_evaluators = evaluators
        self._user_locks: Dict[int, asyncio.Lock] = {}
        self._lock_holders: Dict[int, int] = defaultdict(int)
        self._pending_notifications: Set[asyncio.Task] = set()

        self.update_config(config or MonitorConfig())

    def update_config(self, config: MonitorConfig) -> None:
        """Swap in a new configuration, e.g. after a reload"""
        self.config = config
        self.evaluators = self._custom_evaluators or default_evaluators(config.thresholds, config.settings)
        self.enforcement = EnforcementActions(
            self.history_store,
            self.user_directory,
            self.notifier,
            self.audit_logger,
            config.thresholds,
            config.settings,
            self.email_validator
        )

        logger.info(f"Export monitor configured with evaluators: "
                    f"{[e.name for e in self.evaluators if e.enabled]}")

    async def monitor_export(
        self,
        user_id: int,
        export_type: str,
        record_count: int,
        export_format: str,
        context: Optional[RequestContext] = None
    ) -> Decision:
        """
        Score an export attempt and apply the resulting action

        Args:
            user_id: User performing the export
            export_type: Category of data being exported
            record_count: Number of records in the export
            export_format: Export format tag (csv, json, excel, ...)
            context: Request origin (IP, device fingerprint, user agent)

        Returns:
            Decision telling the caller whether the export may proceed
        """
        if record_count < 0:
            raise ValueError("record_count must be non-negative")
        if not export_format:
            raise ValueError("export_format is required")

        context = context or RequestContext()

        if not self.config.settings.serialize_per_user:
            return await self._monitor(user_id, export_type, record_count, export_format, context)

        lock = self._user_locks.setdefault(user_id, asyncio.Lock())
        self._lock_holders[user_id] += 1
        try:
            async with lock:
                return await self._monitor(user_id, export_type, record_count, export_format, context)
        finally:
            # Drop the lock once no call for this user holds or waits on it
            self._lock_holders[user_id] -= 1
            if not self._lock_holders[user_id]:
                del self._lock_holders[user_id]
                del self._user_locks[user_id]

    async def _monitor(
        self,
        user_id: int,
        export_type: str,
        record_count: int,
        export_format: str,
        context: RequestContext
    ) -> Decision:
        config = self.config
        enforcement = self.enforcement
        now = self.clock()
        candidate = ExportEvent(
            user_id=user_id,
            timestamp=now,
            export_type=export_type,
            record_count=record_count,
            format=export_format,
            ip_address=context.ip,
            device_fingerprint=context.device_fingerprint
        )
        event_appended = False

        try:
            history = await self._fetch_history(user_id, now)
            known_ips = await self.security_history.recent_ips(user_id, now - config.settings.history_window)

            evaluation = EvaluationContext(
                candidate=candidate,
                history=history,
                now=now,
                known_ips=frozenset(known_ips)
            )

            results = [evaluator.evaluate(evaluation) for evaluator in self.evaluators]
            for result in results:
                logger.debug(f"Evaluator {result.name} for user {user_id}: score {result.score:.2f}")

            risk_score, patterns = aggregate(results)
            logger.info(f"Export monitoring - User {user_id}: Risk score {risk_score:.2f}, "
                        f"patterns: {', '.join(patterns) or 'none'}")

            scored = replace(candidate, risk_score=risk_score, patterns=tuple(patterns))
            await enforcement.append_event(scored)
            event_appended = True
            await enforcement.record_suspicious_activity(scored)
        except Exception as e:
            return await self._fail_open(candidate, event_appended, e)

        outcome = decide(risk_score, config.thresholds)
        incident = Incident(
            user_id=user_id,
            risk_score=risk_score,
            patterns=patterns,
            context=context,
            timestamp=now
        )

        if outcome.action is ExportAction.ACCOUNT_LOCKED:
            await enforcement.lock_account(incident)

        if outcome.action is not ExportAction.ALLOWED:
            logger.info(f"Export by user {user_id} resulted in {outcome.action.value}")
            if config.settings.notify_in_background:
                self._schedule(enforcement.dispatch_notifications(outcome.action, incident))
            else:
                await enforcement.dispatch_notifications(outcome.action, incident)

        usage = build_usage(history, now, config.thresholds)

        return Decision(
            allowed=outcome.allowed,
            risk_score=risk_score,
            action=outcome.action,
            message=outcome.message,
            suspicious_patterns=patterns,
            usage=usage,
            show_warning=usage.is_low
        )

    async def _fetch_history(self, user_id: int, now: datetime) -> List[ExportEvent]:
        """Most recent events of the retrospective window"""
        settings = self.config.settings
        events = await self.history_store.recent_events(user_id, now - settings.history_window)
        events = sorted(events, key=lambda e: e.timestamp, reverse=True)
        return events[:settings.history_limit]

    async def _fail_open(self, candidate: ExportEvent, event_appended: bool, error: Exception) -> Decision:
        """Allow the export when monitoring itself breaks"""
        user_id = candidate.user_id
        logger.exception(f"Export monitoring error for user {user_id}, allowing export: {error}")

        try:
            await self.audit_logger.record(
                "export.monitoring_error",
                Severity.HIGH,
                user_id,
                {
                    "error": str(error),
                    "export_type": candidate.export_type,
                    "record_count": candidate.record_count
                }
            )
        except Exception as e:
            logger.error(f"Failed to record monitoring error for user {user_id}: {e}")

        # Keep the unscored attempt in the trail when the store still accepts writes
        if not event_appended:
            try:
                await self.history_store.append(candidate)
            except Exception as e:
                logger.error(f"Failed to append unscored export event for user {user_id}: {e}")

        return Decision(allowed=True, risk_score=0.0, action=ExportAction.ALLOWED)

    def _schedule(self, coro) -> None:
        task = asyncio.create_task(coro)
        self._pending_notifications.add(task)
        task.add_done_callback(self._pending_notifications.discard)

    async def drain(self) -> None:
        """Wait for notifications dispatched in the background"""
        if self._pending_notifications:
            await asyncio.gather(*list(self._pending_notifications))
