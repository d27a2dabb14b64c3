"""
Alert manager: builds alert messages and dispatches notifications and
automation commands.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from zerostat.alerts.alert_rule import AlertRule
from zerostat.alerts.channels import CHANNEL_CLASSES, BaseChannel
from zerostat.alerts.shell import ShellExecutor
from zerostat.alerts.storage.base_storage import BaseStorage, AlertEvent, EventKind
from zerostat.utils.helpers import get_hostname

logger = logging.getLogger(__name__)

DEFAULT_ALERT_TEMPLATE = (
    "[ZeroStat] {hostname} Warning: {metric} value is {value}%! "
    "(Threshold: {operator}{threshold}, Duration: {duration}s)"
)
DEFAULT_RECOVERY_TEMPLATE = (
    "[ZeroStat] {hostname} Recovery: {metric} is now at {value}%. System is safe."
)
TEST_MESSAGE = "ZeroStat Test Message - System Successfully Verified!"


class AlertManager:
    """
    Dispatches alert actions.

    Every notification and shell command runs on a worker pool so a slow
    webhook or a command waiting on its timeout never holds up evaluation.
    """

    def __init__(self, notification_config: Optional[Dict] = None,
                 shell_executor: Optional[ShellExecutor] = None,
                 storage: Optional[BaseStorage] = None,
                 hostname: Optional[str] = None,
                 max_workers: int = 4,
                 on_fire: Optional[Callable[[AlertRule, bool], None]] = None):
        """
        Initialize alert manager.

        Args:
            notification_config: Channel connection settings
            shell_executor: Guarded command runner
            storage: Optional backend receiving alert events
            hostname: Name substituted for {hostname}; detected when omitted
            max_workers: Size of the action worker pool
            on_fire: Called with (rule, is_recovery) for every dispatched alert
        """
        self.shell_executor = shell_executor or ShellExecutor()
        self.storage = storage
        self.hostname = hostname or get_hostname()
        self.on_fire = on_fire

        self._channels_lock = threading.Lock()
        self.channels: Dict[str, BaseChannel] = {}
        self.set_notification_config(notification_config or {})

        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='alert-action')

        logger.info("Alert manager initialized")

    def set_notification_config(self, notification_config: Dict) -> None:
        """Rebuild the channels from new connection settings"""
        channels = {name: cls(notification_config) for name, cls in CHANNEL_CLASSES.items()}
        with self._channels_lock:
            self.channels = channels

        configured = [name for name, ch in channels.items() if ch.is_configured()]
        if configured:
            logger.info(f"Notification channels configured: {', '.join(configured)}")
        else:
            logger.warning("No notification channels configured")

    def build_message(self, rule: AlertRule, value: float, is_recovery: bool) -> str:
        """
        Render the rule's message template by literal placeholder replacement.

        Args:
            rule: Rule that fired or recovered
            value: Current metric value
            is_recovery: Selects the recovery default template

        Returns:
            Message text
        """
        template = rule.message_template
        if not template:
            template = DEFAULT_RECOVERY_TEMPLATE if is_recovery else DEFAULT_ALERT_TEMPLATE

        replacements = (
            ('{hostname}', self.hostname),
            ('{metric}', rule.metric),
            ('{value}', f'{value:.2f}'),
            ('{threshold}', f'{rule.threshold:.2f}'),
            ('{operator}', rule.operator),
            ('{duration}', f'{int(rule.duration_seconds)}'),
        )
        message = template
        for placeholder, text in replacements:
            message = message.replace(placeholder, text)
        return message

    def fire(self, rule: AlertRule, value: float, is_recovery: bool = False) -> List[Future]:
        """
        Dispatch the actions for a fired or recovered rule.

        Returns immediately; the work runs on the action pool. Shell
        commands only run for alerts, never for recoveries.

        Args:
            rule: Rule snapshot
            value: Current metric value
            is_recovery: True when the rule returned within bounds

        Returns:
            Futures of the dispatched tasks
        """
        message = self.build_message(rule, value, is_recovery)
        if is_recovery:
            logger.info(f"Rule {rule.id} recovered: {rule.metric} now {value:.2f}")
        else:
            logger.warning(
                f"Rule {rule.id} triggered: {rule.metric} {rule.operator} {rule.threshold:.2f} "
                f"(current {value:.2f})"
            )

        futures = []
        if rule.channel and rule.channel != 'none':
            futures.append(self._submit(self.send_notification, rule.channel, message))

        if not is_recovery and rule.shell_command:
            futures.append(self._submit(self.shell_executor.execute, rule.shell_command))

        if self.storage is not None:
            event = AlertEvent(
                rule_id=rule.id,
                kind=EventKind.RECOVERED if is_recovery else EventKind.FIRED,
                metric=rule.metric,
                value=value,
                threshold=rule.threshold,
                message=message,
            )
            futures.append(self._submit(self.storage.record_event, event))

        if self.on_fire is not None:
            try:
                self.on_fire(rule, is_recovery)
            except Exception as e:
                logger.error(f"Alert listener failed: {e}")

        return futures

    def send_notification(self, channel_name: str, message: str) -> bool:
        """
        Send a message through one channel.

        Returns:
            True if the channel accepted the message
        """
        logger.info(f"Dispatching notification via {channel_name}: {message}")
        with self._channels_lock:
            channel = self.channels.get(channel_name)

        if channel is None:
            logger.warning(f"Unknown notification channel: {channel_name}")
            return False

        return channel.send(message)

    def send_test_notification(self, channel_name: str) -> bool:
        """Send the fixed test message synchronously"""
        return self.send_notification(channel_name, TEST_MESSAGE)

    def _submit(self, fn, *args) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_task_failure)
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        """
        Stop accepting actions.

        Args:
            wait: Block until running actions finish
            cancel_futures: Drop actions that have not started yet
        """
        logger.info("Shutting down alert manager")
        self._executor.shutdown(wait=wait, cancel_futures=cancel_futures)


def _log_task_failure(future: Future) -> None:
    if future.cancelled():
        return
    error = future.exception()
    if error is not None:
        logger.error(f"Alert action failed: {error}", exc_info=error)
