"""
Alert evaluator: advances every rule's state machine once per tick.
"""

import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

from zerostat.alerts.alert_manager import AlertManager
from zerostat.alerts.alert_rule import AlertRule
from zerostat.alerts.rule_store import RuleStore
from zerostat.metrics.sampler import MetricsSampler
from zerostat.metrics.snapshot import MetricSnapshot
from zerostat.utils.metric_reader import get_metric_value

logger = logging.getLogger(__name__)

EQUALITY_TOLERANCE = 0.01


def evaluate_condition(operator: str, value: float, threshold: float) -> bool:
    """
    Check whether a value breaches a threshold.

    '==' matches within EQUALITY_TOLERANCE; unknown operators fall back
    to '>='.
    """
    if operator == '>':
        return value > threshold
    if operator == '<':
        return value < threshold
    if operator == '==':
        return abs(value - threshold) < EQUALITY_TOLERANCE
    return value >= threshold


class AlertEvaluator:
    """
    Evaluates all rules against one fresh snapshot per pass.

    Passes are serialized: a second caller waits for the pass in flight
    so two passes never interleave writes to the same rule.
    """

    def __init__(self, rule_store: RuleStore, sampler: MetricsSampler,
                 alert_manager: AlertManager,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initialize alert evaluator.

        Args:
            rule_store: Source of rules and sink for state updates
            sampler: Produces the snapshot for each pass
            alert_manager: Dispatches alert and recovery actions
            clock: Time source for the state machine
        """
        self.rule_store = rule_store
        self.sampler = sampler
        self.alert_manager = alert_manager
        self.clock = clock

        self._pass_lock = threading.Lock()
        self.pass_count = 0
        self.last_pass_duration = 0.0

    def evaluate_all_rules(self, now: Optional[datetime] = None) -> MetricSnapshot:
        """
        Run one evaluation pass.

        Args:
            now: Evaluation time; defaults to the clock

        Returns:
            The snapshot every rule was evaluated against
        """
        with self._pass_lock:
            started = time.monotonic()
            snapshot = self.sampler.sample()
            now = now or self.clock()

            for rule in self.rule_store.list_rules():
                if not rule.active:
                    continue

                try:
                    self._evaluate_rule(rule, snapshot, now)
                except Exception as e:
                    logger.error(f"Error evaluating rule {rule.id}: {e}", exc_info=True)

            self.pass_count += 1
            self.last_pass_duration = time.monotonic() - started
            return snapshot

    def _evaluate_rule(self, rule: AlertRule, snapshot: MetricSnapshot, now: datetime) -> None:
        """
        Advance a single rule.

        Args:
            rule: Private copy of the rule
            snapshot: Snapshot shared by the pass
            now: Evaluation time
        """
        value = get_metric_value(snapshot, rule.metric)
        violating = evaluate_condition(rule.operator, value, rule.threshold)

        if not violating:
            self._recover(rule, value)
            return

        if rule.violating_since is None:
            # Idle -> Violating
            logger.debug(f"Rule {rule.id} violating: {value:.2f} {rule.operator} {rule.threshold}")
            self.rule_store.update_rule_state(rule.id, now, False)
            return

        elapsed = now - rule.violating_since
        if elapsed < timedelta(seconds=rule.duration_seconds):
            return

        if not rule.has_triggered:
            # Violating -> Triggered
            self.alert_manager.fire(rule, value, is_recovery=False)
            self.rule_store.update_rule_state(rule.id, rule.violating_since, True)
            self.rule_store.mark_sent(rule.id, now)
            return

        if self._cooldown_elapsed(rule, now):
            self.alert_manager.fire(rule, value, is_recovery=False)
            self.rule_store.mark_sent(rule.id, now)
        else:
            logger.debug(f"Rule {rule.id} still triggered, re-fire suppressed by cooldown")

    def _cooldown_elapsed(self, rule: AlertRule, now: datetime) -> bool:
        if rule.cooldown_seconds <= 0 or rule.last_sent_at is None:
            return False
        return now - rule.last_sent_at >= timedelta(seconds=rule.cooldown_seconds)

    def _recover(self, rule: AlertRule, value: float) -> None:
        """Return a rule to idle, notifying if it had triggered"""
        if rule.has_triggered:
            self.alert_manager.fire(rule, value, is_recovery=True)

        if rule.violating_since is not None or rule.has_triggered:
            self.rule_store.update_rule_state(rule.id, None, False)
