"""
Concurrently accessed store of alert rules and their runtime state.
"""

import copy
import logging
import threading
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from zerostat.alerts.alert_rule import AlertRule
from zerostat.alerts.storage.base_storage import BaseStorage
from zerostat.utils.rwlock import ReadWriteLock

logger = logging.getLogger(__name__)


class RuleStore:
    """
    Owns the canonical rule collection.

    Readers always get deep copies so they never see a half-applied write
    and never hold the lock while doing slow work. Writers locate rules by
    id; updates for ids that no longer exist are dropped silently.
    """

    def __init__(self, rules: Optional[Iterable[AlertRule]] = None,
                 storage: Optional[BaseStorage] = None):
        """
        Initialize rule store.

        Args:
            rules: Initial rules, in display order
            storage: Optional persistence backend for rule definitions
        """
        self.storage = storage
        self._lock = ReadWriteLock()
        self._persist_lock = threading.Lock()
        self._rules: 'OrderedDict[str, AlertRule]' = OrderedDict()

        for rule in rules or []:
            self._rules[rule.id] = copy.deepcopy(rule)

    def load(self) -> int:
        """
        Replace the in-memory rules with the persisted ones.

        Best effort: a storage failure is logged and leaves the store as is.

        Returns:
            Number of rules loaded
        """
        if self.storage is None:
            return 0

        try:
            rules = self.storage.load_rules()
        except Exception as e:
            logger.error(f"Failed to load rules from storage: {e}")
            return 0

        with self._lock.write_locked():
            self._rules = OrderedDict((rule.id, rule) for rule in rules)

        logger.info(f"Loaded {len(rules)} rules from storage")
        return len(rules)

    def list_rules(self) -> List[AlertRule]:
        """Deep copy of all rules in insertion order"""
        with self._lock.read_locked():
            return copy.deepcopy(list(self._rules.values()))

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        """Deep copy of one rule, or None"""
        with self._lock.read_locked():
            rule = self._rules.get(rule_id)
            return copy.deepcopy(rule) if rule is not None else None

    def update_rule_state(self, rule_id: str, violating_since: Optional[datetime],
                          has_triggered: bool) -> bool:
        """
        Set the violation window and trigger flag of a rule.

        Inactive rules stay idle; a write from a pass that raced a toggle
        is dropped.

        Returns:
            True if the rule exists and is active
        """
        with self._lock.write_locked():
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.debug(f"State update dropped, rule {rule_id} no longer exists")
                return False
            if not rule.active:
                logger.debug(f"State update dropped, rule {rule_id} is inactive")
                return False

            rule.violating_since = violating_since
            rule.has_triggered = has_triggered
            return True

    def mark_sent(self, rule_id: str, sent_at: Optional[datetime] = None) -> bool:
        """
        Record that an action fired for a rule.

        Returns:
            True if the rule exists
        """
        with self._lock.write_locked():
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.debug(f"Sent mark dropped, rule {rule_id} no longer exists")
                return False

            rule.last_sent_at = sent_at or datetime.now()
            rule.sent_count += 1
            return True

    def replace_rules(self, rules: Iterable[AlertRule]) -> None:
        """Replace the whole collection"""
        new_rules = OrderedDict((rule.id, copy.deepcopy(rule)) for rule in rules)
        with self._lock.write_locked():
            self._rules = new_rules

        logger.info(f"Replaced rule set ({len(new_rules)} rules)")
        self._persist()

    def add_rule(self, rule: AlertRule) -> str:
        """
        Append a rule.

        Raises:
            ValueError: If a rule with the same id already exists

        Returns:
            The rule id
        """
        with self._lock.write_locked():
            if rule.id in self._rules:
                raise ValueError(f"Rule {rule.id} already exists")
            self._rules[rule.id] = copy.deepcopy(rule)

        logger.info(f"Added alert rule {rule.id}: {rule.metric} {rule.operator} {rule.threshold}")
        self._persist()
        return rule.id

    def toggle_rule(self, rule_id: str) -> Optional[bool]:
        """
        Flip a rule's active flag and reset its violation tracking.

        Returns:
            New active flag, or None if the rule does not exist
        """
        with self._lock.write_locked():
            rule = self._rules.get(rule_id)
            if rule is None:
                return None

            rule.active = not rule.active
            rule.reset_state()
            active = rule.active

        logger.info(f"Rule {rule_id} {'activated' if active else 'deactivated'}")
        self._persist()
        return active

    def delete_rule(self, rule_id: str) -> bool:
        """
        Remove a rule.

        Returns:
            True if a rule was removed
        """
        with self._lock.write_locked():
            removed = self._rules.pop(rule_id, None)

        if removed is None:
            return False

        logger.info(f"Deleted alert rule {rule_id}")
        self._persist()
        return True

    def counts(self) -> Dict[str, int]:
        """Number of active and inactive rules"""
        with self._lock.read_locked():
            active = sum(1 for rule in self._rules.values() if rule.active)
            return {'active': active, 'inactive': len(self._rules) - active}

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._rules)

    def _persist(self) -> None:
        """Save current definitions; failures are logged, never raised"""
        if self.storage is None:
            return

        with self._persist_lock:
            rules = self.list_rules()
            try:
                self.storage.save_rules(rules)
            except Exception as e:
                logger.error(f"Failed to persist rules: {e}")
