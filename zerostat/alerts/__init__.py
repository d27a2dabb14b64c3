"""
Alert system: rules, rule store, evaluator and action dispatch.
"""

from zerostat.alerts.alert_rule import AlertRule, RuleState, load_alert_rules
from zerostat.alerts.rule_store import RuleStore
from zerostat.alerts.alert_manager import AlertManager
from zerostat.alerts.alert_evaluator import AlertEvaluator

__all__ = [
    'AlertRule',
    'RuleState',
    'load_alert_rules',
    'RuleStore',
    'AlertManager',
    'AlertEvaluator',
]
