"""Tests for the alert evaluator state machine"""

import pytest
from datetime import datetime, timedelta

from zerostat.alerts.alert_evaluator import AlertEvaluator, evaluate_condition
from zerostat.alerts.alert_rule import AlertRule, RuleState
from zerostat.alerts.rule_store import RuleStore
from zerostat.metrics.snapshot import MetricSnapshot

T0 = datetime(2026, 1, 1, 12, 0, 0)


class FakeSampler:
    """Returns a snapshot built from settable values"""

    def __init__(self):
        self.cpu = 0.0
        self.ram = 0.0
        self.disk = 0.0
        self.calls = 0

    def sample(self):
        self.calls += 1
        return MetricSnapshot(cpu_percent=self.cpu, memory_percent=self.ram, disk_percent=self.disk)


class RecordingManager:
    """Records fire() calls instead of dispatching"""

    def __init__(self):
        self.calls = []

    def fire(self, rule, value, is_recovery=False):
        self.calls.append((rule.id, value, is_recovery))
        return []

    def alerts(self):
        return [c for c in self.calls if not c[2]]

    def recoveries(self):
        return [c for c in self.calls if c[2]]


@pytest.fixture
def sampler():
    return FakeSampler()


@pytest.fixture
def manager():
    return RecordingManager()


def make_evaluator(rules, sampler, manager):
    store = RuleStore(rules)
    return AlertEvaluator(store, sampler, manager), store


def tick(evaluator, sampler, seconds, cpu=None, ram=None):
    if cpu is not None:
        sampler.cpu = cpu
    if ram is not None:
        sampler.ram = ram
    evaluator.evaluate_all_rules(now=T0 + timedelta(seconds=seconds))


class TestEvaluateCondition:
    """Test threshold comparisons"""

    def test_greater_and_less(self):
        assert evaluate_condition('>', 81, 80) is True
        assert evaluate_condition('>', 80, 80) is False
        assert evaluate_condition('<', 79, 80) is True
        assert evaluate_condition('<', 80, 80) is False

    def test_equality_tolerance(self):
        """Test '==' matches within 0.01"""
        assert evaluate_condition('==', 90.005, 90.0) is True
        assert evaluate_condition('==', 89.995, 90.0) is True
        assert evaluate_condition('==', 90.02, 90.0) is False

    def test_unknown_operator_falls_back_to_greater_equal(self):
        assert evaluate_condition('>=', 80, 80) is True
        assert evaluate_condition('??', 80, 80) is True
        assert evaluate_condition('??', 79.9, 80) is False


class TestAlertEvaluator:
    """Test per-rule state transitions"""

    def test_inactive_rule_untouched(self, sampler, manager):
        """Test inactive rules never change state"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=10, active=False)
        evaluator, store = make_evaluator([rule], sampler, manager)

        for i in range(5):
            tick(evaluator, sampler, i * 3, cpu=99)

        stored = store.get_rule("r")
        assert stored.violating_since is None
        assert stored.has_triggered is False
        assert stored.last_sent_at is None
        assert stored.sent_count == 0
        assert manager.calls == []

    def test_violating_since_is_first_breach_tick(self, sampler, manager):
        """Test the violation window starts at the first breaching tick"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, duration_seconds=60)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=50)
        assert store.get_rule("r").state == RuleState.IDLE

        tick(evaluator, sampler, 3, cpu=85)
        tick(evaluator, sampler, 6, cpu=90)
        tick(evaluator, sampler, 9, cpu=95)

        stored = store.get_rule("r")
        assert stored.violating_since == T0 + timedelta(seconds=3)
        assert stored.state == RuleState.VIOLATING
        assert manager.calls == []

    def test_zero_duration_fires_on_second_breach_tick(self, sampler, manager):
        """Test the first breach tick only opens the window"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=85)
        assert manager.calls == []

        tick(evaluator, sampler, 3, cpu=85)
        assert manager.alerts() == [("r", 85, False)]

    def test_fires_exactly_at_duration_boundary(self, sampler, manager):
        """Test elapsed == duration fires"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, duration_seconds=9)
        evaluator, store = make_evaluator([rule], sampler, manager)

        for seconds in (0, 3, 6):
            tick(evaluator, sampler, seconds, cpu=85)
        assert manager.calls == []

        tick(evaluator, sampler, 9, cpu=85)
        assert len(manager.alerts()) == 1

        stored = store.get_rule("r")
        assert stored.has_triggered is True
        assert stored.violating_since == T0
        assert stored.last_sent_at == T0 + timedelta(seconds=9)
        assert stored.sent_count == 1

    def test_zero_cooldown_never_refires(self, sampler, manager):
        """Test cooldown 0 means one alert per breach episode"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, cooldown_seconds=0)
        evaluator, store = make_evaluator([rule], sampler, manager)

        for i in range(20):
            tick(evaluator, sampler, i * 3, cpu=99)

        assert len(manager.alerts()) == 1
        assert store.get_rule("r").sent_count == 1

    def test_cooldown_refire(self, sampler, manager):
        """Test re-fire happens once cooldown has elapsed since the last send"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, cooldown_seconds=6)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=90)   # window opens
        tick(evaluator, sampler, 3, cpu=90)   # first fire, last sent = 3
        tick(evaluator, sampler, 6, cpu=90)   # 3s since send, suppressed
        assert len(manager.alerts()) == 1

        tick(evaluator, sampler, 9, cpu=90)   # 6s since send, re-fire
        assert len(manager.alerts()) == 2

        tick(evaluator, sampler, 12, cpu=90)  # suppressed again
        assert len(manager.alerts()) == 2

        stored = store.get_rule("r")
        assert stored.last_sent_at == T0 + timedelta(seconds=9)
        assert stored.sent_count == 2
        assert stored.has_triggered is True

    def test_recovery_after_trigger(self, sampler, manager):
        """Test recovery notifies once and clears state"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=90)
        tick(evaluator, sampler, 3, cpu=90)
        tick(evaluator, sampler, 6, cpu=40)
        tick(evaluator, sampler, 9, cpu=40)

        assert manager.recoveries() == [("r", 40, True)]
        stored = store.get_rule("r")
        assert stored.violating_since is None
        assert stored.has_triggered is False
        assert stored.sent_count == 1

    def test_recovery_before_trigger_is_silent(self, sampler, manager):
        """Test a breach that ends before the duration clears without notifying"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, duration_seconds=30)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=90)
        tick(evaluator, sampler, 3, cpu=50)

        assert manager.calls == []
        assert store.get_rule("r").state == RuleState.IDLE

    def test_new_episode_after_recovery(self, sampler, manager):
        """Test a new breach after recovery re-arms the debounce"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80, duration_seconds=3)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=90)
        tick(evaluator, sampler, 3, cpu=90)
        tick(evaluator, sampler, 6, cpu=10)
        tick(evaluator, sampler, 9, cpu=90)
        assert store.get_rule("r").violating_since == T0 + timedelta(seconds=9)
        assert len(manager.alerts()) == 1

        tick(evaluator, sampler, 12, cpu=90)
        assert len(manager.alerts()) == 2

    def test_scenario_cpu_debounce_and_cooldown(self, sampler, manager):
        """Test 85,85,85,85 then 82 with duration 10s and cooldown 60s"""
        rule = AlertRule(id="cpu", metric="CPU", operator=">", threshold=80,
                         duration_seconds=10, cooldown_seconds=60)
        evaluator, store = make_evaluator([rule], sampler, manager)

        tick(evaluator, sampler, 0, cpu=85)
        tick(evaluator, sampler, 3, cpu=85)
        tick(evaluator, sampler, 6, cpu=85)
        tick(evaluator, sampler, 9, cpu=85)
        assert manager.calls == []

        tick(evaluator, sampler, 12, cpu=85)
        assert manager.alerts() == [("cpu", 85, False)]

        tick(evaluator, sampler, 15, cpu=82)
        assert len(manager.alerts()) == 1
        assert manager.recoveries() == []

    def test_metric_selection(self, sampler, manager):
        """Test RAM and Disk rules read their own fields"""
        rules = [
            AlertRule(id="ram", metric="RAM", operator=">", threshold=50),
            AlertRule(id="disk", metric="Disk", operator="<", threshold=50),
            AlertRule(id="bogus", metric="GPU", operator="<", threshold=1),
        ]
        evaluator, store = make_evaluator(rules, sampler, manager)
        sampler.disk = 70

        tick(evaluator, sampler, 0, cpu=99, ram=60)

        assert store.get_rule("ram").state == RuleState.VIOLATING
        assert store.get_rule("disk").state == RuleState.IDLE
        # Unknown metric reads 0.0, which is < 1
        assert store.get_rule("bogus").state == RuleState.VIOLATING

    def test_one_snapshot_per_pass(self, sampler, manager):
        """Test every rule in a pass shares one sample"""
        rules = [AlertRule(metric="CPU", operator=">", threshold=i) for i in range(5)]
        evaluator, store = make_evaluator(rules, sampler, manager)

        tick(evaluator, sampler, 0, cpu=50)

        assert sampler.calls == 1
        assert evaluator.pass_count == 1

    def test_rule_deleted_mid_pass(self, sampler, manager):
        """Test state updates for a vanished rule are dropped silently"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80)
        evaluator, store = make_evaluator([rule], sampler, manager)
        tick(evaluator, sampler, 0, cpu=90)

        def fire_and_delete(rule, value, is_recovery=False):
            store.delete_rule(rule.id)
            return []

        manager.fire = fire_and_delete
        tick(evaluator, sampler, 3, cpu=90)

        assert store.get_rule("r") is None
        assert len(store) == 0

    def test_failing_rule_does_not_stop_pass(self, sampler, manager):
        """Test an error on one rule leaves the others evaluated"""
        rules = [
            AlertRule(id="a", metric="CPU", operator=">", threshold=80),
            AlertRule(id="b", metric="CPU", operator=">", threshold=80),
        ]
        evaluator, store = make_evaluator(rules, sampler, manager)
        tick(evaluator, sampler, 0, cpu=90)

        calls = []

        def flaky_fire(rule, value, is_recovery=False):
            calls.append(rule.id)
            if rule.id == "a":
                raise RuntimeError("boom")
            return []

        manager.fire = flaky_fire
        tick(evaluator, sampler, 3, cpu=90)

        assert calls == ["a", "b"]
        assert store.get_rule("b").has_triggered is True
        assert store.get_rule("a").has_triggered is False

    def test_rule_toggled_off_mid_pass(self, sampler, manager):
        """Test a rule deactivated while firing is left idle"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80)
        evaluator, store = make_evaluator([rule], sampler, manager)
        tick(evaluator, sampler, 0, cpu=90)

        def fire_and_toggle(rule, value, is_recovery=False):
            store.toggle_rule(rule.id)
            return []

        manager.fire = fire_and_toggle
        tick(evaluator, sampler, 3, cpu=90)

        stored = store.get_rule("r")
        assert stored.active is False
        assert stored.violating_since is None
        assert stored.has_triggered is False
        assert stored.state == RuleState.IDLE
