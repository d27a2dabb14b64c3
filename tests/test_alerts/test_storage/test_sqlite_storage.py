"""Tests for SQLite storage backend"""

import pytest
import tempfile
import os
from datetime import datetime, timedelta

from zerostat.alerts.alert_rule import AlertRule
from zerostat.alerts.storage.sqlite_storage import SQLiteStorage
from zerostat.alerts.storage.base_storage import AlertEvent, EventKind


class TestSQLiteStorage:
    """Test SQLite storage backend"""

    @pytest.fixture
    def storage(self):
        """Create temporary SQLite storage"""
        temp_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        temp_db.close()

        config = {
            'sqlite_path': temp_db.name,
            'retention_days': 30,
        }
        storage = SQLiteStorage(config)

        yield storage

        storage.close()
        os.unlink(temp_db.name)

    def test_save_and_load_rules(self, storage):
        """Test rule definitions round trip in order"""
        rules = [
            AlertRule(id="b", metric="CPU", operator=">", threshold=80.0,
                      duration_seconds=10, cooldown_seconds=60, channel="webhook",
                      message_template="{metric} high", shell_command="systemctl restart my-app"),
            AlertRule(id="a", metric="RAM", operator="<", threshold=5.0, active=False),
        ]

        storage.save_rules(rules)
        loaded = storage.load_rules()

        assert [r.id for r in loaded] == ["b", "a"]
        assert loaded[0].duration_seconds == 10
        assert loaded[0].cooldown_seconds == 60
        assert loaded[0].channel == "webhook"
        assert loaded[0].message_template == "{metric} high"
        assert loaded[0].shell_command == "systemctl restart my-app"
        assert loaded[1].active is False

    def test_runtime_state_not_persisted(self, storage):
        """Test loaded rules start idle"""
        rule = AlertRule(id="r", metric="CPU", operator=">", threshold=80.0)
        rule.violating_since = datetime.now()
        rule.has_triggered = True
        rule.sent_count = 3

        storage.save_rules([rule])
        loaded = storage.load_rules()[0]

        assert loaded.violating_since is None
        assert loaded.has_triggered is False
        assert loaded.sent_count == 0

    def test_save_rules_replaces(self, storage):
        """Test saving a smaller set removes deleted rules"""
        storage.save_rules([
            AlertRule(id="1", metric="CPU", operator=">", threshold=1),
            AlertRule(id="2", metric="CPU", operator=">", threshold=2),
        ])
        storage.save_rules([AlertRule(id="2", metric="CPU", operator=">", threshold=2)])

        assert [r.id for r in storage.load_rules()] == ["2"]

    def test_record_and_get_events(self, storage):
        """Test events are returned newest first"""
        base = datetime.now()
        for i, kind in enumerate([EventKind.FIRED, EventKind.FIRED, EventKind.RECOVERED]):
            storage.record_event(AlertEvent(
                rule_id="r1",
                kind=kind,
                metric="CPU",
                value=85.0 - i,
                threshold=80.0,
                message=f"event {i}",
                created_at=base + timedelta(seconds=i),
            ))
        storage.record_event(AlertEvent(
            rule_id="other", kind=EventKind.FIRED, metric="RAM", value=1.0, threshold=0.5,
        ))

        events = storage.get_events_by_rule("r1")
        assert len(events) == 3
        assert events[0].kind == EventKind.RECOVERED
        assert events[0].message == "event 2"
        assert events[0].id is not None

        assert len(storage.get_events_by_rule("r1", limit=2)) == 2

    def test_cleanup_old_events(self, storage):
        """Test cleaning up old events"""
        storage.record_event(AlertEvent(
            rule_id="old", kind=EventKind.FIRED, metric="CPU", value=85.0, threshold=80.0,
            created_at=datetime.now() - timedelta(days=40),
        ))
        storage.record_event(AlertEvent(
            rule_id="recent", kind=EventKind.FIRED, metric="CPU", value=85.0, threshold=80.0,
            created_at=datetime.now() - timedelta(days=5),
        ))

        deleted = storage.cleanup_old_events(30)
        assert deleted == 1

        assert storage.get_events_by_rule("old") == []
        assert len(storage.get_events_by_rule("recent")) == 1
