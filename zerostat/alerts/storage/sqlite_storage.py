"""
SQLite storage backend for alert rules and alert history.
"""

import sqlite3
import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List
from pathlib import Path

from zerostat.alerts.alert_rule import AlertRule
from zerostat.alerts.storage.base_storage import BaseStorage, AlertEvent

logger = logging.getLogger(__name__)


class SQLiteStorage(BaseStorage):
    """SQLite implementation of rule and alert storage"""

    def __init__(self, config: Dict):
        """
        Initialize SQLite storage.

        Args:
            config: Storage configuration dict with 'sqlite_path' key
        """
        self.db_path = config.get('sqlite_path', './data/zerostat.db')
        self.retention_days = config.get('retention_days', 30)

        # Ensure directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # One connection shared by the evaluator, action workers and callers
        self._lock = threading.Lock()
        self.conn = None
        self._init_db()

        logger.info(f"Initialized SQLite storage at {self.db_path}")

    def _init_db(self):
        """Create database tables and indexes"""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        # Enable WAL mode for better concurrency
        self.conn.execute("PRAGMA journal_mode=WAL")

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS alert_rules (
                position INTEGER NOT NULL,
                id VARCHAR(64) PRIMARY KEY,
                metric VARCHAR(16) NOT NULL,
                operator VARCHAR(4) NOT NULL,
                threshold REAL NOT NULL,
                duration_seconds INTEGER DEFAULT 0,
                cooldown_seconds INTEGER DEFAULT 0,
                message_template TEXT,
                shell_command TEXT,
                channel VARCHAR(16),
                active INTEGER DEFAULT 1
            )
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS alert_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                rule_id VARCHAR(64) NOT NULL,
                kind VARCHAR(16) NOT NULL,
                metric VARCHAR(16),
                value REAL,
                threshold REAL,
                message TEXT,
                created_at TIMESTAMP NOT NULL
            )
        """)

        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_event_rule_id ON alert_events(rule_id)"
        )
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_event_created_at ON alert_events(created_at)"
        )

        self.conn.commit()

    def load_rules(self) -> List[AlertRule]:
        """Load rule definitions in saved order"""
        try:
            with self._lock:
                cursor = self.conn.execute(
                    "SELECT * FROM alert_rules ORDER BY position"
                )
                rows = cursor.fetchall()

            rules = []
            for row in rows:
                data = dict(row)
                data['active'] = bool(data['active'])
                rules.append(AlertRule.from_dict(data))

            return rules

        except sqlite3.Error as e:
            logger.error(f"Failed to load rules: {e}")
            raise

    def save_rules(self, rules: List[AlertRule]) -> None:
        """Replace all stored rule definitions"""
        with self._lock:
            try:
                self.conn.execute("DELETE FROM alert_rules")
                for position, rule in enumerate(rules):
                    data = rule.to_dict()
                    self.conn.execute("""
                        INSERT INTO alert_rules (
                            position, id, metric, operator, threshold,
                            duration_seconds, cooldown_seconds, message_template,
                            shell_command, channel, active
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """, (
                        position,
                        data['id'],
                        data['metric'],
                        data['operator'],
                        data['threshold'],
                        data['duration_seconds'],
                        data['cooldown_seconds'],
                        data['message_template'],
                        data['shell_command'],
                        data['channel'],
                        int(data['active']),
                    ))

                self.conn.commit()
                logger.debug(f"Saved {len(rules)} rules")

            except sqlite3.Error as e:
                logger.error(f"Failed to save rules: {e}")
                self.conn.rollback()
                raise

    def record_event(self, event: AlertEvent) -> None:
        """Append an alert event"""
        with self._lock:
            try:
                data = event.to_dict()
                cursor = self.conn.execute("""
                    INSERT INTO alert_events (
                        rule_id, kind, metric, value, threshold, message, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    data['rule_id'],
                    data['kind'],
                    data['metric'],
                    data['value'],
                    data['threshold'],
                    data['message'],
                    data['created_at'],
                ))

                self.conn.commit()
                event.id = cursor.lastrowid
                logger.debug(f"Recorded {event.kind} event for rule {event.rule_id}")

            except sqlite3.Error as e:
                logger.error(f"Failed to record event for rule {event.rule_id}: {e}")
                self.conn.rollback()
                raise

    def get_events_by_rule(self, rule_id: str, limit: int = 100) -> List[AlertEvent]:
        """Get recent events for a specific rule"""
        try:
            with self._lock:
                cursor = self.conn.execute("""
                    SELECT * FROM alert_events
                    WHERE rule_id = ?
                    ORDER BY created_at DESC, id DESC
                    LIMIT ?
                """, (rule_id, limit))
                rows = cursor.fetchall()

            return [AlertEvent.from_dict(dict(row)) for row in rows]

        except sqlite3.Error as e:
            logger.error(f"Failed to get events for rule {rule_id}: {e}")
            return []

    def cleanup_old_events(self, days: int) -> int:
        """Delete events older than specified days"""
        with self._lock:
            try:
                cutoff_date = datetime.now() - timedelta(days=days)

                cursor = self.conn.execute(
                    "DELETE FROM alert_events WHERE created_at < ?",
                    (cutoff_date.isoformat(),)
                )

                deleted_count = cursor.rowcount
                self.conn.commit()

                if deleted_count > 0:
                    logger.info(f"Cleaned up {deleted_count} old alert events (>{days} days)")

                return deleted_count

            except sqlite3.Error as e:
                logger.error(f"Failed to cleanup old events: {e}")
                self.conn.rollback()
                return 0

    def close(self) -> None:
        """Close database connection"""
        if self.conn:
            try:
                with self._lock:
                    self.conn.close()
                logger.debug("Closed SQLite connection")
            except sqlite3.Error as e:
                logger.error(f"Error closing SQLite connection: {e}")
