"""
Base storage interface for alert rules and alert event history.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from zerostat.alerts.alert_rule import AlertRule


class EventKind:
    """Alert event kinds"""
    FIRED = 'fired'          # Action fired for a sustained breach
    RECOVERED = 'recovered'  # Triggered rule returned within bounds


@dataclass
class AlertEvent:
    """One fired or recovered alert"""
    rule_id: str
    kind: str
    metric: str
    value: float
    threshold: float
    message: str = ""
    created_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for storage"""
        return {
            'rule_id': self.rule_id,
            'kind': self.kind,
            'metric': self.metric,
            'value': self.value,
            'threshold': self.threshold,
            'message': self.message,
            'created_at': self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'AlertEvent':
        """Create AlertEvent from dictionary"""
        created_at = data['created_at']
        return cls(
            id=data.get('id'),
            rule_id=data['rule_id'],
            kind=data['kind'],
            metric=data['metric'],
            value=data['value'],
            threshold=data['threshold'],
            message=data.get('message') or '',
            created_at=datetime.fromisoformat(created_at) if isinstance(created_at, str) else created_at,
        )


class BaseStorage(ABC):
    """Abstract base class for rule and alert history storage backends"""

    retention_days: int = 30

    @abstractmethod
    def load_rules(self) -> List[AlertRule]:
        """
        Load persisted rule definitions.

        Returns:
            Rules in their saved order, runtime state idle
        """
        pass

    @abstractmethod
    def save_rules(self, rules: List[AlertRule]) -> None:
        """
        Replace the persisted rule definitions.

        Args:
            rules: Current rule collection
        """
        pass

    @abstractmethod
    def record_event(self, event: AlertEvent) -> None:
        """
        Append an alert event to history.

        Args:
            event: Fired or recovered event
        """
        pass

    @abstractmethod
    def get_events_by_rule(self, rule_id: str, limit: int = 100) -> List[AlertEvent]:
        """
        Get recent events for a rule, newest first.

        Args:
            rule_id: Rule identifier
            limit: Maximum number of events to return
        """
        pass

    @abstractmethod
    def cleanup_old_events(self, days: int) -> int:
        """
        Delete events older than specified days.

        Returns:
            Number of events deleted
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection and cleanup resources"""
        pass
