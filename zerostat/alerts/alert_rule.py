"""
Alert rule data structures and loading utilities.
"""

import threading
import time
import yaml
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

METRIC_TYPES = ('CPU', 'RAM', 'Disk')
OPERATORS = ('>', '<', '==')
CHANNELS = ('none', 'webhook', 'telegram', 'email')

# Fields written by the user; everything else is engine-owned runtime state
DEFINITION_FIELDS = (
    'id', 'metric', 'operator', 'threshold', 'duration_seconds',
    'cooldown_seconds', 'message_template', 'shell_command', 'channel', 'active',
)


class RuleState:
    """Rule state names"""
    IDLE = 'idle'              # Metric within bounds
    VIOLATING = 'violating'    # Breach observed, duration not yet met
    TRIGGERED = 'triggered'    # Duration met, action fired


_id_lock = threading.Lock()
_last_id = 0


def generate_rule_id() -> str:
    """Generate a rule id from the current time in nanoseconds, strictly increasing"""
    global _last_id
    with _id_lock:
        _last_id = max(time.time_ns(), _last_id + 1)
        return str(_last_id)


@dataclass
class AlertRule:
    """Alert rule definition plus its runtime evaluation state"""
    metric: str  # CPU, RAM, Disk
    operator: str  # >, <, ==
    threshold: float
    duration_seconds: int = 0
    cooldown_seconds: int = 0
    message_template: str = ""
    shell_command: str = ""
    channel: str = "none"  # none, webhook, telegram, email
    active: bool = True
    id: str = ""

    # Runtime state
    violating_since: Optional[datetime] = None
    has_triggered: bool = False
    last_sent_at: Optional[datetime] = None
    sent_count: int = 0

    def __post_init__(self):
        if not self.id:
            self.id = generate_rule_id()
        if not self.channel:
            self.channel = 'none'

    @property
    def state(self) -> str:
        """Current state machine position"""
        if self.has_triggered:
            return RuleState.TRIGGERED
        if self.violating_since is not None:
            return RuleState.VIOLATING
        return RuleState.IDLE

    def reset_state(self) -> None:
        """Return to idle without touching sent bookkeeping"""
        self.violating_since = None
        self.has_triggered = False

    def to_dict(self) -> Dict[str, Any]:
        """Definition fields only, for persistence"""
        return {name: getattr(self, name) for name in DEFINITION_FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AlertRule':
        """
        Create a rule from a definition dictionary.

        Numeric fields are coerced; runtime state always starts idle.

        Raises:
            KeyError: If metric is missing
            ValueError: If a numeric field cannot be parsed
        """
        return cls(
            id=str(data.get('id') or ''),
            metric=data['metric'],
            operator=data.get('operator', '>'),
            threshold=float(data.get('threshold', 0)),
            duration_seconds=int(data.get('duration_seconds', 0)),
            cooldown_seconds=int(data.get('cooldown_seconds', 0)),
            message_template=data.get('message_template') or '',
            shell_command=data.get('shell_command') or '',
            channel=data.get('channel') or 'none',
            active=bool(data.get('active', True)),
        )


def load_alert_rules(rules_file: str) -> List[AlertRule]:
    """
    Load alert rules from YAML file.

    Args:
        rules_file: Path to YAML file with an 'alert_rules' list

    Returns:
        List of AlertRule objects

    Raises:
        FileNotFoundError: If rules file doesn't exist
        ValueError: If rules file has invalid format
    """
    try:
        with open(rules_file, 'r') as f:
            config = yaml.safe_load(f)

        if not config or 'alert_rules' not in config:
            logger.warning(f"No alert_rules found in {rules_file}")
            return []

        rules = []
        for rule_config in config['alert_rules'] or []:
            try:
                rule = AlertRule.from_dict(rule_config)
                rules.append(rule)
                logger.debug(f"Loaded alert rule: {rule.id} ({rule.metric} {rule.operator} {rule.threshold})")

            except (KeyError, ValueError, TypeError) as e:
                logger.error(f"Failed to load rule {rule_config.get('id', 'unknown')}: {e}")
                continue

        logger.info(f"Loaded {len(rules)} alert rules from {rules_file}")
        return rules

    except FileNotFoundError:
        logger.error(f"Alert rules file not found: {rules_file}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML file {rules_file}: {e}")
        raise ValueError(f"Invalid YAML format: {e}")
