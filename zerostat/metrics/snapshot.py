"""
Point-in-time host metric reading.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, Any


@dataclass(frozen=True)
class MetricSnapshot:
    """Immutable reading of every tracked host metric"""
    timestamp: datetime = field(default_factory=datetime.now)
    cpu_percent: float = 0.0
    cpu_cores: int = 0
    memory_used: int = 0
    memory_total: int = 0
    memory_percent: float = 0.0
    disk_used: int = 0
    disk_total: int = 0
    disk_percent: float = 0.0
    net_rx_bytes: int = 0
    net_tx_bytes: int = 0
    net_rx_rate: float = 0.0  # bytes/s
    net_tx_rate: float = 0.0  # bytes/s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON friendly dictionary"""
        data = asdict(self)
        data['timestamp'] = self.timestamp.isoformat()
        return data
