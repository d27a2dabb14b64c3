"""
Metrics sampler: turns collector readings into snapshots and keeps history.
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Any, List, Optional

from zerostat.collectors.base import BaseCollector
from zerostat.collectors.cpu_collector import CPUCollector
from zerostat.collectors.memory_collector import MemoryCollector
from zerostat.collectors.disk_collector import DiskCollector
from zerostat.collectors.network_collector import NetworkCollector
from zerostat.metrics.history import HistoryBuffer, DEFAULT_HISTORY_SIZE, generate_points
from zerostat.metrics.snapshot import MetricSnapshot
from zerostat.utils.helpers import calculate_rate

logger = logging.getLogger(__name__)


class MetricsSampler:
    """Samples host metrics and appends each snapshot to a history buffer"""

    def __init__(self, collectors: Optional[List[BaseCollector]] = None,
                 history: Optional[HistoryBuffer] = None,
                 clock: Callable[[], datetime] = datetime.now):
        """
        Initialize sampler.

        Args:
            collectors: Collectors to read from; defaults to cpu, memory,
                disk and network
            history: Buffer receiving every snapshot
            clock: Source of snapshot timestamps
        """
        if collectors is None:
            collectors = [CPUCollector(), MemoryCollector(), DiskCollector(), NetworkCollector()]

        self.collectors = collectors
        self.history = history or HistoryBuffer(DEFAULT_HISTORY_SIZE)
        self.clock = clock

        # Previous network counters for rate calculation
        self._lock = threading.Lock()
        self._prev_rx: Optional[int] = None
        self._prev_tx: Optional[int] = None
        self._prev_time: Optional[datetime] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'MetricsSampler':
        """Build a sampler from the 'sampler' config section"""
        sampler_config = config.get('sampler', {})
        collectors = [
            CPUCollector(sampler_config),
            MemoryCollector(sampler_config),
            DiskCollector(sampler_config),
            NetworkCollector(sampler_config),
        ]
        history = HistoryBuffer(sampler_config.get('history_size', DEFAULT_HISTORY_SIZE))
        return cls(collectors, history)

    def sample(self) -> MetricSnapshot:
        """
        Take a fresh snapshot of all metrics.

        Never raises; a failing collector contributes zeroed fields.
        """
        fields: Dict[str, Any] = {}
        counters_read = False
        for collector in self.collectors:
            reading = collector.run_collection()
            fields.update(reading)
            if 'net_rx_bytes' in reading and not collector.degraded:
                counters_read = True

        with self._lock:
            now = self.clock()

            # Zeroed counters from a failed read must not become the baseline
            if counters_read:
                rx = fields['net_rx_bytes']
                tx = fields['net_tx_bytes']

                if self._prev_time is not None:
                    elapsed = (now - self._prev_time).total_seconds()
                    fields['net_rx_rate'] = calculate_rate(rx, self._prev_rx, elapsed)
                    fields['net_tx_rate'] = calculate_rate(tx, self._prev_tx, elapsed)

                self._prev_rx = rx
                self._prev_tx = tx
                self._prev_time = now

            snapshot = MetricSnapshot(timestamp=now, **fields)

        self.history.append(snapshot)
        logger.debug(
            f"Sampled cpu={snapshot.cpu_percent:.1f}% mem={snapshot.memory_percent:.1f}% "
            f"disk={snapshot.disk_percent:.1f}%"
        )
        return snapshot

    def recent_history(self) -> List[MetricSnapshot]:
        """Snapshots currently retained, oldest first"""
        return self.history.snapshots()

    def trend_points(self, field_name: str, width: float, height: float,
                     max_value: float = 100.0) -> str:
        """
        SVG polyline points for one snapshot field over the retained history

        Args:
            field_name: MetricSnapshot attribute, e.g. 'cpu_percent'
            width: Chart width
            height: Chart height
            max_value: Value drawn at the top edge
        """
        return generate_points(
            self.recent_history(), width, height, max_value,
            lambda snapshot: getattr(snapshot, field_name),
            capacity=self.history.capacity,
        )

    def unhealthy_collectors(self) -> List[str]:
        """Names of collectors that failed several times in a row"""
        return [c.get_name() for c in self.collectors if not c.is_healthy()]
