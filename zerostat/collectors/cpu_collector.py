"""CPU metrics collector"""

import psutil
from zerostat.collectors.base import BaseCollector


class CPUCollector(BaseCollector):
    """Collector for overall CPU utilization"""

    def __init__(self, config=None):
        super().__init__(config)
        self.cores = self._count_cores()
        # Prime psutil so the first non-blocking read has a baseline
        try:
            psutil.cpu_percent(interval=None)
        except Exception as e:
            self.logger.debug(f"Unable to prime CPU counters: {e}")

    def _count_cores(self) -> int:
        try:
            return psutil.cpu_count(logical=True) or 1
        except Exception:
            return 1

    def default_reading(self):
        return {'cpu_percent': 0.0, 'cpu_cores': self.cores}

    def collect(self):
        """Collect CPU metrics"""
        cpu_percent = psutil.cpu_percent(interval=None)

        self.logger.debug(f"Collected CPU metrics: {cpu_percent:.1f}% used")
        return {'cpu_percent': float(cpu_percent), 'cpu_cores': self.cores}
