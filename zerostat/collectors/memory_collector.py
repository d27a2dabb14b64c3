"""Memory metrics collector"""

import psutil
from zerostat.collectors.base import BaseCollector


class MemoryCollector(BaseCollector):
    """Collector for physical memory usage"""

    def default_reading(self):
        return {'memory_used': 0, 'memory_total': 0, 'memory_percent': 0.0}

    def collect(self):
        """Collect memory metrics"""
        vm = psutil.virtual_memory()

        self.logger.debug(f"Collected memory metrics: {vm.percent:.1f}% used")
        return {
            'memory_used': int(vm.used),
            'memory_total': int(vm.total),
            'memory_percent': float(vm.percent),
        }
