"""Disk metrics collector"""

import psutil
from zerostat.collectors.base import BaseCollector


class DiskCollector(BaseCollector):
    """Collector for usage of a single mount point (root by default)"""

    def __init__(self, config=None):
        super().__init__(config)
        self.path = self.config.get('disk_path', '/')

    def default_reading(self):
        return {'disk_used': 0, 'disk_total': 0, 'disk_percent': 0.0}

    def collect(self):
        """Collect disk usage metrics"""
        usage = psutil.disk_usage(self.path)

        self.logger.debug(f"Collected disk metrics for {self.path}: {usage.percent:.1f}% used")
        return {
            'disk_used': int(usage.used),
            'disk_total': int(usage.total),
            'disk_percent': float(usage.percent),
        }
