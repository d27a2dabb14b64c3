"""Network metrics collector"""

import psutil
from zerostat.collectors.base import BaseCollector


class NetworkCollector(BaseCollector):
    """Collector for host-wide cumulative network byte counters"""

    def default_reading(self):
        return {'net_rx_bytes': 0, 'net_tx_bytes': 0}

    def collect(self):
        """Collect network I/O counters summed over all interfaces"""
        counters = psutil.net_io_counters(pernic=False)
        if counters is None:
            # No interfaces reported (some containers); no counters to rate against
            return {}

        return {
            'net_rx_bytes': int(counters.bytes_recv),
            'net_tx_bytes': int(counters.bytes_sent),
        }
