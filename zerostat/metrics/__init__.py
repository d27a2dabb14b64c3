"""
Metric snapshots, the sampler and its rolling history.
"""

from zerostat.metrics.snapshot import MetricSnapshot
from zerostat.metrics.history import HistoryBuffer, generate_points
from zerostat.metrics.sampler import MetricsSampler

__all__ = ['MetricSnapshot', 'HistoryBuffer', 'generate_points', 'MetricsSampler']
