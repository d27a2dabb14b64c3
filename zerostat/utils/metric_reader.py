"""
Utility for reading a rule's metric out of a snapshot.
"""

import logging

from zerostat.metrics.snapshot import MetricSnapshot

logger = logging.getLogger(__name__)

# Rule metric selector -> snapshot field
METRIC_FIELDS = {
    'CPU': 'cpu_percent',
    'RAM': 'memory_percent',
    'Disk': 'disk_percent',
}


def get_metric_value(snapshot: MetricSnapshot, metric: str) -> float:
    """
    Get the current value for a rule metric selector.

    Args:
        snapshot: Snapshot shared by every rule in the pass
        metric: Selector ('CPU', 'RAM' or 'Disk')

    Returns:
        The percentage, or 0.0 for an unknown selector

    Example:
        >>> get_metric_value(MetricSnapshot(cpu_percent=45.2), 'CPU')
        45.2
    """
    field_name = METRIC_FIELDS.get(metric)
    if field_name is None:
        logger.debug(f"Unknown metric selector {metric!r}, reading 0.0")
        return 0.0
    return getattr(snapshot, field_name)
