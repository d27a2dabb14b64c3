"""
Storage backends for alert rules and alert history.
"""

from zerostat.alerts.storage.base_storage import BaseStorage, AlertEvent, EventKind

__all__ = ['BaseStorage', 'AlertEvent', 'EventKind']
