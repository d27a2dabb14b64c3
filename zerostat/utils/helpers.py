"""Small shared helpers"""

import socket
import platform

UNKNOWN_HOST = "unknown-host"


def get_hostname():
    """Name of this machine, never empty"""
    try:
        name = socket.gethostname()
    except OSError:
        name = ""
    return name or platform.node() or UNKNOWN_HOST


def resolve_hostname(configured):
    """Configured agent hostname, with 'auto' meaning detect it"""
    if not configured or configured == 'auto':
        return get_hostname()
    return configured


def safe_divide(a, b, default=0.0):
    """a / b, or default when b is zero"""
    if not b:
        return default
    return a / b


def calculate_rate(current, previous, interval):
    """
    Per-second rate between two cumulative counter readings

    A counter that went backwards (interface reset, wrap) yields 0 for
    that interval.
    """
    if previous is None or interval <= 0:
        return 0.0

    return safe_divide(max(current - previous, 0), interval)
