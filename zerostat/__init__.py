"""
ZeroStat: host metrics sampler with a stateful threshold alerting engine.
"""

__version__ = '1.0.0'
