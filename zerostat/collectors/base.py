"""Collector interface shared by the host readers"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import time
from zerostat.utils.logger import get_logger

# Consecutive failed reads before a collector reports unhealthy
UNHEALTHY_AFTER = 3


class BaseCollector(ABC):
    """
    One source of snapshot fields

    Subclasses implement collect() for the live read and default_reading()
    for the zeroed fields a failed read degrades to.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.config = config or {}
        self.logger = get_logger(self.__class__.__name__)
        self.error_count = 0
        # True when the last run_collection() returned default_reading()
        self.degraded = False
        self.last_success: Optional[float] = None
        self.last_duration = 0.0

    @abstractmethod
    def collect(self) -> Dict[str, Any]:
        """Read current values; may raise on host errors"""

    @abstractmethod
    def default_reading(self) -> Dict[str, Any]:
        """Same keys as collect(), zeroed"""

    def run_collection(self) -> Dict[str, Any]:
        """
        Read the collector without ever raising

        Returns:
            collect() output, or default_reading() when the read failed
        """
        started = time.monotonic()
        try:
            reading = self.collect()
        except Exception as e:
            self.error_count += 1
            self.degraded = True
            # Full traceback only for the first failure of a streak
            self.logger.warning(
                f"Read failed ({self.error_count} in a row), using zeroed values: {e}",
                exc_info=self.error_count == 1
            )
            return self.default_reading()
        finally:
            self.last_duration = time.monotonic() - started

        if self.error_count:
            self.logger.info(f"Recovered after {self.error_count} failed reads")
        self.error_count = 0
        self.degraded = False
        self.last_success = time.time()
        return reading

    def is_healthy(self) -> bool:
        return self.error_count < UNHEALTHY_AFTER

    def get_name(self) -> str:
        """'CPUCollector' -> 'cpu'"""
        return self.__class__.__name__.replace('Collector', '').lower()
