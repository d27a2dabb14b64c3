"""
Base notification channel interface.
"""

from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class BaseChannel(ABC):
    """Abstract base class for notification channels"""

    name = 'base'

    @abstractmethod
    def is_configured(self) -> bool:
        """
        Check whether the channel has everything it needs to send.

        Returns:
            True if a send can be attempted
        """
        pass

    @abstractmethod
    def _deliver(self, message: str) -> None:
        """
        Deliver a message over the transport.

        Raises on transport failure.
        """
        pass

    def send(self, message: str) -> bool:
        """
        Send a notification message, best effort.

        An unconfigured channel is a no-op with a warning. Transport
        errors are logged, never raised.

        Args:
            message: Fully formatted message text

        Returns:
            True if notification sent successfully, False otherwise
        """
        if not self.is_configured():
            logger.warning(f"{self.name} channel selected but not configured, notification skipped")
            return False

        try:
            self._deliver(message)
            logger.info(f"Notification sent via {self.name}")
            return True
        except Exception as e:
            logger.error(f"Failed to send {self.name} notification: {e}")
            return False
