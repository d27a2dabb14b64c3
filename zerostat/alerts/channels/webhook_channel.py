"""
Generic webhook notification channel.
"""

import logging
from typing import Dict

import requests

from zerostat.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)


class WebhookChannel(BaseChannel):
    """Posts {"text": message} as JSON to a webhook URL"""

    name = 'webhook'

    def __init__(self, config: Dict):
        """
        Initialize webhook channel.

        Args:
            config: Notification configuration dict with webhook_url
        """
        self.url = config.get('webhook_url', '')
        self.headers = dict(config.get('webhook_headers') or {})
        self.timeout = config.get('webhook_timeout', 10)

        # Ensure Content-Type is set
        if 'Content-Type' not in self.headers:
            self.headers['Content-Type'] = 'application/json'

    def is_configured(self) -> bool:
        return bool(self.url)

    def _deliver(self, message: str) -> None:
        response = requests.post(
            self.url,
            json={'text': message},
            headers=self.headers,
            timeout=self.timeout
        )
        response.raise_for_status()
