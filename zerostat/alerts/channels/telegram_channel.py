"""
Telegram bot notification channel.
"""

import logging
from typing import Dict

import requests

from zerostat.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = 'https://api.telegram.org/bot{token}/sendMessage'


class TelegramChannel(BaseChannel):
    """Sends messages through the Telegram Bot API"""

    name = 'telegram'

    def __init__(self, config: Dict):
        """
        Initialize Telegram channel.

        Args:
            config: Notification configuration dict with telegram_bot_token
                and telegram_chat_id
        """
        self.bot_token = config.get('telegram_bot_token', '')
        self.chat_id = config.get('telegram_chat_id', '')
        self.timeout = config.get('webhook_timeout', 10)

    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def _deliver(self, message: str) -> None:
        response = requests.post(
            TELEGRAM_API_URL.format(token=self.bot_token),
            json={'chat_id': self.chat_id, 'text': message},
            headers={'Content-Type': 'application/json'},
            timeout=self.timeout
        )
        response.raise_for_status()
