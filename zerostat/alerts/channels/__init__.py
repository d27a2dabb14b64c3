"""
Notification channels.
"""

from zerostat.alerts.channels.base_channel import BaseChannel
from zerostat.alerts.channels.webhook_channel import WebhookChannel
from zerostat.alerts.channels.telegram_channel import TelegramChannel
from zerostat.alerts.channels.email_channel import EmailChannel

CHANNEL_CLASSES = {
    'webhook': WebhookChannel,
    'telegram': TelegramChannel,
    'email': EmailChannel,
}

__all__ = [
    'BaseChannel',
    'WebhookChannel',
    'TelegramChannel',
    'EmailChannel',
    'CHANNEL_CLASSES',
]
