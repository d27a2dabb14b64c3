"""
SMTP email notification channel.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Dict

from zerostat.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)

EMAIL_SUBJECT = 'ZeroStat Alert'


class EmailChannel(BaseChannel):
    """Submits alert mail directly to an SMTP server"""

    name = 'email'

    def __init__(self, config: Dict):
        """
        Initialize email channel.

        Args:
            config: Notification configuration dict with smtp_* keys
        """
        self.smtp_host = config.get('smtp_host', '')
        self.smtp_port = int(config.get('smtp_port') or 587)
        self.smtp_user = config.get('smtp_user', '')
        self.smtp_password = config.get('smtp_password', '')
        self.to_address = config.get('smtp_to', '')
        self.timeout = config.get('smtp_timeout', 30)

    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.to_address)

    def build_message(self, text: str) -> EmailMessage:
        msg = EmailMessage()
        msg['From'] = self.smtp_user or self.to_address
        msg['To'] = self.to_address
        msg['Subject'] = EMAIL_SUBJECT
        msg.set_content(text)
        return msg

    def _deliver(self, message: str) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            # Upgrade when offered, like most submission servers expect
            if smtp.has_extn('starttls'):
                smtp.starttls()
                smtp.ehlo()
            if self.smtp_user:
                smtp.login(self.smtp_user, self.smtp_password)
            smtp.send_message(self.build_message(message))
