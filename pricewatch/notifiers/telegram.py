"""Telegram push for price alerts."""

import logging

import requests

from pricewatch.models import Notification, NotificationType

logger = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"

_ICONS = {
    NotificationType.WARNING: "📉",
    NotificationType.DANGER: "🚨",
}


class TelegramForwarder:
    """Notification listener that pushes warning/danger alerts to a chat."""

    def __init__(self, token: str, chat_id: str, timeout: float = 10):
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.chat_id)

    def __call__(self, notification: Notification) -> None:
        if notification.type in _ICONS:
            self.send(notification)

    def send(self, notification: Notification) -> bool:
        if not self.enabled:
            logger.debug("Telegram: TELEGRAM_BOT_TOKEN or TELEGRAM_CHAT_ID not set")
            return False

        text = (
            f"{_ICONS.get(notification.type, '🔔')} <b>Price Alert</b>\n\n"
            f"{notification.message}\n\n"
            f"<i>{notification.timestamp:%Y-%m-%d %H:%M}</i>"
        )
        payload = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }

        try:
            resp = requests.post(
                TELEGRAM_API.format(token=self.token), json=payload, timeout=self.timeout
            )
            if resp.status_code != 200:
                logger.error("Telegram error (status %d): %s", resp.status_code, resp.text)
            resp.raise_for_status()
            logger.debug("Telegram: alert sent")
            return True
        except requests.exceptions.RequestException as e:
            logger.error("Telegram request failed: %s", e)
            return False
