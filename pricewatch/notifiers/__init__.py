"""Notification backends."""

from pricewatch.notifiers.log import MAX_NOTIFICATIONS, NotificationLog
from pricewatch.notifiers.telegram import TelegramForwarder

__all__ = ["MAX_NOTIFICATIONS", "NotificationLog", "TelegramForwarder"]
