"""Outbound notifications."""

from mwarex.notifications.mailer import EmailNotifier, NotificationResult, get_email_notifier

__all__ = ["EmailNotifier", "NotificationResult", "get_email_notifier"]
