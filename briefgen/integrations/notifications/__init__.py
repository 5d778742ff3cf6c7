"""
Outbound notifications.
"""

from .email_notifier import ResendEmailNotifier

__all__ = ['ResendEmailNotifier']
