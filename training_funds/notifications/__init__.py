"""
Notifications Module

Renders and delivers the approver, requester and disburser emails for
funding request transitions.
"""

from .dispatcher import Delivery, DispatchReport, NotificationDispatcher
from .message_formatter import MessageFormatter
from .notifier import Attachment, LoggingNotifier, Notifier, OutboundMessage, SmtpNotifier

__all__ = [
    # Dispatching
    "NotificationDispatcher",
    "DispatchReport",
    "Delivery",
    # Formatting
    "MessageFormatter",
    # Transports
    "Notifier",
    "OutboundMessage",
    "Attachment",
    "SmtpNotifier",
    "LoggingNotifier",
]
