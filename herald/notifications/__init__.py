"""Notification rendering and delivery.

The dispatcher receives its :class:`MessageSender` once at construction::

    from herald.notifications import NotificationDispatcher, OutboundMessage

    dispatcher = NotificationDispatcher(sender)
    report = await dispatcher.dispatch([OutboundMessage("C1", "hello")])
    report.failed_channels  # ()

"""

from herald.notifications.dispatcher import (
    DispatchReport,
    MessageSender,
    NotificationDispatcher,
)
from herald.notifications.http_sender import (
    ChatApiConfig,
    ChatDeliveryError,
    HttpMessageSender,
)
from herald.notifications.messages import NotificationRenderer, render_mode_notification
from herald.notifications.models import (
    ModeNotification,
    OutboundMessage,
    Transition,
    TransitionCause,
)

__all__ = [
    "ChatApiConfig",
    "ChatDeliveryError",
    "DispatchReport",
    "HttpMessageSender",
    "MessageSender",
    "ModeNotification",
    "NotificationDispatcher",
    "NotificationRenderer",
    "OutboundMessage",
    "Transition",
    "TransitionCause",
    "render_mode_notification",
]
