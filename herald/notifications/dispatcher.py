"""Deliver rendered notifications to chat channels.

Each message is sent on its own: a failing channel is logged and recorded in
the :class:`DispatchReport` while the remaining channels are still attempted.
Nothing is retried here.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from herald.errors import DeliveryFailedError
from herald.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from herald.notifications.models import OutboundMessage

logger = get_logger(__name__)


class DispatchEventType(enum.StrEnum):
    """Structured log event types for notification delivery."""

    DELIVERY_FAILED = "notification.delivery.failed"
    DISPATCH_COMPLETED = "notification.dispatch.completed"


@typ.runtime_checkable
class MessageSender(typ.Protocol):
    """Capability that posts text into a chat channel; may fail per call."""

    async def send_message(self, channel_id: str, text: str) -> object:
        """Send *text* to *channel_id*."""
        ...


@dataclasses.dataclass(slots=True)
class DispatchReport:
    """Outcome of one dispatch batch."""

    attempted: int = 0
    delivered: int = 0
    failures: list[DeliveryFailedError] = dataclasses.field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Return True when every attempted send succeeded."""
        return not self.failures

    @property
    def failed_channels(self) -> tuple[str, ...]:
        """Return the channel ids whose send failed, in attempt order."""
        return tuple(failure.channel_id for failure in self.failures)


class NotificationDispatcher:
    """Send messages through an injected :class:`MessageSender`.

    Parameters
    ----------
    sender:
        Message-sending capability held for the dispatcher's lifetime.

    """

    def __init__(self, sender: MessageSender) -> None:
        """Bind the sender used for every dispatch."""
        self._sender = sender

    async def dispatch(
        self, messages: cabc.Sequence[OutboundMessage]
    ) -> DispatchReport:
        """Attempt every message once and report the outcome.

        Send failures never propagate; they are logged at WARNING and listed in
        the returned report.
        """
        report = DispatchReport()
        for message in messages:
            report.attempted += 1
            try:
                await self._sender.send_message(message.channel_id, message.text)
            except Exception as exc:  # noqa: BLE001
                failure = DeliveryFailedError.from_exception(message.channel_id, exc)
                report.failures.append(failure)
                log_warning(
                    logger,
                    "[%s] channel_id=%s reason=%s",
                    DispatchEventType.DELIVERY_FAILED,
                    message.channel_id,
                    failure.reason,
                    exc_info=exc,
                )
                continue
            report.delivered += 1

        if report.attempted:
            log_info(
                logger,
                "[%s] attempted=%d delivered=%d failed=%d",
                DispatchEventType.DISPATCH_COMPLETED,
                report.attempted,
                report.delivered,
                len(report.failures),
            )
        return report
