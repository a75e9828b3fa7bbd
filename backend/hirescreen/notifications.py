"""
Status-change notifications.

The core only builds the payload. Delivery belongs to whatever Notifier the
application wires in; the default one writes the event to the log.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Optional, Protocol

from .config import NOTIFICATIONS_ENABLED, NOTIFY_FROM_EMAIL, NOTIFY_FROM_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationConfig:
    from_email: str
    from_name: str
    enabled: bool = True

    @classmethod
    def from_settings(cls) -> "NotificationConfig":
        return cls(
            from_email=NOTIFY_FROM_EMAIL,
            from_name=NOTIFY_FROM_NAME,
            enabled=NOTIFICATIONS_ENABLED,
        )


@dataclass(frozen=True)
class StatusChangeEvent:
    candidate_id: Optional[int]
    recipient_email: str
    recipient_phone: Optional[str]
    candidate_name: Optional[str]
    job_title: str
    previous_status: str
    new_status: str
    sender_email: str
    sender_name: str
    feedback: Optional[str] = None

    @property
    def subject(self) -> str:
        return f"Application Status Update - {self.job_title or 'Position'}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["subject"] = self.subject
        return data


class Notifier(Protocol):
    def notify(self, event: StatusChangeEvent) -> None:
        ...


class LoggingNotifier:
    """Writes each event to the log instead of sending it anywhere."""

    def notify(self, event: StatusChangeEvent) -> None:
        logger.info(
            "Status change for candidate %s (%s): %s -> %s [%s]",
            event.candidate_id, event.recipient_email,
            event.previous_status, event.new_status, event.job_title,
        )


def build_status_change_event(
    candidate,
    job_title: str,
    previous_status: str,
    new_status: str,
    config: NotificationConfig,
    feedback: Optional[str] = None,
) -> StatusChangeEvent:
    return StatusChangeEvent(
        candidate_id=candidate.id,
        recipient_email=candidate.email,
        recipient_phone=candidate.phone,
        candidate_name=candidate.name,
        job_title=job_title,
        previous_status=previous_status,
        new_status=new_status,
        sender_email=config.from_email,
        sender_name=config.from_name,
        feedback=feedback,
    )
