"""
Dev email adapter.

Logs verification emails instead of sending them and keeps them in memory
so tests can read the verification link back. Outbound delivery is handled
elsewhere in production.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    body: str
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    sent_emails: list[SentEmail] = field(default_factory=list)
    log_level: int = logging.INFO

    def send_email(self, recipient: str, subject: str, body: str) -> str:
        message_id = f"dev-{uuid4().hex[:12]}"
        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=recipient,
                subject=subject,
                body=body,
                logged_at=datetime.now(UTC),
            )
        )
        logger.log(
            self.log_level,
            "[DEV EMAIL] id=%s to=%s subject=%r body=%s",
            message_id,
            recipient,
            subject,
            body,
        )
        return message_id

    def last_to(self, recipient: str) -> SentEmail | None:
        for email in reversed(self.sent_emails):
            if email.recipient == recipient:
                return email
        return None

    def clear(self) -> None:
        self.sent_emails.clear()
