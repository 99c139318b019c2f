from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from identity_search.components.lifecycle import HookOutcome, SignupEvent, VerificationEvent
from identity_search.domain.entities import Identity, VerificationToken


class IdentityRepoPort(Protocol):
    def get_by_email(self, email: str) -> Identity | None: ...
    def get_by_id(self, identity_id: UUID) -> Identity | None: ...
    def save(self, identity: Identity) -> Identity: ...
    def update_fields(
        self, identity_id: UUID, fields: dict[str, Any], updated_at: datetime
    ) -> Identity | None: ...


class VerificationRepoPort(Protocol):
    def save(self, token: VerificationToken) -> VerificationToken: ...
    def find_valid(self, value: str, now: datetime) -> VerificationToken | None: ...
    def consume(self, value: str, now: datetime) -> bool: ...


class AuthAdapterPort(Protocol):
    def verify_password(self, plain: str, hashed: str) -> bool: ...
    def hash_password(self, plain: str) -> str: ...
    def create_token(self, identity_id: object, ttl_minutes: int) -> str: ...


class MailerPort(Protocol):
    def send_email(self, recipient: str, subject: str, body: str) -> str: ...


class LifecycleHooksPort(Protocol):
    """Receiver of identity lifecycle notifications."""

    def on_signup(self, event: SignupEvent) -> HookOutcome: ...
    def on_verification(self, event: VerificationEvent) -> HookOutcome: ...


class TimePort(Protocol):
    """Port for time operations - enables deterministic testing."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
