"""
Lifecycle event bridge.

Turns identity lifecycle notifications from the authentication flow into
index writes:

- signup: resolve first-account roles inline, then re-read the record and
  upsert its document in the background
- email verification: find the identity (from the payload, or by token), then
  mark it verified in the index after a short delay
- administrative update/delete: re-index or remove in the background

Every hook returns a HookOutcome and never raises. The authentication
operation has already committed by the time a hook runs; indexing trouble is
logged and otherwise ignored.

The verification delay exists because the hook can fire before the
authentication flow's own write is durable. It narrows that window rather
than closing it; emitting the event only after commit would close it.
"""

from __future__ import annotations

import logging
from uuid import UUID

from identity_search.components.first_account import ResolveInput, run_resolve
from identity_search.components.index_writer import WriteResult, to_document
from identity_search.domain.entities import Identity

from .models import (
    HookOutcome,
    IdentityDeletedEvent,
    IdentityUpdatedEvent,
    Resolved,
    SignupEvent,
    TokenOnly,
    VerificationEvent,
    VerificationPayload,
)
from .ports import (
    IdentityRepoPort,
    IndexWriterPort,
    TaskSchedulerPort,
    TimePort,
    VerificationRepoPort,
)

logger = logging.getLogger(__name__)

MAX_CATCH_UP_WRITES = 3


class LifecycleBridge:
    def __init__(
        self,
        identity_repo: IdentityRepoPort,
        verification_repo: VerificationRepoPort,
        writer: IndexWriterPort,
        scheduler: TaskSchedulerPort,
        time: TimePort,
        verification_delay_seconds: float = 0.1,
    ) -> None:
        self._identities = identity_repo
        self._verifications = verification_repo
        self._writer = writer
        self._scheduler = scheduler
        self._time = time
        self._verification_delay = verification_delay_seconds

    # --- Signup ---

    def on_signup(self, event: SignupEvent) -> HookOutcome:
        """Resolve roles now; index once the record reflects them."""
        try:
            resolved = run_resolve(ResolveInput(event.identity_id), self._identities, self._time)
            if not resolved.success:
                logger.warning(
                    "Role resolution failed for %s: %s", event.identity_id, resolved.error
                )
                return HookOutcome(
                    accepted=False, identity_id=event.identity_id, error=resolved.error
                )

            scheduled = self._scheduler.schedule(
                f"index-signup:{event.identity_id}",
                lambda: self.index_identity(event.identity_id),
            )
            escalated = resolved.assignment is not None and resolved.assignment.escalated
            return HookOutcome(
                accepted=True,
                identity_id=event.identity_id,
                scheduled=scheduled,
                escalated=escalated,
            )
        except Exception as e:
            logger.exception("Signup hook failed for %s", event.identity_id)
            return HookOutcome(accepted=False, identity_id=event.identity_id, error=str(e))

    def index_identity(self, identity_id: UUID) -> WriteResult | None:
        """Re-read from the system of record and upsert. None if the record is gone.

        The record is read again after each write. A change that committed while
        the write was in flight (a verification, say) gets its own write, so a
        late full upsert cannot leave an older snapshot in the index.
        """
        identity = self._identities.get_by_id(identity_id)
        if identity is None:
            logger.warning("Identity %s not found; nothing to index", identity_id)
            return None

        result = self._writer.upsert(to_document(identity))
        for _ in range(MAX_CATCH_UP_WRITES):
            if not result.success:
                return result
            current = self._identities.get_by_id(identity_id)
            if current is None or current == identity:
                return result
            logger.info("Identity %s changed while indexing; writing newer state", identity_id)
            identity = current
            result = self._writer.upsert(to_document(identity))

        logger.warning("Identity %s kept changing while indexing", identity_id)
        return result

    # --- Email verification ---

    def on_verification(self, event: VerificationEvent) -> HookOutcome:
        """Resolve the verified identity and schedule the delayed index update."""
        try:
            identity = self.resolve_verified_identity(event.payload)
            if identity is None:
                logger.warning("Verification event without a resolvable identity; skipped")
                return HookOutcome(accepted=False, error="Identity could not be resolved")

            identity_id = identity.id
            scheduled = self._scheduler.schedule(
                f"index-verified:{identity_id}",
                lambda: self._mark_verified(identity_id),
                delay_seconds=self._verification_delay,
            )
            return HookOutcome(accepted=True, identity_id=identity_id, scheduled=scheduled)
        except Exception as e:
            logger.exception("Verification hook failed")
            return HookOutcome(accepted=False, error=str(e))

    def resolve_verified_identity(self, payload: VerificationPayload) -> Identity | None:
        if isinstance(payload, Resolved):
            logger.debug("Verification payload carries identity %s", payload.identity.id)
            return payload.identity

        if isinstance(payload, TokenOnly):
            return self._resolve_by_token(payload)

        raise TypeError(f"Unsupported verification payload: {type(payload).__name__}")

    def _resolve_by_token(self, payload: TokenOnly) -> Identity | None:
        token = payload.extract_token()
        if not token:
            logger.warning("Verification event carries no token")
            return None

        verification = self._verifications.find_valid(token, self._time.now_utc())
        if verification is None:
            logger.warning("Verification token is invalid, expired or already used")
            return None

        identity = self._identities.get_by_email(verification.identifier)
        if identity is None:
            logger.warning("No identity for verified email %s", verification.identifier)
            return None

        logger.debug("Resolved identity %s from verification token", identity.id)
        return identity

    def _mark_verified(self, identity_id: UUID) -> WriteResult:
        return self._writer.partial_update(
            identity_id, {"email_verified": True, "updated_at": self._time.now_utc()}
        )

    # --- Administrative changes ---

    def on_identity_updated(self, event: IdentityUpdatedEvent) -> HookOutcome:
        try:
            scheduled = self._scheduler.schedule(
                f"index-updated:{event.identity_id}",
                lambda: self.index_identity(event.identity_id),
            )
            return HookOutcome(accepted=True, identity_id=event.identity_id, scheduled=scheduled)
        except Exception as e:
            logger.exception("Update hook failed for %s", event.identity_id)
            return HookOutcome(accepted=False, identity_id=event.identity_id, error=str(e))

    def on_identity_deleted(self, event: IdentityDeletedEvent) -> HookOutcome:
        try:
            scheduled = self._scheduler.schedule(
                f"index-deleted:{event.identity_id}",
                lambda: self._writer.remove(event.identity_id),
            )
            return HookOutcome(accepted=True, identity_id=event.identity_id, scheduled=scheduled)
        except Exception as e:
            logger.exception("Delete hook failed for %s", event.identity_id)
            return HookOutcome(accepted=False, identity_id=event.identity_id, error=str(e))
