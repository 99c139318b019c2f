"""
Auth component - signup, email verification and login.

This is the source of identity lifecycle events. Each operation commits to
the system of record first and only then notifies the lifecycle hooks, whose
outcome never changes the result returned to the caller.
"""

import logging
import secrets
from datetime import timedelta
from urllib.parse import urlencode
from uuid import uuid4

from identity_search.components.lifecycle import (
    Resolved,
    SignupEvent,
    TokenOnly,
    VerificationEvent,
)
from identity_search.domain.entities import Identity, VerificationToken
from identity_search.domain.errors import DuplicateEmailError
from identity_search.rules.models import AuthRules

from .models import AuthOutput, LoginInput, SignupInput, VerifyEmailInput
from .ports import (
    AuthAdapterPort,
    IdentityRepoPort,
    LifecycleHooksPort,
    MailerPort,
    TimePort,
    VerificationRepoPort,
)

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _verification_link(base_url: str, token: str, email: str) -> str:
    return f"{base_url.rstrip('/')}/auth/verify-email?{urlencode({'token': token, 'email': email})}"


def run_signup(
    inp: SignupInput,
    identity_repo: IdentityRepoPort,
    verification_repo: VerificationRepoPort,
    auth_adapter: AuthAdapterPort,
    mailer: MailerPort,
    hooks: LifecycleHooksPort,
    time: TimePort,
    rules: AuthRules,
    base_url: str = "http://localhost:8000",
) -> AuthOutput:
    email = _normalize_email(inp.email)
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        return AuthOutput(success=False, error="Invalid email address")
    if len(inp.password) < rules.password_min_length:
        return AuthOutput(
            success=False,
            error=f"Password must be at least {rules.password_min_length} characters",
        )
    if identity_repo.get_by_email(email):
        return AuthOutput(success=False, error="Email already in use")

    now = time.now_utc()
    identity = Identity(
        id=uuid4(),
        email=email,
        name=(inp.name or "").strip() or None,
        password_hash=auth_adapter.hash_password(inp.password),
        created_at=now,
        updated_at=now,
    )
    try:
        identity_repo.save(identity)
    except DuplicateEmailError:
        return AuthOutput(success=False, error="Email already in use")

    token = VerificationToken(
        identifier=email,
        value=secrets.token_urlsafe(32),
        expires_at=now + timedelta(hours=rules.verification_token_ttl_hours),
        created_at=now,
    )
    verification_repo.save(token)
    mailer.send_email(
        email,
        "Verify your email address",
        f"Verify your account: {_verification_link(base_url, token.value, email)}",
    )

    outcome = hooks.on_signup(SignupEvent(identity_id=identity.id, identity=identity))
    if not outcome.accepted:
        logger.warning("Signup of %s committed but not indexed: %s", email, outcome.error)

    # Roles may have changed during the signup hook.
    return AuthOutput(identity=identity_repo.get_by_id(identity.id) or identity, success=True)


def run_verify_email(
    inp: VerifyEmailInput,
    identity_repo: IdentityRepoPort,
    verification_repo: VerificationRepoPort,
    auth_adapter: AuthAdapterPort,
    hooks: LifecycleHooksPort,
    time: TimePort,
    rules: AuthRules,
) -> AuthOutput:
    now = time.now_utc()
    verification = verification_repo.find_valid(inp.token, now)
    if not verification:
        return AuthOutput(success=False, error="Invalid or expired token")

    identity = identity_repo.get_by_email(verification.identifier)
    if not identity:
        return AuthOutput(success=False, error="User not found")

    verified = identity_repo.update_fields(identity.id, {"email_verified": True}, now)
    if not verified:
        return AuthOutput(success=False, error="User not found")

    token_raw: str | None = None
    if rules.auto_sign_in_after_verification:
        token_raw = auth_adapter.create_token(verified.id, rules.access_token_ttl_minutes)
        event = VerificationEvent(payload=Resolved(identity=verified))
    else:
        event = VerificationEvent(payload=TokenOnly(context={"token": inp.token}))

    # The hook resolves TokenOnly payloads by token, so consume it afterwards.
    hooks.on_verification(event)
    verification_repo.consume(inp.token, now)

    return AuthOutput(identity=verified, token_raw=token_raw, success=True)


def run_login(
    inp: LoginInput,
    identity_repo: IdentityRepoPort,
    auth_adapter: AuthAdapterPort,
    rules: AuthRules,
) -> AuthOutput:
    identity = identity_repo.get_by_email(_normalize_email(inp.email))
    if not identity:
        return AuthOutput(success=False, error="Invalid credentials")

    if not auth_adapter.verify_password(inp.password, identity.password_hash):
        return AuthOutput(success=False, error="Invalid credentials")

    if not identity.is_active:
        return AuthOutput(success=False, error="User account is disabled")

    if rules.require_email_verification and not identity.email_verified:
        return AuthOutput(success=False, error="Email not verified")

    token = auth_adapter.create_token(identity.id, rules.access_token_ttl_minutes)
    return AuthOutput(identity=identity, token_raw=token, success=True)
