"""
Lifecycle component - mirrors identity lifecycle events into the search index.
"""

from .component import LifecycleBridge
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
from .ports import TaskSchedulerPort

__all__ = [
    "LifecycleBridge",
    # Events
    "SignupEvent",
    "VerificationEvent",
    "VerificationPayload",
    "Resolved",
    "TokenOnly",
    "IdentityUpdatedEvent",
    "IdentityDeletedEvent",
    # Outcome
    "HookOutcome",
    # Ports
    "TaskSchedulerPort",
]
