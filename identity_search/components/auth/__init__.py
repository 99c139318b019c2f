"""
Auth component - signup, email verification and login.

Emits the identity lifecycle events consumed by the lifecycle component.
"""

from .component import run_login, run_signup, run_verify_email
from .models import AuthOutput, LoginInput, SignupInput, VerifyEmailInput
from .ports import AuthAdapterPort, LifecycleHooksPort, MailerPort

__all__ = [
    # Entry points
    "run_signup",
    "run_verify_email",
    "run_login",
    # Models
    "AuthOutput",
    "LoginInput",
    "SignupInput",
    "VerifyEmailInput",
    # Ports
    "AuthAdapterPort",
    "LifecycleHooksPort",
    "MailerPort",
]
