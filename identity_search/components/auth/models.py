from dataclasses import dataclass

from identity_search.domain.entities import Identity


@dataclass
class SignupInput:
    email: str
    password: str
    name: str | None = None


@dataclass
class VerifyEmailInput:
    token: str


@dataclass
class LoginInput:
    email: str
    password: str


@dataclass
class AuthOutput:
    identity: Identity | None = None
    token_raw: str | None = None
    success: bool = False
    error: str | None = None
