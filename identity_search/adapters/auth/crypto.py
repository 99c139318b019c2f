"""
Credential adapter: argon2 password hashes (passlib) and HS256 access
tokens (python-jose) whose subject is the identity id.
"""

from __future__ import annotations

import os
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

DEFAULT_SECRET_KEY = "dev-secret-unsafe"


class JWTAuthAdapter:
    def __init__(self, secret_key: str | None = None, algorithm: str = "HS256") -> None:
        self._secret_key = secret_key or os.environ.get("IDS_SECRET_KEY", DEFAULT_SECRET_KEY)
        self._algorithm = algorithm
        self._pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        hashed: str = self._pwd_context.hash(password)
        return hashed

    def verify_password(self, plain: str, hashed: str) -> bool:
        if not hashed:
            return False
        ok: bool = self._pwd_context.verify(plain, hashed)
        return ok

    def create_token(
        self, identity_id: UUID, ttl_minutes: int, now_utc: datetime | None = None
    ) -> str:
        issued = now_utc if now_utc is not None else datetime.now(UTC)
        claims = {"sub": str(identity_id), "exp": issued + timedelta(minutes=ttl_minutes)}
        token: str = jwt.encode(claims, self._secret_key, algorithm=self._algorithm)
        return token

    def decode_token(self, token: str) -> UUID | None:
        """Identity id carried by a valid, unexpired token; None otherwise."""
        try:
            claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            return UUID(str(claims.get("sub")))
        except (JWTError, ValueError):
            return None
