import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from identity_search.app_shell.context import ServiceContext
from identity_search.domain.entities import Identity
from identity_search.rules.loader import load_rules
from identity_search.rules.models import Rules


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("IDS_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "identity.db")
        self.migrations_dir = str(self.base_dir / "migrations")
        self.rules_path = Path(os.environ.get("IDS_RULES_PATH", str(self.base_dir / "rules.yaml")))
        self.public_base_url = os.environ.get("IDS_PUBLIC_URL", "http://localhost:8000")
        self.log_level = os.environ.get("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> Rules:
    return load_rules(get_settings().rules_path)


# --- Service context singleton ---
_context_instance: ServiceContext | None = None


def get_context() -> ServiceContext:
    """Get the process-wide service context, building it on first use."""
    global _context_instance
    if _context_instance is None:
        _context_instance = ServiceContext.create(get_settings().db_path, get_rules())
    return _context_instance


def set_context(ctx: ServiceContext | None) -> None:
    global _context_instance
    _context_instance = ctx


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def client_key(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def get_current_identity(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    ctx: ServiceContext = Depends(get_context),
) -> Identity:
    # 1. Try Cookie first (HttpOnly)
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity_id = ctx.auth_adapter.decode_token(token)
    if identity_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity = ctx.identity_repo.get_by_id(identity_id)
    if not identity:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    if not identity.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    return identity


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if identity.auth_role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return identity
