from datetime import UTC, datetime
from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
AuthRole = Literal["admin", "user"]
OrgRole = Literal["SUPER_ADMIN", "ADMIN", "MANAGER", "VOLUNTEER", "USER"]

ELEVATED_AUTH_ROLE: AuthRole = "admin"
STANDARD_AUTH_ROLE: AuthRole = "user"
HIGHEST_ORG_ROLE: OrgRole = "SUPER_ADMIN"
DEFAULT_ORG_ROLE: OrgRole = "USER"


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Identity (system of record) ---

class Identity(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    email: str
    name: str | None = None
    password_hash: str = ""
    auth_role: AuthRole = STANDARD_AUTH_ROLE
    org_role: OrgRole = DEFAULT_ORG_ROLE
    is_active: bool = True
    email_verified: bool = False
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class VerificationToken(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    identifier: str  # email the token verifies
    value: str
    expires_at: datetime
    consumed_at: datetime | None = None
    created_at: datetime = Field(default_factory=_utcnow)


# --- Search index projection ---

class SearchDocument(BaseModel):
    """Flat projection of an Identity as stored in the search index.

    Field names are snake_case in Python and camelCase on the wire so the
    document matches the index mapping.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    email: str
    name: str | None = None
    role: AuthRole
    organizational_role: OrgRole = Field(alias="organizationalRole")
    is_active: bool = Field(alias="isActive")
    email_verified: bool = Field(alias="emailVerified")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    def to_body(self) -> dict[str, object]:
        """Serialize for the index (camelCase keys, no null name)."""
        return self.model_dump(by_alias=True, exclude_none=True)


# Wire names of the document fields that a partial update may carry.
DOCUMENT_FIELD_ALIASES: dict[str, str] = {
    "email": "email",
    "name": "name",
    "role": "role",
    "organizational_role": "organizationalRole",
    "is_active": "isActive",
    "email_verified": "emailVerified",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}
