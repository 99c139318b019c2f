import sqlite3
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from identity_search.domain.entities import AuthRole, Identity, OrgRole, VerificationToken
from identity_search.domain.errors import DuplicateEmailError

# Columns an administrative update may touch.
UPDATABLE_IDENTITY_FIELDS = frozenset(
    {"name", "auth_role", "org_role", "is_active", "email_verified", "password_hash"}
)


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _to_db_time(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _from_db_time(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn


class SQLiteIdentityRepo(_SQLiteRepo):
    """System-of-record access for identities."""

    def save(self, identity: Identity) -> Identity:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO identities (
                    id, email, name, password_hash, auth_role, org_role,
                    is_active, email_verified, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    name=excluded.name,
                    password_hash=excluded.password_hash,
                    auth_role=excluded.auth_role,
                    org_role=excluded.org_role,
                    is_active=excluded.is_active,
                    email_verified=excluded.email_verified,
                    updated_at=excluded.updated_at
            """,
                (
                    str(identity.id),
                    identity.email,
                    identity.name,
                    identity.password_hash,
                    identity.auth_role,
                    identity.org_role,
                    int(identity.is_active),
                    int(identity.email_verified),
                    _to_db_time(identity.created_at),
                    _to_db_time(identity.updated_at),
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            if "identities.email" in str(e):
                raise DuplicateEmailError(identity.email) from e
            raise
        finally:
            conn.close()
        return identity

    def get_by_id(self, identity_id: UUID) -> Identity | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM identities WHERE id = ?", (str(identity_id),)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_by_email(self, email: str) -> Identity | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM identities WHERE email = ?", (email,)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def count(self) -> int:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT COUNT(*) AS total FROM identities").fetchone()
            return int(row["total"])
        finally:
            conn.close()

    def update_fields(
        self, identity_id: UUID, fields: dict[str, Any], updated_at: datetime
    ) -> Identity | None:
        """Update the given columns and `updated_at`. Returns the fresh record."""
        unknown = set(fields) - UPDATABLE_IDENTITY_FIELDS
        if unknown:
            raise ValueError(f"Cannot update identity fields: {sorted(unknown)}")

        assignments = [f"{name} = ?" for name in fields]
        params: list[Any] = [
            int(value) if isinstance(value, bool) else value for value in fields.values()
        ]
        assignments.append("updated_at = ?")
        params.append(_to_db_time(updated_at))
        params.append(str(identity_id))

        conn = self._get_conn()
        try:
            cursor = conn.execute(
                f"UPDATE identities SET {', '.join(assignments)} WHERE id = ?",  # noqa: S608
                params,
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
        finally:
            conn.close()
        return self.get_by_id(identity_id)

    def set_roles(
        self, identity_id: UUID, auth_role: AuthRole, org_role: OrgRole, updated_at: datetime
    ) -> Identity | None:
        return self.update_fields(
            identity_id, {"auth_role": auth_role, "org_role": org_role}, updated_at
        )

    def delete(self, identity_id: UUID) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute("DELETE FROM identities WHERE id = ?", (str(identity_id),))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def list_batch(self, offset: int, limit: int) -> list[Identity]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM identities ORDER BY created_at, id LIMIT ? OFFSET ?",
                (limit, offset),
            ).fetchall()
            return [self._map_row(row) for row in rows]
        finally:
            conn.close()

    def search_fallback(
        self,
        text: str | None,
        role: str | None,
        is_active: bool | None,
        email_verified: bool | None,
        offset: int,
        limit: int,
    ) -> tuple[list[Identity], int]:
        """Case-insensitive substring search on name/email with exact-match filters."""
        clauses: list[str] = []
        params: list[Any] = []

        if text:
            pattern = f"%{_escape_like(text.lower())}%"
            clauses.append(
                "(LOWER(COALESCE(name, '')) LIKE ? ESCAPE '\\' "
                "OR LOWER(email) LIKE ? ESCAPE '\\')"
            )
            params.extend([pattern, pattern])
        if role is not None:
            clauses.append("auth_role = ?")
            params.append(role)
        if is_active is not None:
            clauses.append("is_active = ?")
            params.append(int(is_active))
        if email_verified is not None:
            clauses.append("email_verified = ?")
            params.append(int(email_verified))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        conn = self._get_conn()
        try:
            total_row = conn.execute(
                f"SELECT COUNT(*) AS total FROM identities {where}", params  # noqa: S608
            ).fetchone()
            rows = conn.execute(
                f"SELECT * FROM identities {where} "  # noqa: S608
                "ORDER BY updated_at DESC, id LIMIT ? OFFSET ?",
                [*params, limit, offset],
            ).fetchall()
            return [self._map_row(row) for row in rows], int(total_row["total"])
        finally:
            conn.close()

    def ping(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute("SELECT 1").fetchone()
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Identity:
        return Identity(
            id=UUID(row["id"]),
            email=row["email"],
            name=row["name"],
            password_hash=row["password_hash"],
            auth_role=row["auth_role"],
            org_role=row["org_role"],
            is_active=bool(row["is_active"]),
            email_verified=bool(row["email_verified"]),
            created_at=_from_db_time(row["created_at"]),
            updated_at=_from_db_time(row["updated_at"]),
        )


class SQLiteVerificationRepo(_SQLiteRepo):
    """Verification tokens; consumed or expired tokens never resolve."""

    def save(self, token: VerificationToken) -> VerificationToken:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO verification_tokens (
                    id, identifier, value, expires_at, consumed_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    expires_at=excluded.expires_at,
                    consumed_at=excluded.consumed_at
            """,
                (
                    str(token.id),
                    token.identifier,
                    token.value,
                    _to_db_time(token.expires_at),
                    _to_db_time(token.consumed_at) if token.consumed_at else None,
                    _to_db_time(token.created_at),
                ),
            )
            conn.commit()
        finally:
            conn.close()
        return token

    def find_valid(self, value: str, now: datetime) -> VerificationToken | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM verification_tokens "
                "WHERE value = ? AND consumed_at IS NULL AND expires_at > ?",
                (value, _to_db_time(now)),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def consume(self, value: str, now: datetime) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "UPDATE verification_tokens SET consumed_at = ? "
                "WHERE value = ? AND consumed_at IS NULL",
                (_to_db_time(now), value),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> VerificationToken:
        return VerificationToken(
            id=UUID(row["id"]),
            identifier=row["identifier"],
            value=row["value"],
            expires_at=_from_db_time(row["expires_at"]),
            consumed_at=_from_db_time(row["consumed_at"]) if row["consumed_at"] else None,
            created_at=_from_db_time(row["created_at"]),
        )
