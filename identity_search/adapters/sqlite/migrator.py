"""
Schema migrations for the system-of-record database.

Each `NNNN_name.sql` file holds an Up script, optionally followed by a
`-- Down` section that reverses it. Applied files are recorded in
`schema_migrations` and never re-run.
"""

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            " name TEXT PRIMARY KEY,"
            " applied_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP)"
        )
        return conn

    def _available(self) -> list[Path]:
        return sorted(self.migrations_dir.glob("*.sql"))

    def applied(self) -> list[str]:
        with closing(self._connect()) as conn:
            rows = conn.execute("SELECT name FROM schema_migrations ORDER BY name").fetchall()
        return [row[0] for row in rows]

    def pending(self) -> list[str]:
        done = set(self.applied())
        return [path.name for path in self._available() if path.name not in done]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations in filename order. Returns the names applied."""
        names = self.pending()
        with closing(self._connect()) as conn:
            for name in names:
                logger.info("Applying migration %s", name)
                up, _ = self._split(name)
                self._execute(conn, name, up, "INSERT INTO schema_migrations (name) VALUES (?)")
        return names

    def rollback_last(self) -> str | None:
        """Run the Down section of the newest applied migration."""
        done = self.applied()
        if not done:
            return None
        name = done[-1]
        _, down = self._split(name)
        if not down.strip():
            raise RuntimeError(f"Migration {name} has no {DOWN_MARKER} section")

        logger.info("Rolling back migration %s", name)
        with closing(self._connect()) as conn:
            self._execute(conn, name, down, "DELETE FROM schema_migrations WHERE name = ?")
        return name

    def _split(self, name: str) -> tuple[str, str]:
        content = (self.migrations_dir / name).read_text()
        up, _, down = content.partition(DOWN_MARKER)
        return up, down

    def _execute(self, conn: sqlite3.Connection, name: str, script: str, record_sql: str) -> None:
        try:
            conn.executescript(script)
            conn.execute(record_sql, (name,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {name} failed: {e}") from e
