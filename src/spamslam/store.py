"""SQLite store for per-identity domain inventories."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path

from spamslam import constants
from spamslam.models import DomainRecord, UserProfile

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS identities (
    identity TEXT PRIMARY KEY,
    display_name TEXT,
    avatar_url TEXT,
    saved_at TEXT
);

CREATE TABLE IF NOT EXISTS domains (
    identity TEXT,
    record_json TEXT,
    FOREIGN KEY (identity) REFERENCES identities(identity)
);

CREATE TABLE IF NOT EXISTS session (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    identity TEXT
);
"""


def identity_key(email: str) -> str:
    return email.strip().lower()


class InventoryStore:
    """Persistent SQLite store, one full snapshot per signed-in identity."""

    def __init__(self, db_path: Path | None = None) -> None:
        self.db_path = Path(db_path or constants.STORE_DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    def _create_tables(self) -> None:
        self._conn.executescript(_CREATE_TABLES_SQL)

    # --- inventory ---

    def save(self, identity: str, records: list[DomainRecord], profile: UserProfile | None = None) -> None:
        """Overwrite the identity's snapshot in a single transaction."""
        key = identity_key(identity)
        with self._conn:
            self._conn.execute(
                "INSERT INTO identities (identity, display_name, avatar_url, saved_at) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(identity) DO UPDATE SET "
                "display_name = COALESCE(excluded.display_name, display_name), "
                "avatar_url = COALESCE(excluded.avatar_url, avatar_url), "
                "saved_at = excluded.saved_at",
                (
                    key,
                    profile.display_name if profile else None,
                    profile.avatar_url if profile else None,
                    datetime.now().isoformat(),
                ),
            )
            self._conn.execute("DELETE FROM domains WHERE identity = ?", (key,))
            self._conn.executemany(
                "INSERT INTO domains (identity, record_json) VALUES (?, ?)",
                [(key, json.dumps(r.to_dict())) for r in records],
            )

    def load(self, identity: str) -> list[DomainRecord] | None:
        """Load an identity's records, or None when nothing was ever saved.

        Rows that no longer parse into a usable record are skipped.
        """
        key = identity_key(identity)
        row = self._conn.execute("SELECT identity FROM identities WHERE identity = ?", (key,)).fetchone()
        if row is None:
            return None

        records: list[DomainRecord] = []
        seen: set[str] = set()
        for r in self._conn.execute("SELECT record_json FROM domains WHERE identity = ? ORDER BY rowid", (key,)):
            try:
                data = json.loads(r["record_json"])
            except (TypeError, json.JSONDecodeError):
                continue
            record = DomainRecord.from_dict(data)
            if record is None or record.domain in seen:
                continue
            seen.add(record.domain)
            records.append(record)
        return records

    def load_profile(self, identity: str) -> UserProfile | None:
        key = identity_key(identity)
        row = self._conn.execute("SELECT * FROM identities WHERE identity = ?", (key,)).fetchone()
        if row is None:
            return None
        return UserProfile(email=key, display_name=row["display_name"] or "", avatar_url=row["avatar_url"] or "")

    def delete(self, identity: str) -> None:
        key = identity_key(identity)
        with self._conn:
            self._conn.execute("DELETE FROM domains WHERE identity = ?", (key,))
            self._conn.execute("DELETE FROM identities WHERE identity = ?", (key,))

    # --- active identity ---

    def set_active_identity(self, identity: str) -> None:
        with self._conn:
            self._conn.execute(
                "INSERT INTO session (id, identity) VALUES (1, ?) "
                "ON CONFLICT(id) DO UPDATE SET identity = excluded.identity",
                (identity_key(identity),),
            )

    def get_active_identity(self) -> str | None:
        row = self._conn.execute("SELECT identity FROM session WHERE id = 1").fetchone()
        return row["identity"] if row else None

    def clear_active_identity(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM session")

    # --- maintenance ---

    def clear(self) -> None:
        """Drop and recreate all tables."""
        self._conn.executescript(
            "DROP TABLE IF EXISTS domains;"
            "DROP TABLE IF EXISTS identities;"
            "DROP TABLE IF EXISTS session;"
        )
        self._create_tables()

    def get_info(self) -> dict:
        """Return store statistics."""
        file_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        last_save_row = self._conn.execute(
            "SELECT saved_at FROM identities ORDER BY saved_at DESC LIMIT 1"
        ).fetchone()
        last_saved = last_save_row["saved_at"] if last_save_row else None

        identity_count = self._conn.execute("SELECT COUNT(*) AS c FROM identities").fetchone()["c"]
        domain_count = self._conn.execute("SELECT COUNT(*) AS c FROM domains").fetchone()["c"]

        return {
            "db_file_size": file_size,
            "last_saved": last_saved,
            "identity_count": identity_count,
            "domain_count": domain_count,
            "active_identity": self.get_active_identity(),
        }

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # --- context manager ---

    def __enter__(self) -> InventoryStore:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()
