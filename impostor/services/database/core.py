"""
Impostor - Database Core
========================

Base database class with connection management and table initialization.
"""

import os
import shutil
import sqlite3
import time
from contextlib import contextmanager
from typing import Generator, Optional

from impostor.core.config import config
from impostor.core.logger import log


class DatabaseUnavailableError(Exception):
    """Raised when the database is unhealthy and operations cannot proceed."""
    pass


class DatabaseCore:
    """Base database class with connection management."""

    def __init__(self, db_path: Optional[str] = None) -> None:
        """Initialize database connection and create tables if needed."""
        self.db_path = db_path or config.DATABASE_PATH
        self._healthy = True
        self._corruption_reason: Optional[str] = None
        self._init_db()

    @property
    def is_healthy(self) -> bool:
        """Check if database is healthy and operational."""
        return self._healthy

    @property
    def corruption_reason(self) -> Optional[str]:
        """Get the reason for database corruption if unhealthy."""
        return self._corruption_reason

    def require_healthy(self) -> None:
        """Raise RuntimeError if database is unhealthy.

        Use this at service startup to fail fast if DB is corrupted.
        """
        if not self._healthy:
            raise RuntimeError(
                f"Database is unhealthy: {self._corruption_reason or 'Unknown error'}. "
                "Manual intervention required - check logs for backup location."
            )

    def _check_integrity(self) -> bool:
        """Check database integrity. Returns True if healthy."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=10.0)
            try:
                result = conn.execute("PRAGMA integrity_check").fetchone()
            finally:
                conn.close()
            return result[0] == "ok"
        except sqlite3.DatabaseError as e:
            log.error_tree("DB Integrity Check Failed", e)
            return False

    def _backup_corrupted(self) -> None:
        """Backup corrupted database file."""
        backup_path = f"{self.db_path}.corrupted.{int(time.time())}"
        try:
            shutil.copy2(self.db_path, backup_path)
            log.tree("Corrupted DB Backed Up", [
                ("Backup", backup_path),
            ], emoji="💾")
        except OSError as e:
            log.error_tree("DB Backup Failed", e)

    @contextmanager
    def _get_conn(self) -> Generator[sqlite3.Connection, None, None]:
        """Get database connection context manager.

        Raises:
            DatabaseUnavailableError: If the database is unhealthy.
        """
        if not self._healthy:
            log.tree("Database Unhealthy", [
                ("Status", "Operation rejected"),
                ("Reason", self._corruption_reason or "Unknown"),
            ], emoji="⚠️")
            raise DatabaseUnavailableError(
                f"Database is unavailable: {self._corruption_reason or 'unhealthy'}"
            )

        conn = sqlite3.connect(self.db_path, timeout=10.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.DatabaseError as e:
            conn.rollback()
            error_msg = str(e).lower()
            is_corruption = any(x in error_msg for x in [
                "disk i/o error",
                "database disk image is malformed",
                "file is not a database",
                "file is encrypted",
                "unable to open database",
            ])
            if is_corruption:
                self._healthy = False
                self._corruption_reason = str(e)
                log.error_tree("Database Corruption Detected", e)
                self._backup_corrupted()
            else:
                log.tree("Database Error", [
                    ("Type", type(e).__name__),
                    ("Message", str(e)[:100]),
                ], emoji="⚠️")
            raise
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database tables."""
        log.tree("Database Init", [
            ("Path", self.db_path),
            ("Status", "Starting"),
        ], emoji="🗄️")

        # Check integrity on startup
        if os.path.exists(self.db_path) and not self._check_integrity():
            self._corruption_reason = "PRAGMA integrity_check failed on startup"
            log.tree("DATABASE CORRUPTION DETECTED", [
                ("Path", self.db_path),
                ("Status", "INTEGRITY CHECK FAILED"),
                ("Action", "Creating backup - MANUAL INTERVENTION REQUIRED"),
            ], emoji="🚨")
            self._backup_corrupted()
            self._healthy = False
            log.tree("MANUAL FIX REQUIRED", [
                ("Backup", f"{self.db_path}.corrupted.*"),
                ("Action", "Restore from backup or delete impostor.db to recreate"),
                ("Warning", "Bot will not function until database is fixed"),
            ], emoji="⚠️")
            return

        with self._get_conn() as conn:
            cur = conn.cursor()

            # =====================================================================
            # Session Tables
            # =====================================================================

            cur.execute("""
                CREATE TABLE IF NOT EXISTS sessions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    guild_id INTEGER NOT NULL,
                    channel_id INTEGER NOT NULL,
                    message_id INTEGER NOT NULL,
                    user TEXT NOT NULL,
                    state TEXT NOT NULL,
                    region TEXT NOT NULL,
                    lobby_code TEXT NOT NULL,
                    created_at INTEGER DEFAULT 0,
                    UNIQUE (guild_id, message_id)
                )
            """)

            cur.execute("""
                CREATE TABLE IF NOT EXISTS session_channels (
                    channel_id INTEGER PRIMARY KEY,
                    session_id INTEGER NOT NULL,
                    type TEXT NOT NULL,
                    invite TEXT,
                    FOREIGN KEY (session_id) REFERENCES sessions(id)
                )
            """)

            cur.execute("""
                CREATE INDEX IF NOT EXISTS idx_session_channels_session
                ON session_channels (session_id)
            """)

        log.tree("Database Ready", [
            ("Path", self.db_path),
            ("Tables", "sessions, session_channels"),
        ], emoji="✅")
