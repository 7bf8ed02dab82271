"""Database manager for SQLite connections and path management."""

import sqlite3
from contextlib import contextmanager
from config import Config, get_migrations_dir


class DatabaseManager:
    """Hands out short-lived SQLite connections.

    Every connect() opens its own connection, so the manager can be shared
    between threads; each thread gets a separate connection.

    Args:
        config: Application configuration object.
    """

    # Seconds a writer waits on a locked database before sqlite gives up.
    BUSY_TIMEOUT = 10.0

    def __init__(self, config: Config):
        self.config = config

    @contextmanager
    def connect(self):
        """Get a database connection with automatic cleanup.

        Yields:
            sqlite3.Connection: Database connection with foreign keys enforced.
        """
        db_path = self.config.db_path
        db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(db_path, timeout=self.BUSY_TIMEOUT)
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    def get_db_path(self):
        """Get the current database path."""
        return self.config.db_path

    def get_migrations_dir(self):
        """Get the migrations directory path."""
        return get_migrations_dir()
