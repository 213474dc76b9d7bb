import os
import sqlite3
import threading


class Database:
    """Local SQLite access shared by the development store and the activity log."""

    # Serialises schema creation across request threads
    _lock = threading.Lock()
    _initialised = set()

    @staticmethod
    def connect(path):
        conn = sqlite3.connect(path)
        conn.row_factory = sqlite3.Row
        return conn

    @staticmethod
    def ensure_dir(path):
        db_dir = os.path.dirname(path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    @classmethod
    def ensure_schema(cls, path, statements):
        """
        Run CREATE statements once per database file and process.
        Statements must be idempotent (CREATE ... IF NOT EXISTS).
        """
        marker = (os.path.abspath(path), tuple(statements))
        if marker in cls._initialised and os.path.exists(path):
            return
        with cls._lock:
            cls.ensure_dir(path)
            with cls.connect(path) as conn:
                cursor = conn.cursor()
                for statement in statements:
                    cursor.execute(statement)
                conn.commit()
            cls._initialised.add(marker)
