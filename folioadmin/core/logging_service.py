"""
Activity logging for the admin dashboard.
Records operator actions and store failures in a local SQLite table and mirrors
every entry to the standard logging module.
"""

import json
import logging
import traceback
from datetime import datetime

from flask import request, has_request_context

from .config import get_config_value
from .database import Database

_LOGS_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS app_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        timestamp TEXT NOT NULL,
        level TEXT NOT NULL,
        source TEXT NOT NULL,
        message TEXT NOT NULL,
        details TEXT,
        ip_address TEXT,
        request_path TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_logs_timestamp ON app_logs(timestamp DESC)",
    "CREATE INDEX IF NOT EXISTS idx_logs_level ON app_logs(level)",
)


class LoggingService:
    """Centralized activity log for admin operations"""

    @staticmethod
    def _db_path():
        return get_config_value('ACTIVITY_DB')

    @staticmethod
    def _get_request_context():
        """Extract request context information"""
        if not has_request_context():
            return None, None

        ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
        if ip_address and ',' in ip_address:
            ip_address = ip_address.split(',')[0].strip()
        return ip_address, request.path

    @staticmethod
    def log(level, source, message, details=None):
        """
        Log a message to the activity table and the console logger.

        Args:
            level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            source (str): Source component (projects, hero, auth, ...)
            message (str): Main log message
            details (str/dict): Additional details (JSON-encoded if dict)
        """
        level = level.upper()
        console = logging.getLogger(f'folioadmin.{source}')
        console.log(getattr(logging, level, logging.INFO), message)

        if isinstance(details, dict):
            details = json.dumps(details, indent=2, default=str)

        try:
            db_path = LoggingService._db_path()
            Database.ensure_schema(db_path, _LOGS_SCHEMA)
            ip_address, request_path = LoggingService._get_request_context()

            with Database.connect(db_path) as conn:
                conn.execute("""
                    INSERT INTO app_logs
                    (timestamp, level, source, message, details, ip_address, request_path)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (datetime.now().isoformat(), level, source, message, details,
                      ip_address, request_path))
                conn.commit()
        except Exception as e:
            # The activity table is best-effort; the console logger already has the entry
            console.warning(f"Activity log unavailable: {e}")
            if details:
                console.warning(f"Details: {details}")

    @staticmethod
    def info(source, message, details=None):
        LoggingService.log('INFO', source, message, details)

    @staticmethod
    def warning(source, message, details=None):
        LoggingService.log('WARNING', source, message, details)

    @staticmethod
    def error(source, message, details=None):
        LoggingService.log('ERROR', source, message, details)

    @staticmethod
    def log_user_action(source, action, details=None):
        """Log operator actions (login, publish, delete, ...)"""
        LoggingService.info(source, f"Admin action: {action}", details)

    @staticmethod
    def log_error_with_traceback(source, error, details=None):
        """Log error with full traceback"""
        error_details = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc()
        }
        if details:
            error_details['additional_details'] = details

        LoggingService.error(source, f"Exception occurred: {type(error).__name__}: {error}", error_details)

    @staticmethod
    def log_security_event(message, details=None):
        """Log security-related events"""
        LoggingService.warning('security', message, details)

    @staticmethod
    def recent(limit=50, level=None):
        """Most recent entries, newest first"""
        try:
            db_path = LoggingService._db_path()
            Database.ensure_schema(db_path, _LOGS_SCHEMA)
            with Database.connect(db_path) as conn:
                if level:
                    rows = conn.execute("""
                        SELECT id, timestamp, level, source, message, details
                        FROM app_logs WHERE level = ?
                        ORDER BY id DESC LIMIT ?
                    """, (level.upper(), limit)).fetchall()
                else:
                    rows = conn.execute("""
                        SELECT id, timestamp, level, source, message, details
                        FROM app_logs ORDER BY id DESC LIMIT ?
                    """, (limit,)).fetchall()
                return [dict(row) for row in rows]
        except Exception as e:
            logging.getLogger(__name__).warning(f"Could not read activity log: {e}")
            return []

