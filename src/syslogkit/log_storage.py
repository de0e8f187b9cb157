import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Any, List, Optional

from .exceptions import StoreOpenError, StoreQueryError, StoreWriteError
from .syslog_message import SyslogMessage

logger = logging.getLogger(__name__)


@dataclass
class LogFilter:
    """
    Query parameters for LogStorage.query

    search_text: substring of the message body, empty matches everything
    min_severity: keep messages at least this severe (severity code <= value),
                  -1 disables the filter
    limit: maximum number of rows; 0 returns no rows at all
    """
    search_text: str = ''
    min_severity: int = -1
    limit: int = 50


class LogStorage:
    """Append-only SQLite log of received syslog messages"""

    SCHEMA: str = """
        CREATE TABLE IF NOT EXISTS logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            fac INTEGER, sev INTEGER,
            ts TEXT, host TEXT, app TEXT, msg TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_ts ON logs(ts);
    """

    INSERT_SQL: str = "INSERT INTO logs (fac, sev, ts, host, app, msg) VALUES (?, ?, ?, ?, ?, ?)"

    def __init__(self, db_path: Optional[str] = None) -> None:
        """
        Create the storage, opening db_path right away when given.

        The same instance is used from the listener's dispatcher thread and
        from whatever thread queries it, so every operation runs under one
        re-entrant lock and the connection is created with
        check_same_thread=False.
        """
        self.conn: Optional[sqlite3.Connection] = None
        self.db_path: str = ''
        self.lock: threading.RLock = threading.RLock()

        if db_path is not None:
            self.open(db_path)

    def open(self, path: str) -> None:
        """
        Open (or create) the database at path and make sure the schema exists.
        Any previously open database is closed first, so this can be used to
        redirect future writes to another file.
        """
        with self.lock:
            self.close()
            self.db_path = ''

            # sqlite3.connect raises ValueError for a path with an embedded NUL
            try:
                conn = sqlite3.connect(path, check_same_thread=False)
            except (sqlite3.Error, ValueError) as e:
                logger.error(f"Failed to open log database {path}: {e}")
                raise StoreOpenError(f"Failed to open log database {path}: {e}") from e

            try:
                conn.executescript(self.SCHEMA)
                conn.commit()
            except sqlite3.Error as e:
                conn.close()
                logger.error(f"Failed to initialize log database {path}: {e}")
                raise StoreOpenError(f"Failed to initialize log database {path}: {e}") from e

            self.conn = conn
            self.db_path = path
            logger.info(f"Opened log database {path}")

    def close(self) -> None:
        """Close the database if open"""
        with self.lock:
            if self.conn is None:
                return

            try:
                self.conn.close()
            except sqlite3.Error as e:
                logger.error(f"Error closing log database {self.db_path}: {e}")
            finally:
                self.conn = None
                logger.debug(f"Closed log database {self.db_path}")

    def is_open(self) -> bool:
        return self.conn is not None

    def get_db_path(self) -> str:
        return self.db_path

    def write(self, message: SyslogMessage, raise_on_error: bool = False) -> bool:
        """
        Append one message to the log.
        Returns False if the store is closed or the insert fails; the message is
        not retried. With raise_on_error the failure raises StoreWriteError
        instead.
        """
        with self.lock:
            if self.conn is None:
                logger.warning("Attempted write to closed LogStorage")
                if raise_on_error:
                    raise StoreWriteError("Log database is not open")
                return False

            try:
                with self.conn:
                    self.conn.execute(self.INSERT_SQL, (
                        message.facility,
                        message.severity,
                        message.timestamp,
                        message.hostname,
                        message.app_name,
                        message.message
                    ))
            except sqlite3.Error as e:
                logger.error(f"Failed to write message to {self.db_path}: {e}")
                if raise_on_error:
                    raise StoreWriteError(f"Failed to write message: {e}") from e
                return False

            return True

    def query(self, log_filter: Optional[LogFilter] = None) -> List[SyslogMessage]:
        """
        Return matching messages, most recently written first.
        Raises StoreQueryError when the query cannot run, which is never
        confused with an empty result.
        """
        if log_filter is None:
            log_filter = LogFilter()

        sql = "SELECT fac, sev, ts, host, app, msg FROM logs WHERE 1=1"
        args: List[Any] = []

        if log_filter.search_text:
            sql += " AND msg LIKE ? ESCAPE '\\'"
            args.append(f"%{self._escape_like(log_filter.search_text)}%")

        if log_filter.min_severity >= 0:
            sql += " AND sev <= ?"
            args.append(log_filter.min_severity)

        sql += " ORDER BY id DESC LIMIT ?"
        args.append(log_filter.limit)

        with self.lock:
            if self.conn is None:
                raise StoreQueryError("Log database is not open")

            try:
                rows = self.conn.execute(sql, args).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Failed to query {self.db_path}: {e}")
                raise StoreQueryError(f"Failed to query log database: {e}") from e

        return [
            SyslogMessage(
                facility=row[0],
                severity=row[1],
                timestamp=row[2] or '',
                hostname=row[3] or '',
                app_name=row[4] or '',
                message=row[5] or ''
            )
            for row in rows
        ]

    def count(self) -> int:
        """Total number of stored messages"""
        with self.lock:
            if self.conn is None:
                raise StoreQueryError("Log database is not open")

            try:
                return self.conn.execute("SELECT COUNT(*) FROM logs").fetchone()[0]
            except sqlite3.Error as e:
                raise StoreQueryError(f"Failed to count messages: {e}") from e

    @staticmethod
    def _escape_like(text: str) -> str:
        """Internal: make text match literally inside a LIKE pattern"""
        return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')

    def __enter__(self) -> 'LogStorage':
        """Context manager entry"""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> bool:
        """Context manager exit - closes the database"""
        self.close()
        return False  # Don't suppress exceptions
