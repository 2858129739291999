import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from errors import ErrorKind, StoreError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_UNIQUE_CODES = {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_FOREIGN_KEY_CODES = {"SQLITE_CONSTRAINT_FOREIGNKEY"}
_FORMAT_CODES = {"SQLITE_CONSTRAINT_CHECK", "SQLITE_CONSTRAINT_NOTNULL", "SQLITE_MISMATCH"}


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a write statement: affected rows and the generated id, if any."""
    rowcount: int
    lastrowid: Optional[int] = None


def translate_error(exc: sqlite3.Error) -> StoreError:
    """
    Map a sqlite3 exception onto the store error taxonomy.

    The extended result code name is used when the driver exposes it
    (Python 3.11+); otherwise the message text decides.

    Args:
        exc: Exception raised by the sqlite3 driver

    Returns:
        StoreError with kind, message and, when present, constraint/table
    """
    message = str(exc)
    lowered = message.lower()
    code = getattr(exc, "sqlite_errorname", None) or ""
    detail = message.split(":", 1)[1].strip() if ":" in message else None

    if code in _UNIQUE_CODES or "unique constraint failed" in lowered:
        return StoreError(ErrorKind.UNIQUE_VIOLATION, message, detail, _table_of(detail))
    if code in _FOREIGN_KEY_CODES or "foreign key constraint failed" in lowered:
        return StoreError(ErrorKind.FOREIGN_KEY_VIOLATION, message)
    if (code in _FORMAT_CODES
            or "check constraint failed" in lowered
            or "not null constraint failed" in lowered
            or "datatype mismatch" in lowered):
        return StoreError(ErrorKind.INVALID_INPUT_FORMAT, message, detail, _table_of(detail))
    if isinstance(exc, (sqlite3.ProgrammingError, sqlite3.InterfaceError)) and (
            "binding" in lowered or "not supported" in lowered):
        return StoreError(ErrorKind.INVALID_INPUT_FORMAT, message)
    if "no such table" in lowered:
        return StoreError(ErrorKind.SCHEMA_MISMATCH, message, table=detail)
    if "no such column" in lowered or "has no column named" in lowered:
        return StoreError(ErrorKind.SCHEMA_MISMATCH, message)
    return StoreError(ErrorKind.UNKNOWN, message)


def _casefold(value: Any) -> Any:
    # SQLite lower() only folds ASCII
    return value.casefold() if isinstance(value, str) else value


def _table_of(detail: Optional[str]) -> Optional[str]:
    # "components.name" or "components.category_id, components.name"
    if not detail or "." not in detail:
        return None
    return detail.split(",")[0].split(".")[0].strip()


class InventoryDB:
    """
    SQLite gateway for the component inventory.

    Owns the single connection of the process and is the only place where
    statements are executed. Every driver failure leaves this class as a
    StoreError; callers never see sqlite3 exceptions.
    """

    def __init__(self, db_path: str = "inventory.db"):
        """
        Open the connection and create tables if they don't exist.

        Args:
            db_path: Path to SQLite database file (':memory:' for a private store)

        Raises:
            StoreError: If the database cannot be opened or initialized
        """
        self.db_path = db_path
        self.statements = 0
        self._lock = threading.RLock()
        try:
            # Requests are served from worker threads; the lock serializes them
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA foreign_keys = ON")  # Enable foreign key constraints
            self.conn.create_function("casefold", 1, _casefold, deterministic=True)
            self._create_tables()
        except sqlite3.Error as e:
            raise translate_error(e) from e
        logger.info("Database opened: %s", db_path)

    def _create_tables(self) -> None:
        """Create all required tables with proper schema and constraints."""
        self.conn.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE
        )
        """)

        self.conn.execute("""
        CREATE TABLE IF NOT EXISTS components (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            category_id INTEGER REFERENCES categories(id) ON DELETE RESTRICT,
            name TEXT NOT NULL,
            storage_cell TEXT,
            datasheet_url TEXT,
            quantity INTEGER NOT NULL DEFAULT 0 CHECK(quantity >= 0),
            parameters TEXT NOT NULL DEFAULT '{}' CHECK(json_valid(parameters)),
            image_data TEXT,
            description TEXT,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """)

        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_components_category ON components(category_id)")
        self.conn.execute("CREATE INDEX IF NOT EXISTS idx_components_name ON components(name)")

        self.conn.commit()

    def fetch_all(self, query: str, params: Sequence[Any] = ()) -> List[Row]:
        """
        Run a read statement and return every row.

        Args:
            query: SQL with positional '?' placeholders
            params: Values bound to the placeholders

        Returns:
            List of rows as column-name dictionaries
        """
        with self._lock:
            self.statements += 1
            try:
                rows = self.conn.execute(query, tuple(params)).fetchall()
            except sqlite3.Error as e:
                raise translate_error(e) from e
        return [dict(row) for row in rows]

    def fetch_one(self, query: str, params: Sequence[Any] = ()) -> Optional[Row]:
        """Run a read statement and return its first row, or None."""
        rows = self.fetch_all(query, params)
        return rows[0] if rows else None

    def execute(self, query: str, params: Sequence[Any] = ()) -> WriteResult:
        """
        Run a write statement and commit it.

        Args:
            query: SQL with positional '?' placeholders
            params: Values bound to the placeholders

        Returns:
            WriteResult with affected row count and last inserted id

        Raises:
            StoreError: On any driver failure (the statement is rolled back)
        """
        with self._lock:
            self.statements += 1
            try:
                cursor = self.conn.execute(query, tuple(params))
                self.conn.commit()
            except sqlite3.Error as e:
                self._rollback()
                raise translate_error(e) from e
        return WriteResult(cursor.rowcount, cursor.lastrowid)

    def _rollback(self) -> None:
        try:
            self.conn.rollback()
        except sqlite3.Error:
            logger.warning("Rollback failed on %s", self.db_path, exc_info=True)

    def ping(self) -> str:
        """
        Check the connection with a trivial round trip.

        Returns:
            Current timestamp as reported by the store

        Raises:
            StoreError: If the connection is unusable
        """
        row = self.fetch_one("SELECT CURRENT_TIMESTAMP AS now")
        return row["now"]

    def interrupt(self) -> None:
        """Abort the statement currently running on the connection, if any."""
        try:
            self.conn.interrupt()
        except sqlite3.Error:
            logger.warning("Cannot interrupt statement on %s", self.db_path, exc_info=True)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self.conn.close()
        logger.info("Database closed: %s", self.db_path)

    def __enter__(self):
        """Support context manager protocol."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Ensure connection is closed when exiting context."""
        self.close()
