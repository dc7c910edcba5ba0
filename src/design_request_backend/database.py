"""
SQLite mirror of submitted design requests.

The mirror holds a relational copy of each record (plus its PDF URL) for
querying and reporting. It is best-effort: the JSON ledger stays the source
of truth, and every failure here surfaces as MirrorError for the intake
orchestrator to log and skip.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from omegaconf import DictConfig

from .errors import MirrorError
from .utils import ensure_directory

logger = logging.getLogger(__name__)

# Default database path
DEFAULT_DB_PATH = Path("data/design_requests.db")

COLUMNS = (
    "id",
    "client_name",
    "email",
    "phone_number",
    "project_type",
    "timeline",
    "budget",
    "design_description",
    "reference_websites",
    "color_preferences",
    "style_preferences",
    "key_features",
    "status",
    "pdf_url",
    "created_at",
)


class RequestMirror:
    """
    Relational store of design requests keyed by id.

    Every call opens its own short-lived connection, bounded by ``timeout``
    seconds of lock waiting.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._initialized = False

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper settings."""
        try:
            ensure_directory(self.db_path.parent)
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout)
        except (OSError, sqlite3.Error) as exc:
            raise MirrorError(f"Cannot open mirror database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise MirrorError(f"Mirror database error: {exc}") from exc
        finally:
            conn.close()

    def _init_db(self, conn: sqlite3.Connection) -> None:
        """Initialize database schema."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS design_requests (
                id TEXT PRIMARY KEY,
                client_name TEXT NOT NULL,
                email TEXT NOT NULL,
                phone_number TEXT,
                project_type TEXT NOT NULL,
                timeline TEXT NOT NULL,
                budget TEXT NOT NULL,
                design_description TEXT NOT NULL,
                reference_websites TEXT,
                color_preferences TEXT,
                style_preferences TEXT,
                key_features TEXT,
                status TEXT DEFAULT 'pending_review',
                pdf_url TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_design_requests_email
            ON design_requests(email)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_design_requests_status
            ON design_requests(status)
        """)
        conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_design_requests_created_at
            ON design_requests(created_at DESC)
        """)
        self._initialized = True

    def insert(self, row: Dict[str, Any]) -> None:
        """
        Insert a flattened design request row.

        Args:
            row: Mapping with at least the ``COLUMNS`` keys

        Raises:
            MirrorError: On a duplicate id or any database failure
        """
        missing = [column for column in COLUMNS if column not in row]
        if missing:
            raise MirrorError(f"Mirror row is missing columns: {', '.join(missing)}")

        placeholders = ", ".join("?" for _ in COLUMNS)
        with self._get_connection() as conn:
            if not self._initialized:
                self._init_db(conn)
            conn.execute(
                f"INSERT INTO design_requests ({', '.join(COLUMNS)}) VALUES ({placeholders})",
                tuple(row[column] for column in COLUMNS),
            )
        logger.info(f"Mirrored request {row['id']}")

    def get_request(self, request_id: str) -> Optional[Dict[str, Any]]:
        """
        Retrieve a mirrored row by id.

        Returns:
            Row as a dictionary or None if not found
        """
        with self._get_connection() as conn:
            if not self._initialized:
                self._init_db(conn)
            row = conn.execute(
                "SELECT * FROM design_requests WHERE id = ?", (request_id,)
            ).fetchone()
            return dict(row) if row else None


def build_mirror(settings: DictConfig) -> Optional[RequestMirror]:
    """Return the configured mirror, or None when ``mirror.db_path`` is empty."""
    if not settings.mirror.db_path:
        logger.warning("Mirror database not configured, relational mirror disabled")
        return None
    return RequestMirror(Path(settings.mirror.db_path), timeout=float(settings.mirror.timeout_seconds))
