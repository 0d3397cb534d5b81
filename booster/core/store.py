"""
SQLite persistence for finished records.
"""
import json
import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Dict, List, Optional, Union

from booster.core.errors import PersistenceConflict
from booster.core.models import FinishedRecord

SCHEMA = """
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    content_hash TEXT NOT NULL UNIQUE,
    title TEXT NOT NULL,
    content TEXT,
    url TEXT,
    image TEXT,
    category_id INTEGER REFERENCES categories(id),
    provider TEXT,
    post_type TEXT,
    published_at TEXT,
    rewrite_status TEXT,
    trend_score INTEGER,
    tags TEXT,
    keywords TEXT,
    status TEXT DEFAULT 'draft',
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class SQLiteStore:
    """
    Stores finished records keyed by content hash.

    The UNIQUE constraint on content_hash makes concurrent saves of the same
    fingerprint fail for all but one writer.
    """
    def __init__(self, database: Union[str, Path] = "booster.db"):
        self.database = Path(database)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        """Initialize the SQLite database."""
        if self.database.parent and not self.database.parent.exists():
            self.database.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.executescript(SCHEMA)

    def exists_by_fingerprint(self, content_hash: str) -> bool:
        """
        Check whether a record with this content hash is stored.

        Args:
            content_hash: Fingerprint of the item

        Returns:
            True if a record exists
        """
        with closing(self._connect()) as conn:
            cursor = conn.execute(
                "SELECT 1 FROM records WHERE content_hash = ? LIMIT 1",
                (content_hash,)
            )
            return cursor.fetchone() is not None

    def create_category_if_missing(self, name: str) -> Optional[int]:
        """
        Return the id of a category, creating it first if needed.

        Args:
            name: Category name

        Returns:
            Category id, or None for a blank name
        """
        name = (name or '').strip()
        if not name:
            return None

        with closing(self._connect()) as conn, conn:
            conn.execute("INSERT OR IGNORE INTO categories (name) VALUES (?)", (name,))
            row = conn.execute("SELECT id FROM categories WHERE name = ?", (name,)).fetchone()
            return int(row['id'])

    def save(self, record: FinishedRecord, category_id: Optional[int] = None) -> int:
        """
        Insert a finished record.

        Args:
            record: The record to store
            category_id: Id from create_category_if_missing; looked up when omitted

        Returns:
            The new record id

        Raises:
            PersistenceConflict: a record with the same content hash exists
        """
        if category_id is None:
            category_id = self.create_category_if_missing(record.category)
        try:
            with closing(self._connect()) as conn, conn:
                cursor = conn.execute(
                    """
                    INSERT INTO records (
                        content_hash, title, content, url, image, category_id, provider,
                        post_type, published_at, rewrite_status, trend_score, tags, keywords
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.content_hash, record.title, record.content, record.url,
                        record.image or '', category_id, record.provider, record.post_type,
                        record.published_at, record.rewrite_status.value, record.trend_score,
                        json.dumps(list(record.tags)), json.dumps(list(record.keywords)),
                    )
                )
                return int(cursor.lastrowid)
        except sqlite3.IntegrityError as e:
            if 'content_hash' in str(e):
                raise PersistenceConflict(record.content_hash) from e
            raise

    def get_record(self, record_id: int) -> Optional[Dict]:
        with closing(self._connect()) as conn:
            row = conn.execute(
                """
                SELECT r.*, c.name AS category
                FROM records r LEFT JOIN categories c ON c.id = r.category_id
                WHERE r.id = ?
                """,
                (record_id,)
            ).fetchone()
        return self._row_to_dict(row) if row else None

    def count(self) -> int:
        with closing(self._connect()) as conn:
            return int(conn.execute("SELECT COUNT(*) FROM records").fetchone()[0])

    def records_missing_image(self, limit: int = 50, offset: int = 0) -> List[Dict]:
        """
        Records without an image, oldest first.
        """
        with closing(self._connect()) as conn:
            rows = conn.execute(
                """
                SELECT r.*, c.name AS category
                FROM records r LEFT JOIN categories c ON c.id = r.category_id
                WHERE (r.image IS NULL OR r.image = '') AND r.url != ''
                ORDER BY r.id ASC
                LIMIT ? OFFSET ?
                """,
                (limit, offset)
            ).fetchall()
        return [self._row_to_dict(row) for row in rows]

    def update_image(self, record_id: int, image_url: str) -> bool:
        with closing(self._connect()) as conn, conn:
            cursor = conn.execute(
                "UPDATE records SET image = ? WHERE id = ?",
                (image_url, record_id)
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> Dict:
        data = dict(row)
        data['tags'] = json.loads(data.get('tags') or '[]')
        data['keywords'] = json.loads(data.get('keywords') or '[]')
        return data
