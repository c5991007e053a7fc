import json
import os
import sqlite3
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

USERS = "users"
BOOKINGS = "bookings"
SERVICES = "services"
ACCOUNTS = "accounts"


def received_bookings_path(user_id: str) -> str:
    return f"{USERS}/{user_id}/receivedBookings"


class DocumentStoreError(RuntimeError):
    """Raised for any read or write failure in the document store."""


class DocumentStore:
    """Keyed JSON documents grouped by collection path.

    Sub-collections are plain path strings such as ``users/u1/receivedBookings``.
    Writes are either full overwrites (``set``) or top-level patches (``merge``).
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        seq INTEGER PRIMARY KEY AUTOINCREMENT,
                        collection TEXT NOT NULL,
                        doc_id TEXT NOT NULL,
                        data_json TEXT NOT NULL DEFAULT '{}',
                        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (collection, doc_id)
                    )
                    """
                )
                conn.commit()

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        try:
            with self._lock:
                with self._connect() as conn:
                    row = conn.execute(
                        "SELECT data_json FROM documents WHERE collection = ? AND doc_id = ?",
                        (collection, doc_id),
                    ).fetchone()
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"get {collection}/{doc_id} failed") from exc
        if not row:
            return None
        return self._safe_json_object(row["data_json"])

    def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        payload = self._dumps(data)
        try:
            with self._lock:
                with self._connect() as conn:
                    conn.execute(
                        """
                        INSERT INTO documents (collection, doc_id, data_json, updated_at)
                        VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                        ON CONFLICT(collection, doc_id) DO UPDATE SET
                            data_json = excluded.data_json,
                            updated_at = CURRENT_TIMESTAMP
                        """,
                        (collection, doc_id, payload),
                    )
                    conn.commit()
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"set {collection}/{doc_id} failed") from exc

    def create(self, collection: str, doc_id: str, data: Dict[str, Any]) -> bool:
        """Insert only if the key is free. Returns False when it already exists."""
        payload = self._dumps(data)
        try:
            with self._lock:
                with self._connect() as conn:
                    cursor = conn.execute(
                        """
                        INSERT INTO documents (collection, doc_id, data_json)
                        VALUES (?, ?, ?)
                        ON CONFLICT(collection, doc_id) DO NOTHING
                        """,
                        (collection, doc_id, payload),
                    )
                    conn.commit()
                    return cursor.rowcount == 1
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"create {collection}/{doc_id} failed") from exc

    def merge(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        # Read and write happen under one lock hold so two patches of
        # disjoint fields cannot lose each other.
        try:
            with self._lock:
                with self._connect() as conn:
                    row = conn.execute(
                        "SELECT data_json FROM documents WHERE collection = ? AND doc_id = ?",
                        (collection, doc_id),
                    ).fetchone()
                    current = self._safe_json_object(row["data_json"]) if row else {}
                    current.update(data)
                    conn.execute(
                        """
                        INSERT INTO documents (collection, doc_id, data_json, updated_at)
                        VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                        ON CONFLICT(collection, doc_id) DO UPDATE SET
                            data_json = excluded.data_json,
                            updated_at = CURRENT_TIMESTAMP
                        """,
                        (collection, doc_id, self._dumps(current)),
                    )
                    conn.commit()
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"merge {collection}/{doc_id} failed") from exc

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid4().hex[:20]
        payload = self._dumps(data)
        try:
            with self._lock:
                with self._connect() as conn:
                    conn.execute(
                        "INSERT INTO documents (collection, doc_id, data_json) VALUES (?, ?, ?)",
                        (collection, doc_id, payload),
                    )
                    conn.commit()
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"add to {collection} failed") from exc
        return doc_id

    def scan(self, collection: str) -> List[Tuple[str, Dict[str, Any]]]:
        try:
            with self._lock:
                with self._connect() as conn:
                    rows = conn.execute(
                        "SELECT doc_id, data_json FROM documents WHERE collection = ? ORDER BY seq",
                        (collection,),
                    ).fetchall()
        except sqlite3.Error as exc:
            raise DocumentStoreError(f"scan {collection} failed") from exc
        return [(row["doc_id"], self._safe_json_object(row["data_json"])) for row in rows]

    def _dumps(self, data: Dict[str, Any]) -> str:
        try:
            return json.dumps(data)
        except (TypeError, ValueError) as exc:
            raise DocumentStoreError("document is not JSON serializable") from exc

    def _safe_json_object(self, raw_value: Any) -> Dict[str, Any]:
        if raw_value in (None, ""):
            return {}
        if isinstance(raw_value, dict):
            return raw_value
        if not isinstance(raw_value, str):
            return {}
        try:
            parsed = json.loads(raw_value)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}


default_db = str(Path(__file__).resolve().parents[2] / "data" / "scheduler.sqlite3")
document_store = DocumentStore(db_path=os.getenv("SCHEDULER_DB_PATH", default_db))
