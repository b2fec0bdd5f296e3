# app/db/document_store.py
"""
Document storage collaborator.

The pipeline only needs add / get / update / query on JSON-like documents
keyed by opaque ids. Two backends: an in-process dict (default, used by
tests) and a single-table SQLite store.
"""

import copy
import json
import logging
import sqlite3
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from app.core.errors import DocumentNotFoundError, StorageError
from app.db.db_config import get_sqlite_connection

logger = logging.getLogger(__name__)

PRESCRIPTIONS = "prescriptions"


def _new_id() -> str:
    return uuid.uuid4().hex[:20]


class DocumentStore(Protocol):
    def add(self, collection: str, data: Dict[str, Any]) -> str: ...

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]: ...

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None: ...

    def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]: ...

    def delete(self, collection: str, doc_id: str) -> None: ...


class InMemoryDocumentStore:
    """Dict-of-dicts store. Returned documents are copies."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = _new_id()
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        logger.debug("Added %s/%s", collection, doc_id)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._collections.get(collection, {}).get(doc_id)
            return {"id": doc_id, **copy.deepcopy(doc)} if doc is not None else None

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            docs[doc_id].update(copy.deepcopy(fields))

    def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        with self._lock:
            docs = self._collections.get(collection, {})
            results = [
                {"id": doc_id, **copy.deepcopy(doc)}
                for doc_id, doc in docs.items()
                if doc.get(field) == value
            ]
        logger.debug("Query %s where %s == %r found %d docs", collection, field, value, len(results))
        return results

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            del docs[doc_id]


class SqliteDocumentStore:
    """
    JSON documents in one SQLite table: (collection, id, body).
    Queries filter in Python after loading the collection; there is no index.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self._conn = get_sqlite_connection(db_path)
        self._lock = threading.Lock()
        with self._lock:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS documents ("
                " collection TEXT NOT NULL,"
                " id TEXT NOT NULL,"
                " body TEXT NOT NULL,"
                " PRIMARY KEY (collection, id))"
            )
            self._conn.commit()

    def _execute(self, sql: str, params: tuple = ()) -> List[tuple]:
        try:
            with self._lock:
                cur = self._conn.execute(sql, params)
                rows = cur.fetchall()
                self._conn.commit()
                return rows
        except sqlite3.Error as e:
            raise StorageError(f"SQLite error: {e}") from e

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = _new_id()
        self._execute(
            "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
            (collection, doc_id, json.dumps(data)),
        )
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        rows = self._execute(
            "SELECT body FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )
        if not rows:
            return None
        return {"id": doc_id, **json.loads(rows[0][0])}

    def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        current = self.get(collection, doc_id)
        if current is None:
            raise DocumentNotFoundError(collection, doc_id)
        current.pop("id", None)
        current.update(fields)
        self._execute(
            "UPDATE documents SET body = ? WHERE collection = ? AND id = ?",
            (json.dumps(current), collection, doc_id),
        )

    def query(self, collection: str, field: str, value: Any) -> List[Dict[str, Any]]:
        rows = self._execute(
            "SELECT id, body FROM documents WHERE collection = ?",
            (collection,),
        )
        out = []
        for doc_id, body in rows:
            doc = json.loads(body)
            if doc.get(field) == value:
                out.append({"id": doc_id, **doc})
        return out

    def delete(self, collection: str, doc_id: str) -> None:
        if self.get(collection, doc_id) is None:
            raise DocumentNotFoundError(collection, doc_id)
        self._execute(
            "DELETE FROM documents WHERE collection = ? AND id = ?",
            (collection, doc_id),
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def create_document_store(backend: str = "memory", db_path: Optional[Union[str, Path]] = None) -> DocumentStore:
    if backend == "sqlite":
        logger.info("Using SQLite document store")
        return SqliteDocumentStore(db_path)
    if backend != "memory":
        raise ValueError(f"Unknown storage backend: {backend}")
    logger.info("Using in-memory document store")
    return InMemoryDocumentStore()
