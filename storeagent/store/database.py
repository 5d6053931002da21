"""
SQLite connection handling and schema.

Connections are opened per operation so that concurrent request
threads never share a connection object. SQLite's own locking
serializes writers; `busy_timeout` lets a writer wait for a concurrent
one instead of failing immediately.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from storeagent.errors import StoreUnavailable

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS chat_history (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id  TEXT NOT NULL,
    role        TEXT NOT NULL,
    message     TEXT NOT NULL,
    metadata    TEXT,
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_chat_history_session ON chat_history (session_id, id);

CREATE TABLE IF NOT EXISTS ai_actions (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id   TEXT NOT NULL,
    action_type  TEXT NOT NULL,
    action_data  TEXT NOT NULL,
    created_at   TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_ai_actions_session ON ai_actions (session_id, id);

CREATE TABLE IF NOT EXISTS products (
    id                   INTEGER PRIMARY KEY AUTOINCREMENT,
    name                 TEXT NOT NULL,
    description          TEXT NOT NULL DEFAULT '',
    price                REAL NOT NULL,
    image_url            TEXT,
    sku                  TEXT,
    printful_product_id  TEXT,
    is_adult             INTEGER NOT NULL DEFAULT 0,
    created_at           TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS orders (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    customer_name     TEXT NOT NULL,
    customer_email    TEXT,
    items             TEXT NOT NULL DEFAULT '[]',
    total             REAL NOT NULL DEFAULT 0,
    status            TEXT NOT NULL DEFAULT 'Pending',
    shipping_address  TEXT,
    created_at        TEXT NOT NULL
);
"""


class Database:
    """
    Owns the path of the SQLite file and hands out short-lived connections.

    Any `sqlite3.Error` raised inside `connect()` is re-raised as
    `StoreUnavailable` after the transaction is rolled back.
    """

    def __init__(self, path: Union[str, Path], busy_timeout: float = 5.0) -> None:
        self.path = str(path)
        self.busy_timeout = busy_timeout

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self.path, timeout=self.busy_timeout)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Cannot open database at {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            logger.error("Database operation failed, transaction rolled back: %s", exc)
            raise StoreUnavailable(f"Database operation failed: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create tables if they do not exist yet."""
        parent = Path(self.path).parent
        if self.path != ":memory:":
            parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(SCHEMA)
        logger.info("Database ready at %s", self.path)
