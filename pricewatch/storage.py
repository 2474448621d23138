"""SQLite persistence for tracked products and notifications."""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from pricewatch.errors import StorageError
from pricewatch.models import Notification, Product

SCHEMA_VERSION = 3


@contextmanager
def get_connection(db_path: Path):
    """Context manager for SQLite connection."""
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def init_db(db_path: Path) -> None:
    """Create tables if they don't exist and stamp the schema version."""
    with get_connection(db_path) as conn:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS products (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                payload TEXT NOT NULL
            )
        """)
        conn.execute("""
            CREATE TABLE IF NOT EXISTS notifications (
                id TEXT PRIMARY KEY,
                position INTEGER NOT NULL,
                payload TEXT NOT NULL
            )
        """)
        conn.execute(
            "INSERT OR IGNORE INTO meta (key, value) VALUES ('schema_version', ?)",
            (str(SCHEMA_VERSION),),
        )


def get_schema_version(db_path: Path) -> int:
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT value FROM meta WHERE key = 'schema_version'").fetchone()
    return int(row["value"]) if row else SCHEMA_VERSION


def load_products(db_path: Path) -> list[Product]:
    """Load the product collection in its saved order.

    Records written by older schema versions are accepted; fields they lack
    take their defaults in Product.from_dict.
    """
    version = get_schema_version(db_path)
    if version > SCHEMA_VERSION:
        raise StorageError(
            f"State at {db_path} has schema version {version}, newer than {SCHEMA_VERSION}"
        )
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT payload FROM products ORDER BY position").fetchall()
    try:
        return [Product.from_dict(json.loads(row["payload"])) for row in rows]
    except (KeyError, ValueError) as e:
        raise StorageError(f"Corrupt product record in {db_path}: {e}") from e


def save_products(db_path: Path, products: list[Product]) -> None:
    """Replace the stored product collection with products."""
    with get_connection(db_path) as conn:
        conn.execute("DELETE FROM products")
        conn.executemany(
            "INSERT INTO products (id, position, payload) VALUES (?, ?, ?)",
            [
                (p.id, position, json.dumps(p.to_dict(), ensure_ascii=False))
                for position, p in enumerate(products)
            ],
        )
        conn.execute(
            "INSERT OR REPLACE INTO meta (key, value) VALUES ('schema_version', ?)",
            (str(SCHEMA_VERSION),),
        )


def load_notifications(db_path: Path) -> list[Notification]:
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT payload FROM notifications ORDER BY position").fetchall()
    return [Notification.from_dict(json.loads(row["payload"])) for row in rows]


def save_notifications(db_path: Path, notifications: list[Notification]) -> None:
    with get_connection(db_path) as conn:
        conn.execute("DELETE FROM notifications")
        conn.executemany(
            "INSERT INTO notifications (id, position, payload) VALUES (?, ?, ?)",
            [
                (n.id, position, json.dumps(n.to_dict(), ensure_ascii=False))
                for position, n in enumerate(notifications)
            ],
        )
