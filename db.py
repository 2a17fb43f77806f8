import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Optional

from db_pool import SQLiteConnectionPool
from errors import ConcurrentUpdate, NotFound
from schemas import Topic

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("DB_PATH", "data.db")

# Initialize connection pool
_pool = SQLiteConnectionPool(DB_PATH, max_connections=10)


def _conn():
    """Return a context manager for acquiring a pooled SQLite connection."""
    return _pool.get_connection()


def _exec(sql: str, params: Iterable = ()) -> int:
    with _pool.get_connection() as con:
        cur = con.execute(sql, params)
        con.commit()
        return cur.rowcount


def _query(sql: str, params: Iterable = ()) -> list[sqlite3.Row]:
    with _pool.get_connection() as con:
        cur = con.execute(sql, params)
        return cur.fetchall()


def json_dumps(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


# -------------- schema --------------
def init():
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)
    with _conn() as con:
        con.executescript(
            """
            PRAGMA foreign_keys = ON;
            PRAGMA journal_mode=WAL;

            CREATE TABLE IF NOT EXISTS users (
              id          TEXT PRIMARY KEY,
              username    TEXT NOT NULL UNIQUE,
              email       TEXT NOT NULL UNIQUE,
              pw_hash     TEXT NOT NULL,
              pw_salt     TEXT NOT NULL,
              role        TEXT NOT NULL DEFAULT 'user' CHECK (role IN ('admin', 'user')),
              created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE TABLE IF NOT EXISTS topics (
              seq         INTEGER PRIMARY KEY AUTOINCREMENT,
              topic_id    TEXT NOT NULL UNIQUE,
              version     INTEGER NOT NULL DEFAULT 1,
              document    TEXT NOT NULL,
              created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
              updated_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        con.commit()


# -------------- users / auth --------------
def _user_dict(row: Optional[sqlite3.Row]) -> Optional[dict[str, Any]]:
    return dict(row) if row is not None else None


_USER_COLUMNS = "id, username, email, pw_hash, pw_salt, role"


def get_user(user_id: str) -> Optional[dict[str, Any]]:
    rows = _query(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    return _user_dict(rows[0]) if rows else None


def get_user_by_email(email: str) -> Optional[dict[str, Any]]:
    rows = _query(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,))
    return _user_dict(rows[0]) if rows else None


def get_user_by_username(username: str) -> Optional[dict[str, Any]]:
    rows = _query(f"SELECT {_USER_COLUMNS} FROM users WHERE username = ?", (username,))
    return _user_dict(rows[0]) if rows else None


def create_user(user_id: str, username: str, email: str, pw_hash: str, pw_salt: str, role: str = "user"):
    _exec(
        "INSERT INTO users(id, username, email, pw_hash, pw_salt, role) VALUES (?,?,?,?,?,?)",
        (user_id, username, email, pw_hash, pw_salt, role),
    )


def update_user_password(user_id: str, pw_hash: str, pw_salt: str) -> None:
    _exec(
        "UPDATE users SET pw_hash = ?, pw_salt = ? WHERE id = ?",
        (pw_hash, pw_salt, user_id),
    )


# -------------- topics (curriculum aggregates) --------------
def _encode_topic(topic: Topic) -> str:
    # The version lives in its own column, never inside the document.
    return json_dumps(topic.model_dump(mode="json", exclude={"version"}))


def _decode_topic(row: sqlite3.Row) -> Topic:
    payload = json.loads(row["document"])
    payload["version"] = row["version"]
    return Topic.model_validate(payload)


def list_topics() -> List[Topic]:
    """Return every topic aggregate in creation order."""
    rows = _query("SELECT version, document FROM topics ORDER BY seq")
    return [_decode_topic(row) for row in rows]


def get_topic(topic_id: str) -> Optional[Topic]:
    rows = _query("SELECT version, document FROM topics WHERE topic_id = ?", (topic_id,))
    return _decode_topic(rows[0]) if rows else None


def insert_topic(topic: Topic) -> Topic:
    _exec(
        "INSERT INTO topics(topic_id, version, document) VALUES (?,?,?)",
        (topic.id, 1, _encode_topic(topic)),
    )
    topic.version = 1
    return topic


def save_topic(topic: Topic) -> Topic:
    """Write the whole aggregate back if nobody else wrote it since it was read.

    ``topic.version`` must be the version the aggregate was loaded at. On
    success the model is bumped to the new stored version.
    """
    expected = topic.version
    updated = _exec(
        """
        UPDATE topics
           SET document = ?, version = version + 1, updated_at = CURRENT_TIMESTAMP
         WHERE topic_id = ? AND version = ?
        """,
        (_encode_topic(topic), topic.id, expected),
    )
    if updated == 0:
        if get_topic(topic.id) is None:
            raise NotFound("Topic not found")
        logger.warning("Version conflict writing topic %s at version %s", topic.id, expected)
        raise ConcurrentUpdate()
    topic.version = expected + 1
    return topic


def delete_topic(topic_id: str) -> bool:
    return _exec("DELETE FROM topics WHERE topic_id = ?", (topic_id,)) > 0
