from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

DB_PATH = Path(os.getenv("PATCHFIELD_DB_PATH", "app/data/patchfield.sqlite3"))


def _connect() -> sqlite3.Connection:
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def _row_to_user(row: sqlite3.Row) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "name": row["name"],
        "email": row["email"],
    }


def init_db() -> None:
    conn = _connect()
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT,
                email TEXT
            )
            """
        )
        conn.commit()
    finally:
        conn.close()


# =========================
# Users
# =========================

def save_user(record: Dict[str, Any]) -> Dict[str, Any]:
    """Insert a new user (no id) or overwrite every column of an existing one.

    Columns are written verbatim, so a None value clears the stored field.
    """
    conn = _connect()
    try:
        if record.get("id") is None:
            cur = conn.execute(
                "INSERT INTO users (name, email) VALUES (?, ?)",
                (record.get("name"), record.get("email")),
            )
            user_id = int(cur.lastrowid)
        else:
            user_id = int(record["id"])
            conn.execute(
                "INSERT OR REPLACE INTO users (id, name, email) VALUES (?, ?, ?)",
                (user_id, record.get("name"), record.get("email")),
            )
        conn.commit()
    finally:
        conn.close()

    return {"id": user_id, "name": record.get("name"), "email": record.get("email")}


def get_user(user_id: int) -> Optional[Dict[str, Any]]:
    conn = _connect()
    try:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (int(user_id),)).fetchone()
    finally:
        conn.close()

    if not row:
        return None
    return _row_to_user(row)


def list_users(limit: int = 50) -> List[Dict[str, Any]]:
    conn = _connect()
    try:
        rows = conn.execute(
            """
            SELECT id, name, email
            FROM users
            ORDER BY id DESC
            LIMIT ?
            """,
            (int(limit),),
        ).fetchall()
    finally:
        conn.close()

    return [_row_to_user(r) for r in rows]


def delete_user(user_id: int) -> bool:
    conn = _connect()
    try:
        deleted = conn.execute("DELETE FROM users WHERE id = ?", (int(user_id),)).rowcount
        conn.commit()
    finally:
        conn.close()
    return deleted > 0


def delete_all_users() -> int:
    conn = _connect()
    try:
        deleted = conn.execute("DELETE FROM users").rowcount
        conn.commit()
    finally:
        conn.close()
    return deleted
