"""SQLite admin store: dashboard users, admin accounts, logs, uploads, notifications.

Provides reusable functions for:
- Schema creation and connection pragmas
- User listing with search/status/role filters and pagination
- Admin account lookup and creation
- Admin activity logging and upload history
- Admin notifications (unread count, read/delete)

All functions take an open ``sqlite3.Connection`` with ``row_factory`` set
to ``sqlite3.Row`` and commit their own writes.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

USERS_PAGE_SIZE = 10
RECENT_LOGS_LIMIT = 5
NOTIFICATION_TYPES = ("info", "success", "warning", "error")

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    first_name  TEXT NOT NULL DEFAULT '',
    last_name   TEXT NOT NULL DEFAULT '',
    email       TEXT NOT NULL UNIQUE,
    phone       TEXT,
    gender      TEXT,
    occupation  TEXT,
    country     TEXT,
    role        TEXT NOT NULL DEFAULT 'user',
    status      TEXT NOT NULL DEFAULT 'active',
    created_at  TEXT NOT NULL,
    last_active TEXT
);

CREATE TABLE IF NOT EXISTS admins (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    email         TEXT NOT NULL UNIQUE,
    name          TEXT NOT NULL,
    password_hash TEXT NOT NULL,
    role          TEXT NOT NULL DEFAULT 'admin',
    created_at    TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS admin_logs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    admin_email TEXT NOT NULL,
    action      TEXT NOT NULL,
    detail      TEXT,
    timestamp   TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS uploads (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    filename    TEXT NOT NULL,
    dataset     TEXT,
    rows        INTEGER NOT NULL DEFAULT 0,
    status      TEXT NOT NULL,
    uploaded_by TEXT NOT NULL,
    uploaded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS admin_notifications (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    title      TEXT NOT NULL,
    message    TEXT NOT NULL DEFAULT '',
    type       TEXT NOT NULL DEFAULT 'info',
    read       INTEGER NOT NULL DEFAULT 0,
    link       TEXT,
    created_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_users_status ON users(status);
CREATE INDEX IF NOT EXISTS idx_admin_logs_ts ON admin_logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_notifications_read ON admin_notifications(read);
"""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def connect(db_path: Path) -> sqlite3.Connection:
    """Open a read-write connection with WAL and a busy timeout."""
    conn = sqlite3.connect(str(db_path), check_same_thread=False, timeout=10)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


def init_store(db_path: Path) -> None:
    """Create the store file and its tables if missing."""
    db_path = Path(db_path)
    if db_path.parent and not db_path.parent.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = connect(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


def _row(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    return dict(row) if row is not None else None


# ── Users ─────────────────────────────────────────────────────────────────────

def create_user(conn: sqlite3.Connection, email: str, first_name: str = "",
                last_name: str = "", **fields: Any) -> Dict[str, Any]:
    allowed = ("phone", "gender", "occupation", "country", "role", "status",
               "created_at", "last_active")
    values: Dict[str, Any] = {
        "email": email.strip().lower(),
        "first_name": first_name,
        "last_name": last_name,
        "created_at": utc_now(),
    }
    values.update({k: v for k, v in fields.items() if k in allowed and v is not None})
    cols = ", ".join(values)
    marks = ", ".join("?" * len(values))
    cur = conn.execute(f"INSERT INTO users ({cols}) VALUES ({marks})",
                       list(values.values()))
    conn.commit()
    return get_user(conn, cur.lastrowid)


def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[Dict[str, Any]]:
    return _row(conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _user_where(search: str, status: str, role: str) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    params: list[Any] = []
    term = (search or "").strip().lower()
    if term:
        like = f"%{_escape_like(term)}%"
        clauses.append(
            "(LOWER(first_name || ' ' || last_name) LIKE ? ESCAPE '\\' "
            "OR LOWER(email) LIKE ? ESCAPE '\\' "
            "OR LOWER(COALESCE(phone, '')) LIKE ? ESCAPE '\\')"
        )
        params += [like, like, like]
    if status and status != "all":
        clauses.append("status = ?")
        params.append(status)
    if role and role != "all":
        clauses.append("role = ?")
        params.append(role)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return where, params


def list_users(conn: sqlite3.Connection, search: str = "", status: str = "all",
               role: str = "all", page: int = 1,
               page_size: int = USERS_PAGE_SIZE) -> Dict[str, Any]:
    """Filtered, newest-first page of users.

    Returns ``{items, total, page, total_pages, page_size}``; *page* is
    clamped into range.
    """
    where, params = _user_where(search, status, role)
    total = conn.execute(f"SELECT COUNT(*) FROM users {where}", params).fetchone()[0]
    total_pages = max(1, (total + page_size - 1) // page_size)
    page = min(max(1, page), total_pages)
    rows = conn.execute(
        f"SELECT * FROM users {where} ORDER BY created_at DESC, id DESC "
        f"LIMIT ? OFFSET ?",
        params + [page_size, (page - 1) * page_size],
    ).fetchall()
    return {
        "items": [dict(r) for r in rows],
        "total": total,
        "page": page,
        "total_pages": total_pages,
        "page_size": page_size,
    }


def all_users(conn: sqlite3.Connection, search: str = "", status: str = "all",
              role: str = "all") -> List[Dict[str, Any]]:
    where, params = _user_where(search, status, role)
    rows = conn.execute(
        f"SELECT * FROM users {where} ORDER BY created_at DESC, id DESC", params
    ).fetchall()
    return [dict(r) for r in rows]


def set_user_status(conn: sqlite3.Connection, user_id: int,
                    status: str) -> Optional[Dict[str, Any]]:
    """Block or unblock a user; returns the updated row or None if unknown."""
    cur = conn.execute(
        "UPDATE users SET status = ?, last_active = ? WHERE id = ?",
        (status, utc_now(), user_id),
    )
    conn.commit()
    if cur.rowcount == 0:
        return None
    return get_user(conn, user_id)


def delete_user(conn: sqlite3.Connection, user_id: int) -> bool:
    cur = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
    conn.commit()
    return cur.rowcount > 0


def count_users(conn: sqlite3.Connection) -> int:
    return conn.execute("SELECT COUNT(*) FROM users").fetchone()[0]


# ── Admins ────────────────────────────────────────────────────────────────────

def get_admin_by_email(conn: sqlite3.Connection, email: str) -> Optional[Dict[str, Any]]:
    return _row(conn.execute(
        "SELECT * FROM admins WHERE email = ?", (email.strip().lower(),)
    ).fetchone())


def create_admin(conn: sqlite3.Connection, email: str, name: str,
                 password_hash: str, role: str = "admin") -> Dict[str, Any]:
    """Insert an admin account.

    Raises:
        sqlite3.IntegrityError: If the email is already registered
    """
    conn.execute(
        "INSERT INTO admins (email, name, password_hash, role, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (email.strip().lower(), name.strip(), password_hash, role, utc_now()),
    )
    conn.commit()
    return get_admin_by_email(conn, email)


def list_admins(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT id, email, name, role, created_at FROM admins ORDER BY created_at"
    ).fetchall()
    return [dict(r) for r in rows]


# ── Logs and uploads ──────────────────────────────────────────────────────────

def log_action(conn: sqlite3.Connection, admin_email: str, action: str,
               detail: str = "") -> None:
    conn.execute(
        "INSERT INTO admin_logs (admin_email, action, detail, timestamp) "
        "VALUES (?, ?, ?, ?)",
        (admin_email, action, detail, utc_now()),
    )
    conn.commit()


def recent_logs(conn: sqlite3.Connection,
                limit: int = RECENT_LOGS_LIMIT) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM admin_logs ORDER BY timestamp DESC, id DESC LIMIT ?",
        (limit,),
    ).fetchall()
    return [dict(r) for r in rows]


def record_upload(conn: sqlite3.Connection, filename: str, dataset: Optional[str],
                  rows: int, status: str, uploaded_by: str) -> int:
    cur = conn.execute(
        "INSERT INTO uploads (filename, dataset, rows, status, uploaded_by, uploaded_at) "
        "VALUES (?, ?, ?, ?, ?, ?)",
        (filename, dataset, rows, status, uploaded_by, utc_now()),
    )
    conn.commit()
    return cur.lastrowid


def list_uploads(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    rows = conn.execute(
        "SELECT * FROM uploads ORDER BY uploaded_at DESC, id DESC"
    ).fetchall()
    return [dict(r) for r in rows]


def delete_upload(conn: sqlite3.Connection, upload_id: int) -> bool:
    cur = conn.execute("DELETE FROM uploads WHERE id = ?", (upload_id,))
    conn.commit()
    return cur.rowcount > 0


# ── Notifications ─────────────────────────────────────────────────────────────

def create_notification(conn: sqlite3.Connection, title: str, message: str = "",
                        type: str = "info", link: Optional[str] = None) -> Dict[str, Any]:
    """Insert an unread notification.

    Raises:
        ValueError: If *type* is not one of ``NOTIFICATION_TYPES``
    """
    if type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {type}")
    cur = conn.execute(
        "INSERT INTO admin_notifications (title, message, type, link, created_at) "
        "VALUES (?, ?, ?, ?, ?)",
        (title, message, type, link, utc_now()),
    )
    conn.commit()
    return get_notification(conn, cur.lastrowid)


def _notification(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    item = _row(row)
    if item is not None:
        item["read"] = bool(item["read"])
    return item


def get_notification(conn: sqlite3.Connection,
                     notification_id: int) -> Optional[Dict[str, Any]]:
    return _notification(conn.execute(
        "SELECT * FROM admin_notifications WHERE id = ?", (notification_id,)
    ).fetchone())


def list_notifications(conn: sqlite3.Connection,
                       filter: str = "all") -> List[Dict[str, Any]]:
    """Newest-first notifications.

    *filter* is ``all``, ``unread`` or one of ``NOTIFICATION_TYPES``.
    """
    where, params = "", []
    if filter == "unread":
        where = "WHERE read = 0"
    elif filter != "all":
        where, params = "WHERE type = ?", [filter]
    rows = conn.execute(
        f"SELECT * FROM admin_notifications {where} ORDER BY created_at DESC, id DESC",
        params,
    ).fetchall()
    return [_notification(r) for r in rows]


def count_unread_notifications(conn: sqlite3.Connection) -> int:
    return conn.execute(
        "SELECT COUNT(*) FROM admin_notifications WHERE read = 0"
    ).fetchone()[0]


def mark_notification_read(conn: sqlite3.Connection, notification_id: int) -> bool:
    cur = conn.execute(
        "UPDATE admin_notifications SET read = 1 WHERE id = ?", (notification_id,)
    )
    conn.commit()
    return cur.rowcount > 0


def mark_all_notifications_read(conn: sqlite3.Connection) -> int:
    cur = conn.execute("UPDATE admin_notifications SET read = 1 WHERE read = 0")
    conn.commit()
    return cur.rowcount


def delete_notification(conn: sqlite3.Connection, notification_id: int) -> bool:
    cur = conn.execute("DELETE FROM admin_notifications WHERE id = ?", (notification_id,))
    conn.commit()
    return cur.rowcount > 0


def clear_notifications(conn: sqlite3.Connection) -> int:
    cur = conn.execute("DELETE FROM admin_notifications")
    conn.commit()
    return cur.rowcount
