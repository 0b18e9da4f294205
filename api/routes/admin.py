"""
Admin API: login, data upload, user management, admin accounts, stats, notifications.

POST   /api/v1/admin/login                 → session token + admin-token cookie
POST   /api/v1/admin/logout
GET    /api/v1/admin/me
POST   /api/v1/admin/upload-data           → validate and write dataset sheets
GET    /api/v1/admin/users                 → search / status / role / page
GET    /api/v1/admin/users/export          → users-YYYY-MM-DD.csv
POST   /api/v1/admin/users/{id}/block
POST   /api/v1/admin/users/{id}/unblock
DELETE /api/v1/admin/users/{id}
GET    /api/v1/admin/admins
POST   /api/v1/admin/admins
GET    /api/v1/admin/stats/files
GET    /api/v1/admin/stats/users
GET    /api/v1/admin/logs/recent
GET    /api/v1/admin/uploads
DELETE /api/v1/admin/uploads/{id}
GET    /api/v1/admin/notifications         → ?filter=all|unread|<type>, unread count
POST   /api/v1/admin/notifications/read-all
POST   /api/v1/admin/notifications/{id}/read
DELETE /api/v1/admin/notifications/{id}
DELETE /api/v1/admin/notifications

Everything except login requires a signed-in admin (401 otherwise).
"""

import csv
import io
import logging
import sqlite3
from datetime import date
from pathlib import Path

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import JSONResponse, StreamingResponse

from api.auth import (
    COOKIE_NAME,
    TOKEN_EXPIRES_DAYS,
    authenticate,
    create_token,
    email_domain_allowed,
    hash_password,
    require_admin,
    validate_new_admin,
)
from api.database import get_data_dir, get_db
from api.models import (
    AdminCreateIn,
    AdminOut,
    LoginIn,
    LoginOut,
    NotificationListOut,
    NotificationOut,
    UploadOut,
    UserOut,
    UserPageOut,
)
from utils import store
from utils.config import AppConfig
from utils.datasets import dataset_files
from utils.errors import DashboardError, UploadError
from utils.uploads import parse_sheets_field, process_upload, read_workbook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

_USER_CSV_COLUMNS = ["Name", "Email", "Phone", "Role", "Status", "Country", "Joined"]


# ── Session ───────────────────────────────────────────────────────────────────

@router.post(
    "/login",
    response_model=LoginOut,
    summary="Admin sign-in",
    responses={401: {"description": "Bad credentials"},
               403: {"description": "Email outside the admin domain"}},
)
def login(body: LoginIn, conn: sqlite3.Connection = Depends(get_db)):
    if not email_domain_allowed(body.email):
        return JSONResponse(status_code=403, content={"error": "Unauthorized domain"})
    admin = authenticate(conn, body.email, body.password)
    if admin is None:
        logger.warning("admin login failed email=%s", body.email)
        return JSONResponse(status_code=401, content={"error": "Invalid email or password"})
    token = create_token(admin["email"])
    store.log_action(conn, admin["email"], "login")
    admin.pop("password_hash", None)
    response = JSONResponse(content={"ok": True, "token": token, "admin": admin})
    response.set_cookie(
        COOKIE_NAME, token,
        max_age=TOKEN_EXPIRES_DAYS * 24 * 3600,
        httponly=True, samesite="strict", path="/",
    )
    return response


@router.post("/logout", summary="Clear the admin session cookie")
def logout():
    response = JSONResponse(content={"ok": True})
    response.delete_cookie(COOKIE_NAME, path="/")
    return response


@router.get("/me", summary="Signed-in admin")
def me(admin: dict = Depends(require_admin)) -> dict:
    return admin


# ── Upload ────────────────────────────────────────────────────────────────────

@router.post(
    "/upload-data",
    response_model=UploadOut,
    summary="Upload dataset sheets",
    responses={413: {"description": "File larger than APP_MAX_UPLOAD_MB"}},
)
def upload_data(
    request: Request,
    file: UploadFile | None = File(None, description=".xlsx workbook; sheet names select datasets"),
    sheets: str | None = Form(None, description='JSON [{"name": ..., "data": [...]}]'),
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
    data_dir: Path = Depends(get_data_dir),
):
    """Validate each sheet row by row and replace the dataset files of clean sheets.

    Sheets outside the allowed set are skipped; empty sheets and sheets
    with row errors are reported as invalid and not written.
    """
    max_bytes = AppConfig.from_env().max_upload_bytes
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise HTTPException(status_code=413, detail="Upload too large")

    if file is not None and file.filename:
        content = file.file.read(max_bytes + 1)
        if len(content) > max_bytes:
            raise HTTPException(status_code=413, detail="Upload too large")
        if not file.filename.lower().endswith(".xlsx"):
            raise UploadError("Only .xlsx workbooks are accepted")
        parsed = read_workbook(content)
        filename = file.filename
    elif sheets:
        parsed = parse_sheets_field(sheets)
        filename = "sheets.json"
    else:
        raise UploadError("Provide an .xlsx file or a sheets field")

    try:
        results = process_upload(parsed, filename, data_dir, admin["email"], conn)
    except DashboardError:
        raise
    except Exception as exc:
        logger.exception("upload failed file=%s", filename)
        return JSONResponse(status_code=500, content={"ok": False, "error": str(exc)})
    return {"ok": True, "results": results}


# ── Users ─────────────────────────────────────────────────────────────────────

@router.get("/users", response_model=UserPageOut, summary="List dashboard users")
def list_users(
    search: str = Query("", description="Substring of name, email or phone"),
    status: str = Query("all", pattern="^(all|active|blocked)$"),
    role: str = Query("all"),
    page: int = Query(1, ge=1),
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    return store.list_users(conn, search=search, status=status, role=role, page=page)


@router.get("/users/export", summary="Export users as CSV")
def export_users(
    search: str = Query(""),
    status: str = Query("all", pattern="^(all|active|blocked)$"),
    role: str = Query("all"),
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
) -> StreamingResponse:
    users = store.all_users(conn, search=search, status=status, role=role)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(_USER_CSV_COLUMNS)
    for u in users:
        writer.writerow([
            f"{u['first_name']} {u['last_name']}".strip(),
            u["email"],
            u.get("phone") or "",
            u["role"],
            u["status"],
            u.get("country") or "",
            (u.get("created_at") or "")[:10],
        ])
    filename = f"users-{date.today().isoformat()}.csv"
    return StreamingResponse(
        iter([buf.getvalue()]),
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename={filename}",
            "X-Total-Count": str(len(users)),
        },
    )


def _set_status(conn: sqlite3.Connection, admin: dict, user_id: int, status: str) -> dict:
    user = store.set_user_status(conn, user_id, status)
    if user is None:
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    action = "block-user" if status == "blocked" else "unblock-user"
    store.log_action(conn, admin["email"], action, user["email"])
    return user


@router.post("/users/{user_id}/block", response_model=UserOut, summary="Block a user")
def block_user(user_id: int, admin: dict = Depends(require_admin),
               conn: sqlite3.Connection = Depends(get_db)) -> dict:
    return _set_status(conn, admin, user_id, "blocked")


@router.post("/users/{user_id}/unblock", response_model=UserOut, summary="Unblock a user")
def unblock_user(user_id: int, admin: dict = Depends(require_admin),
                 conn: sqlite3.Connection = Depends(get_db)) -> dict:
    return _set_status(conn, admin, user_id, "active")


@router.delete("/users/{user_id}", summary="Delete a user")
def delete_user(user_id: int, admin: dict = Depends(require_admin),
                conn: sqlite3.Connection = Depends(get_db)) -> dict:
    user = store.get_user(conn, user_id)
    if user is None or not store.delete_user(conn, user_id):
        raise HTTPException(status_code=404, detail=f"User {user_id} not found")
    store.log_action(conn, admin["email"], "delete-user", user["email"])
    return {"ok": True}


# ── Admin accounts ────────────────────────────────────────────────────────────

@router.get("/admins", response_model=list[AdminOut], summary="List admin accounts")
def list_admins(admin: dict = Depends(require_admin),
                conn: sqlite3.Connection = Depends(get_db)) -> list[dict]:
    return store.list_admins(conn)


@router.post("/admins", response_model=AdminOut, status_code=201,
             summary="Create an admin account",
             responses={409: {"description": "Email already registered"}})
def create_admin(body: AdminCreateIn, admin: dict = Depends(require_admin),
                 conn: sqlite3.Connection = Depends(get_db)) -> dict:
    problem = validate_new_admin(body.name, body.email, body.password)
    if problem:
        raise HTTPException(status_code=400, detail=problem)
    if store.get_admin_by_email(conn, body.email) is not None:
        raise HTTPException(status_code=409, detail="An admin with this email already exists")
    created = store.create_admin(conn, body.email, body.name, hash_password(body.password))
    store.log_action(conn, admin["email"], "create-admin", created["email"])
    created.pop("password_hash", None)
    return created


# ── Stats, logs, uploads ──────────────────────────────────────────────────────

@router.get("/stats/files", summary="Dataset file count and last change")
def file_stats(admin: dict = Depends(require_admin),
               data_dir: Path = Depends(get_data_dir)) -> dict:
    files = dataset_files(data_dir)
    last = max((f["modified"] for f in files), default=None)
    return {"count": len(files), "lastModified": last, "files": files}


@router.get("/stats/users", summary="Registered user count")
def user_stats(admin: dict = Depends(require_admin),
               conn: sqlite3.Connection = Depends(get_db)) -> dict:
    return {"count": store.count_users(conn)}


@router.get("/logs/recent", summary="Most recent admin actions")
def recent_logs(admin: dict = Depends(require_admin),
                conn: sqlite3.Connection = Depends(get_db)) -> list[dict]:
    return store.recent_logs(conn)


@router.get("/uploads", summary="Upload history")
def list_uploads(admin: dict = Depends(require_admin),
                 conn: sqlite3.Connection = Depends(get_db)) -> list[dict]:
    return store.list_uploads(conn)


@router.delete("/uploads/{upload_id}", summary="Remove an upload record")
def delete_upload(upload_id: int, admin: dict = Depends(require_admin),
                  conn: sqlite3.Connection = Depends(get_db)) -> dict:
    if not store.delete_upload(conn, upload_id):
        raise HTTPException(status_code=404, detail=f"Upload {upload_id} not found")
    store.log_action(conn, admin["email"], "delete-upload", str(upload_id))
    return {"ok": True}


# ── Notifications ─────────────────────────────────────────────────────────────

@router.get("/notifications", response_model=NotificationListOut,
            summary="Admin notifications, newest first")
def list_notifications(
    filter: str = Query("all", pattern="^(all|unread|info|success|warning|error)$",
                        description="all, unread or a notification type"),
    admin: dict = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_db),
) -> dict:
    return {
        "items": store.list_notifications(conn, filter),
        "unread": store.count_unread_notifications(conn),
    }


@router.post("/notifications/read-all", summary="Mark every notification read")
def mark_all_notifications_read(admin: dict = Depends(require_admin),
                                conn: sqlite3.Connection = Depends(get_db)) -> dict:
    return {"ok": True, "updated": store.mark_all_notifications_read(conn)}


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut,
             summary="Mark a notification read")
def mark_notification_read(notification_id: int, admin: dict = Depends(require_admin),
                           conn: sqlite3.Connection = Depends(get_db)) -> dict:
    if not store.mark_notification_read(conn, notification_id):
        raise HTTPException(status_code=404,
                            detail=f"Notification {notification_id} not found")
    return store.get_notification(conn, notification_id)


@router.delete("/notifications/{notification_id}", summary="Delete a notification")
def delete_notification(notification_id: int, admin: dict = Depends(require_admin),
                        conn: sqlite3.Connection = Depends(get_db)) -> dict:
    if not store.delete_notification(conn, notification_id):
        raise HTTPException(status_code=404,
                            detail=f"Notification {notification_id} not found")
    return {"ok": True}


@router.delete("/notifications", summary="Clear all notifications")
def clear_notifications(admin: dict = Depends(require_admin),
                        conn: sqlite3.Connection = Depends(get_db)) -> dict:
    deleted = store.clear_notifications(conn)
    store.log_action(conn, admin["email"], "clear-notifications", str(deleted))
    return {"ok": True, "deleted": deleted}
