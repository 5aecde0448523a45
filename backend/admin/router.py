# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – dashboard stats, user management and the activity log.

Every endpoint in this router is guarded by ``require_admin``.  A caller that
is not an admin – or whose id does not exist – receives the same 403 before
any business logic runs.
"""

import io
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment, Border, Side
from sqlalchemy.orm import Session

from admin.schemas import ActivityRow, ChangeRoleRequest, RoleChangeResponse, StatsResponse
from auth.schemas import MessageResponse, SafeUser
from auth.service import AccountService, get_account_service
from core.activity import ActivityRecorder, get_activity
from core.security import require_admin
from database import get_db
from models.activity_log import ActivityLog
from models.user import User

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /api/admin/stats  – dashboard counters
# ---------------------------------------------------------------------------


@router.get("/stats", response_model=StatsResponse)
def stats(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
):
    return StatsResponse(**accounts.stats())


# ---------------------------------------------------------------------------
# GET /api/admin/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=List[SafeUser])
def list_users(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """Every account, newest first (no password or code – handled by the schema)."""
    return accounts.list_accounts()


# ---------------------------------------------------------------------------
# PUT /api/admin/users/{id}/role  – promote or demote a user
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/role", response_model=RoleChangeResponse)
def change_role(
    user_id: str,
    body: ChangeRoleRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """
    Set ``isAdmin`` on another account.  An admin cannot change their own
    role (prevents accidental self-lockout).
    """
    target = accounts.set_admin_role(user_id, body.is_admin, admin)
    return RoleChangeResponse(message="User role updated", user=SafeUser.model_validate(target))


# ---------------------------------------------------------------------------
# DELETE /api/admin/users/{id}  – remove an account
# ---------------------------------------------------------------------------


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """Delete an account.  Its papers and activity entries are kept."""
    accounts.delete_account(user_id, admin)
    return MessageResponse(message="User deleted successfully")


# ---------------------------------------------------------------------------
# GET /api/admin/activity  – recent activity, newest first
# ---------------------------------------------------------------------------


def _activity_rows(
    db: Session,
    since: datetime | None = None,
    until: datetime | None = None,
    limit: int | None = None,
) -> list[ActivityRow]:
    """Activity entries joined with the acting user's name."""
    q = (
        db.query(ActivityLog, User.name)
        .outerjoin(User, ActivityLog.user_id == User.id)
    )
    if since:
        q = q.filter(ActivityLog.timestamp >= since)
    if until:
        q = q.filter(ActivityLog.timestamp <= until)

    q = q.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
    if limit:
        q = q.limit(limit)

    return [
        ActivityRow(
            id=entry.id,
            action=entry.action,
            user_id=entry.user_id,
            user_name=user_name or ("System" if entry.user_id is None else "Deleted user"),
            details=entry.details,
            request_ip=entry.request_ip,
            timestamp=entry.timestamp,
        )
        for entry, user_name in q.all()
    ]


@router.get("/activity", response_model=List[ActivityRow])
def list_activity(
    since: datetime | None = Query(None, description="ISO-8601 start of time window"),
    until: datetime | None = Query(None, description="ISO-8601 end of time window"),
    limit: int = Query(100, ge=1, le=1000),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return _activity_rows(db, since, until, limit)


# ---------------------------------------------------------------------------
# GET /api/admin/activity/export  – download the activity log as Excel
# ---------------------------------------------------------------------------

_HEADER_FONT  = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
_HEADER_FILL  = PatternFill(start_color="1E3A8A", end_color="1E3A8A", fill_type="solid")
_HEADER_ALIGN = Alignment(horizontal="center", vertical="center")
_THIN_BORDER  = Border(
    left=Side(style="thin", color="CCCCCC"),
    right=Side(style="thin", color="CCCCCC"),
    top=Side(style="thin", color="CCCCCC"),
    bottom=Side(style="thin", color="CCCCCC"),
)

EXPORT_HEADERS = ["ID", "Time (UTC)", "Action", "User", "Details", "Request IP"]
_COL_WIDTHS = [8, 20, 20, 28, 60, 16]


@router.get("/activity/export")
def export_activity(
    since: datetime | None = Query(None),
    until: datetime | None = Query(None),
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
    activity: ActivityRecorder = Depends(get_activity),
):
    """Stream the whole (optionally time-bounded) log as an .xlsx workbook."""
    rows = _activity_rows(db, since, until)

    wb = Workbook()
    ws = wb.active
    ws.title = "Activity"

    # Header row
    ws.append(EXPORT_HEADERS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _HEADER_ALIGN
        cell.border = _THIN_BORDER

    # Data rows
    for row in rows:
        ws.append([
            row.id,
            row.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            row.action,
            row.user_name or "",
            row.details or "",
            row.request_ip or "",
        ])
        row_idx = ws.max_row
        for col_idx in range(1, len(EXPORT_HEADERS) + 1):
            ws.cell(row=row_idx, column=col_idx).border = _THIN_BORDER

    for col_idx, width in enumerate(_COL_WIDTHS, start=1):
        ws.column_dimensions[chr(64 + col_idx)].width = width

    # Stream without touching the filesystem
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    wb.close()

    activity.record("Activity Exported", admin.id, f"Exported {len(rows)} activity entries")

    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="activity-log.xlsx"'},
    )
