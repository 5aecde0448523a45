# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Activity recorder – appends entries to the activity log.

Entries are written in their own session through :mod:`core.tasks`, so a
failed write is logged to the operator console and the primary operation
is unaffected.
"""

from typing import Optional

from fastapi import BackgroundTasks, Depends, Request

from core.security import get_client_ip
from core.tasks import schedule
from database import Database, get_database
from models.activity_log import ActivityLog


class ActivityRecorder:
    def __init__(
        self,
        database: Database,
        background_tasks: Optional[BackgroundTasks] = None,
        request_ip: Optional[str] = None,
    ):
        self.database = database
        self.background_tasks = background_tasks
        self.request_ip = request_ip

    def record(self, action: str, user_id: Optional[str] = None, details: str = "") -> None:
        schedule(
            self.background_tasks,
            f"activity:{action}",
            self._write,
            action,
            user_id,
            details,
        )

    def _write(self, action: str, user_id: Optional[str], details: str) -> None:
        with self.database.session() as db:
            db.add(ActivityLog(
                action=action,
                user_id=user_id,
                details=details,
                request_ip=self.request_ip,
            ))
            db.commit()


def get_activity(
    request: Request,
    background_tasks: BackgroundTasks,
    database: Database = Depends(get_database),
) -> ActivityRecorder:
    """FastAPI dependency: a recorder bound to the current request."""
    return ActivityRecorder(database, background_tasks, get_client_ip(request))
