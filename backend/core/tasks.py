# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Best-effort background work: artifact cleanup and activity recording.

Tasks are queued on FastAPI's ``BackgroundTasks`` and run after the response
is sent.  A failing task is logged with its label and traceback; it never
reaches the client and never fails the request that scheduled it.
"""

from typing import Callable, Optional

from fastapi import BackgroundTasks

from core.logger import logger


def best_effort(label: str, fn: Callable, *args, **kwargs) -> None:
    """Run *fn* now, logging (not raising) any exception."""
    try:
        fn(*args, **kwargs)
    except Exception:
        logger.exception("Background task '%s' failed", label)


def schedule(
    background_tasks: Optional[BackgroundTasks],
    label: str,
    fn: Callable,
    *args,
    **kwargs,
) -> None:
    """
    Queue *fn* as a best-effort task.  Without a task queue (scripts, direct
    service use) it runs inline, still best-effort.
    """
    if background_tasks is None:
        best_effort(label, fn, *args, **kwargs)
        return
    background_tasks.add_task(best_effort, label, fn, *args, **kwargs)
