# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Research papers – the bulletin board and its ownership rule.

Ownership invariant enforced by every mutation
----------------------------------------------
* Edit and delete first call ``_own_paper``, which loads the row and asserts
  ``paper.author_id == caller_id``.  The check is a value comparison made at
  request time; nothing in the schema enforces it, so every new mutation path
  must go through ``_own_paper``.
* Stored files are removed only after the database change has committed, in
  a best-effort task.  A failed removal leaves an orphaned file, never a
  failed request.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.activity import ActivityRecorder, get_activity
from core.exceptions import ForbiddenError, NotFoundError, ValidationError
from core.logger import logger
from core.security import is_valid_id
from core.storage import LocalArtifactStorage, get_storage
from core.tasks import schedule
from database import get_db
from models.paper import ResearchPaper

ANONYMOUS_AUTHOR = "anonymous"


def parse_tags(raw: Optional[str]) -> list[str]:
    """'ai, quantum,, robotics ' → ['ai', 'quantum', 'robotics'] (order kept)."""
    if not raw:
        return []
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _has_file(upload) -> bool:
    return upload is not None and bool(getattr(upload, "filename", None))


class PaperService:
    def __init__(
        self,
        db: Session,
        storage: LocalArtifactStorage,
        activity: Optional[ActivityRecorder] = None,
        background_tasks: Optional[BackgroundTasks] = None,
    ):
        self.db = db
        self.storage = storage
        self.activity = activity
        self.background_tasks = background_tasks

    def _record(self, action: str, user_id: Optional[str], details: str) -> None:
        if self.activity is not None:
            self.activity.record(action, user_id, details)

    def _discard_later(self, file_url: Optional[str]) -> None:
        if file_url:
            schedule(self.background_tasks, "discard:paper", self.storage.discard, file_url)

    def _commit(self, new_file: Optional[str] = None) -> None:
        """Commit; a file stored for this change is removed if the commit fails."""
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            if new_file:
                self.storage.discard(new_file)
            raise

    def _own_paper(self, paper_id: str, caller_id: Optional[str]) -> ResearchPaper:
        """
        Load a paper by ID and verify it belongs to *caller_id*.

        Raises 404 if the paper does not exist, 403 if it belongs to someone
        else.  Only account ids own papers, so anonymous uploads are read-only.
        """
        paper = self.db.get(ResearchPaper, paper_id)
        if paper is None:
            raise NotFoundError("Paper not found")
        if not is_valid_id(caller_id) or paper.author_id != caller_id:
            raise ForbiddenError("You can only modify your own research")
        return paper

    # -- queries -----------------------------------------------------------

    def list_papers(self, author_id: Optional[str] = None) -> list[ResearchPaper]:
        q = self.db.query(ResearchPaper)
        if author_id:
            q = q.filter(ResearchPaper.author_id == author_id)
        return q.order_by(ResearchPaper.created_at.desc()).all()

    # -- mutations ---------------------------------------------------------

    def create(
        self,
        title: Optional[str],
        file,
        caller_id: Optional[str] = None,
        author_name: Optional[str] = None,
        abstract: Optional[str] = None,
        tags: Optional[str] = None,
    ) -> ResearchPaper:
        if not title or not title.strip() or not _has_file(file):
            raise ValidationError("Title and file are required")

        file_url = self.storage.save(file.filename, file.file, subdir="papers")
        paper = ResearchPaper(
            title=title.strip(),
            abstract=(abstract or "").strip(),
            tags=parse_tags(tags),
            author_id=caller_id or ANONYMOUS_AUTHOR,
            author_name=(author_name or "").strip() or "Anonymous",
            file_url=file_url,
        )
        self.db.add(paper)
        self._commit(file_url)
        self.db.refresh(paper)

        logger.info("Paper %s uploaded by %s", paper.id, paper.author_id)
        self._record("Paper Uploaded", caller_id if is_valid_id(caller_id) else None, f"Uploaded '{paper.title}'")
        return paper

    def edit(
        self,
        paper_id: str,
        caller_id: Optional[str],
        title: Optional[str] = None,
        abstract: Optional[str] = None,
        tags: Optional[str] = None,
        file=None,
    ) -> ResearchPaper:
        """Partial update.  Omitting the file keeps the stored one."""
        paper = self._own_paper(paper_id, caller_id)

        if title is not None:
            if not title.strip():
                raise ValidationError("Title cannot be empty")
            paper.title = title.strip()
        if abstract is not None:
            paper.abstract = abstract.strip()
        if tags is not None:
            paper.tags = parse_tags(tags)

        old_file = new_file = None
        if _has_file(file):
            old_file = paper.file_url
            new_file = self.storage.save(file.filename, file.file, subdir="papers")
            paper.file_url = new_file

        paper.updated_at = datetime.now(timezone.utc)
        self._commit(new_file)
        self.db.refresh(paper)

        self._discard_later(old_file)
        logger.info("Paper %s updated by %s", paper.id, caller_id)
        self._record("Paper Updated", caller_id, f"Updated '{paper.title}'")
        return paper

    def delete(self, paper_id: str, caller_id: Optional[str]) -> None:
        paper = self._own_paper(paper_id, caller_id)
        title, file_url = paper.title, paper.file_url

        self.db.delete(paper)
        self.db.commit()

        self._discard_later(file_url)
        logger.info("Paper %s deleted by %s", paper_id, caller_id)
        self._record("Paper Deleted", caller_id, f"Deleted '{title}'")


def get_paper_service(
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    storage: LocalArtifactStorage = Depends(get_storage),
    activity: ActivityRecorder = Depends(get_activity),
) -> PaperService:
    return PaperService(db, storage, activity=activity, background_tasks=background_tasks)
