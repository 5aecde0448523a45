# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""ResearchPaper ORM model."""

from sqlalchemy import Column, String, Text, DateTime, JSON
from sqlalchemy.sql import func

from database import Base
from models.user import new_id, utcnow


class ResearchPaper(Base):
    __tablename__ = "research_papers"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(512), nullable=False)
    abstract = Column(Text, nullable=False, default="")
    tags = Column(JSON, nullable=False, default=list)
    # Not a foreign key: papers imported from external sources carry a marker
    # instead of an account id, and papers outlive deleted accounts.
    author_id = Column(String(64), nullable=False, index=True)
    author_name = Column(String(255), nullable=False, default="")
    file_url = Column(String(2048), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)
