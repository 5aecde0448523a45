# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Alembic environment for the summit schema.

DATABASE_URL comes from core.config.Settings, the same source the API uses,
so migrations and the running service always target one database.
"""

import sys
import os

# alembic runs from the project root; backend/ holds the importable modules
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context
from sqlalchemy import create_engine

from core.config import settings
from database import Base

# Registers users, research_papers and activity_logs on Base.metadata
import models.user          # noqa: F401, E402
import models.paper         # noqa: F401, E402
import models.activity_log  # noqa: F401, E402


def run_migrations_online():
    """Apply revisions over a live connection."""
    connectable = create_engine(settings.database_url)
    with connectable.connect() as conn:
        context.configure(connection=conn, target_metadata=Base.metadata)
        with context.begin_transaction():
            context.run_migrations()
    connectable.dispose()


def run_migrations_offline():
    """Emit the SQL script only (``alembic upgrade head --sql``)."""
    context.configure(
        url=settings.database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
