# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin account.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_PASSWORD and FIRST_ADMIN_NAME
from etc/app.conf.  After the row is inserted those values are no longer used
by the application.

The admin is created already verified – there is no mail round-trip for the
bootstrap account.  If an account with that email exists it is promoted.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_admin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

from core.config import settings          # noqa: E402
from core.logger import logger            # noqa: E402
from core.security import hash_password   # noqa: E402
from database import Database             # noqa: E402
from models.user import User              # noqa: E402


def seed(database: Database) -> None:
    if not settings.first_admin_email or not settings.first_admin_password:
        logger.warning("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return

    email = settings.first_admin_email.strip().lower()
    with database.session() as db:
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            if existing.is_admin:
                logger.info("[seed_admin] Admin '%s' already exists – skipping.", email)
                return
            existing.is_admin = True
            existing.verified = True
            existing.verification_code = None
            db.commit()
            logger.info("[seed_admin] Existing account '%s' promoted to admin.", email)
            return

        db.add(User(
            name=settings.first_admin_name,
            email=email,
            password_hash=hash_password(settings.first_admin_password),
            verified=True,
            verification_code=None,
            is_admin=True,
        ))
        db.commit()
        logger.info("[seed_admin] Admin '%s' created successfully.", email)


if __name__ == "__main__":
    database = Database(settings.database_url)
    database.connect()
    try:
        seed(database)
    finally:
        database.dispose()
