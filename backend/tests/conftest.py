import os
import re
import sys
import tempfile
from pathlib import Path
from typing import Generator

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# Settings are read once at import time, so the environment must be in place
# before any application module is imported.
_SCRATCH = Path(tempfile.mkdtemp(prefix="summit-tests-"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_SCRATCH / 'default.db'}")
os.environ.setdefault("SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("MAIL_BACKEND", "console")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "1000")
os.environ.setdefault("UPLOAD_DIR", str(_SCRATCH / "uploads"))
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

from fastapi.testclient import TestClient  # noqa: E402

from core.config import settings  # noqa: E402
from core.exceptions import DeliveryError  # noqa: E402
from core.mailer import Mailer  # noqa: E402
from database import Database  # noqa: E402
from main import create_app  # noqa: E402
from models.user import User  # noqa: E402

_CODE_RE = re.compile(r"verification code is: (\d{6})")


class RecordingMailer(Mailer):
    """Collects messages instead of sending them; can be told to fail."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise DeliveryError()
        self.sent.append((to, subject, body))

    def code_for(self, email: str) -> str:
        for to, _subject, body in reversed(self.sent):
            if to == email:
                return _CODE_RE.search(body).group(1)
        raise AssertionError(f"no mail sent to {email}")


@pytest.fixture
def database(tmp_path: Path) -> Generator[Database, None, None]:
    """A fresh SQLite database per test."""
    db = Database(f"sqlite:///{tmp_path / 'test.db'}")
    db.connect()
    db.create_all()
    try:
        yield db
    finally:
        db.dispose()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def app(database: Database, mailer: RecordingMailer, upload_dir: Path):
    test_settings = settings.model_copy(update={"upload_dir": str(upload_dir)})
    return create_app(settings=test_settings, database=database, mailer=mailer)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def signup(client: TestClient, mailer: RecordingMailer):
    """Register, verify and log in an account; returns the login payload."""

    def _signup(name: str = "Ana", email: str = "ana@x.com", password: str = "pw123") -> dict:
        assert client.post(
            "/api/auth/register", json={"name": name, "email": email, "password": password}
        ).status_code == 201
        assert client.post(
            "/api/auth/verify", json={"email": email, "code": mailer.code_for(email)}
        ).status_code == 200
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200
        return response.json()

    return _signup


@pytest.fixture
def make_admin(database: Database):
    def _make_admin(user_id: str) -> None:
        with database.session() as db:
            db.get(User, user_id).is_admin = True
            db.commit()

    return _make_admin


@pytest.fixture
def admin(signup, make_admin) -> dict:
    """A verified admin account (login payload)."""
    payload = signup("Root", "root@x.com", "rootpw")
    make_admin(payload["user"]["_id"])
    return payload
