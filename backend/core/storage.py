# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Artifact storage for uploaded papers and profile images.

Files land in UPLOAD_DIR under a unique, sanitized name and are served by the
``/uploads`` static mount, so the public URL of a file is
``{PUBLIC_BASE_URL}/uploads/<subdir>/<name>``.
"""

import re
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO, Optional

from fastapi import Request

from core.exceptions import StorageError
from core.logger import logger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(filename: str) -> str:
    """Keep letters, digits, dot, dash and underscore; collapse the rest."""
    name = Path(filename or "").name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    return name[:120] or "file"


class LocalArtifactStorage:
    def __init__(self, root: Path, base_url: str, mount_path: str = "/uploads"):
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")
        self.mount_path = "/" + mount_path.strip("/")

    @property
    def url_prefix(self) -> str:
        return f"{self.base_url}{self.mount_path}/"

    def ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def save(self, filename: str, fileobj: BinaryIO, subdir: str = "") -> str:
        """Copy *fileobj* into storage and return its public URL."""
        stored_name = f"{uuid.uuid4().hex[:12]}-{sanitize_filename(filename)}"
        relative = Path(subdir) / stored_name if subdir else Path(stored_name)
        target = self.root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as out:
                shutil.copyfileobj(fileobj, out)
        except OSError as exc:
            logger.error("Could not store upload %s: %s", target, exc)
            raise StorageError("Could not store uploaded file") from exc
        return self.url_prefix + relative.as_posix()

    def path_for(self, url: Optional[str]) -> Optional[Path]:
        """Local path behind a URL this storage issued, else None."""
        if not url or not url.startswith(self.url_prefix):
            return None
        candidate = (self.root / url[len(self.url_prefix):]).resolve()
        if self.root.resolve() not in candidate.parents:
            return None
        return candidate

    def discard(self, url: Optional[str]) -> None:
        """Delete the file behind *url*.  Foreign or missing files are ignored."""
        path = self.path_for(url)
        if path is None:
            return
        path.unlink(missing_ok=True)
        logger.info("Removed stored artifact %s", path.name)


def get_storage(request: Request) -> LocalArtifactStorage:
    """FastAPI dependency returning the application's artifact storage."""
    return request.app.state.storage
