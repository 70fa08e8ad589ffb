"""Filesystem storage for uploaded documents."""

import logging
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from askmyfile.domain.documents import StoredFile
from askmyfile.services.documents import FileStorage

logger = logging.getLogger(__name__)

_MAX_NAME_LENGTH = 200


def sanitize_filename(filename: str) -> str:
    """Strip path components and separators from a client-supplied name."""
    name = Path(filename.replace("\\", "/")).name
    safe = name.replace("\x00", "").strip()
    if len(safe) > _MAX_NAME_LENGTH:
        suffix = Path(safe).suffix
        safe = safe[: _MAX_NAME_LENGTH - len(suffix)] + suffix
    return safe or "document.pdf"


@dataclass
class LocalFileStorage(FileStorage):
    """Writes uploads under a root directory with unique names."""

    root_dir: Path

    def __post_init__(self) -> None:
        self.root_dir = Path(self.root_dir)
        self.root_dir.mkdir(parents=True, exist_ok=True)

    def save(self, content: bytes, original_filename: str) -> StoredFile:
        """Write file bytes and return the stored name and path."""
        filename = (
            f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-"
            f"{sanitize_filename(original_filename)}"
        )
        path = self.root_dir / filename
        path.write_bytes(content)
        return StoredFile(filename=filename, path=str(path))

    def delete(self, path: str) -> None:
        """Remove a stored file; missing files are ignored."""
        target = Path(path)
        if not target.is_relative_to(self.root_dir):
            logger.warning("Refusing to delete file outside upload dir: %s", path)
            return
        target.unlink(missing_ok=True)
