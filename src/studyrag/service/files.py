"""Local filesystem storage for uploaded PDFs."""

import logging
import uuid
from pathlib import Path

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)


class LocalFileStorage:
    """Stores uploaded files under a root folder, one subfolder per user.

    Paths handed out by :meth:`save` are relative to the root and are treated
    as opaque by the rest of the application.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        full_path = (self.root / path).resolve()
        if self.root.resolve() not in full_path.parents:
            raise ValueError(f"Path escapes storage root: {path}")
        return full_path

    def save(self, user_id: str, filename: str, data: bytes) -> str:
        """Write a file and return its storage path.

        Args:
            user_id: Owning user, used as the subfolder name
            filename: Original client filename
            data: File contents

        Returns:
            str: Storage path relative to the root
        """
        safe_user = secure_filename(user_id) or "anonymous"
        safe_name = secure_filename(filename) or "document.pdf"
        relative = f"{safe_user}/{uuid.uuid4().hex[:8]}_{safe_name}"

        target = self._resolve(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        logger.info(f"💾 Saved upload to {target} ({len(data)} bytes)")
        return relative

    def download(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target.exists():
            target.unlink()
            logger.info(f"🗑️  Removed stored file {target}")
