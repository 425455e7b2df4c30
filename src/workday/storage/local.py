from __future__ import annotations

import logging
import os
import uuid

from werkzeug.utils import secure_filename

from ..core.clock import Clock
from ..core.exceptions import ValidationError
from .base import AttachmentStorage, StoredFile

logger = logging.getLogger(__name__)


class LocalFileStorage(AttachmentStorage):
    """Files kept in a local directory and served under ``/uploads``."""

    def __init__(self, root: str, public_base_url: str, clock: Clock):
        self._root = os.path.abspath(root)
        self._base_url = (public_base_url or "").rstrip("/")
        self._clock = clock

    @property
    def root(self) -> str:
        return self._root

    def _unique_name(self, original: str) -> str:
        stamp = int(self._clock.now().timestamp() * 1000)
        return f"{stamp}-{uuid.uuid4().hex[:8]}-{original}"

    def save(self, upload) -> StoredFile:
        if upload is None or not getattr(upload, "filename", ""):
            raise ValidationError("Please upload a file")

        original = secure_filename(upload.filename) or "file"
        os.makedirs(self._root, exist_ok=True)
        name = self._unique_name(original)
        path = os.path.join(self._root, name)
        upload.save(path)

        stored = StoredFile(
            file_name=upload.filename,
            path=path,
            url=f"{self._base_url}/uploads/{name}",
            size=os.path.getsize(path),
            mime_type=upload.mimetype or "application/octet-stream",
        )
        logger.info("stored upload %s (%s bytes)", name, stored.size)
        return stored

    def delete(self, path: str) -> bool:
        if not path or not os.path.exists(path):
            return False
        os.remove(path)
        return True
