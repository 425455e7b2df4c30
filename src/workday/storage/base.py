from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class StoredFile:
    file_name: str
    path: str
    url: str
    size: int
    mime_type: str


class AttachmentStorage(Protocol):
    """Where task attachments live.

    ``upload`` is anything shaped like ``werkzeug.datastructures.FileStorage``.
    """

    def save(self, upload) -> StoredFile:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError
