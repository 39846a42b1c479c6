# SPDX-License-Identifier: MIT
"""In-memory staging of uploaded archives awaiting finalization."""

import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


@dataclass
class PendingUpload:
    """An uploaded archive waiting for its finalize call."""

    archive: bytes
    uploader: str
    staged_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PendingUploadStore:
    """Process-local map of finalize token to staged upload.

    Safe for concurrent use from multiple requests. Entries are lost on
    restart, and entries that are never finalized stay until
    :meth:`purge_expired` removes them.
    """

    def __init__(self, token_bytes: int = 32):
        self._token_bytes = token_bytes
        self._lock = threading.Lock()
        self._uploads: dict[str, PendingUpload] = {}

    def stage(self, archive: bytes, uploader: str) -> str:
        """Stage an archive and return its finalize token."""
        upload = PendingUpload(archive=archive, uploader=uploader)
        with self._lock:
            token = secrets.token_urlsafe(self._token_bytes)
            while token in self._uploads:
                token = secrets.token_urlsafe(self._token_bytes)
            self._uploads[token] = upload
        return token

    def take(self, token: str) -> PendingUpload | None:
        """Remove and return the upload staged under ``token``.

        Each token can be taken at most once.
        """
        with self._lock:
            return self._uploads.pop(token, None)

    def purge_expired(self, max_age: timedelta, now: datetime | None = None) -> int:
        """Drop uploads staged longer than ``max_age`` ago.

        Returns:
            Number of uploads removed
        """
        cutoff = (now or datetime.now(timezone.utc)) - max_age
        with self._lock:
            expired = [t for t, u in self._uploads.items() if u.staged_at < cutoff]
            for token in expired:
                del self._uploads[token]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._uploads)

    def __contains__(self, token: object) -> bool:
        with self._lock:
            return token in self._uploads
