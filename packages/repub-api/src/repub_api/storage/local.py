# SPDX-License-Identifier: MIT
"""Filesystem blob storage."""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from ..middleware.errors import StorageError
from .base import BlobExistsError, archive_key

logger = logging.getLogger(__name__)


class LocalStorage:
    """Stores archives below a base directory, one file per key."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)

    def _path(self, key: str) -> Path:
        parts = [p for p in key.replace("\\", "/").split("/") if p]
        if not parts or any(p in (".", "..") for p in parts):
            raise StorageError(f"invalid storage key: {key!r}")
        return self.base_path.joinpath(*parts)

    def store(self, package_name: str, version: str, data: bytes) -> str:
        """Write an archive under its key without replacing an existing file.

        The bytes go to a temp file in the target directory which is then
        hard-linked into place; the link fails if the key is taken.
        """
        key = archive_key(package_name, version)
        path = self._path(key)
        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            try:
                os.link(tmp_path, path)
            except FileExistsError as e:
                logger.warning("Refusing to overwrite %s", key)
                raise BlobExistsError(key) from e
        except OSError as e:
            raise StorageError(f"failed to store archive {key}: {e}") from e
        finally:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    tmp_path.unlink(missing_ok=True)
        logger.info("Stored %s (%d bytes)", key, len(data))
        return key

    def get(self, key: str) -> bytes:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"archive not found: {key}") from e
        except OSError as e:
            raise StorageError(f"failed to read archive {key}: {e}") from e

    def get_reader(self, key: str) -> BinaryIO:
        try:
            return self._path(key).open("rb")
        except FileNotFoundError as e:
            raise StorageError(f"archive not found: {key}") from e
        except OSError as e:
            raise StorageError(f"failed to open archive {key}: {e}") from e

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"failed to delete archive {key}: {e}") from e
        logger.info("Deleted %s", key)
