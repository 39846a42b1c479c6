# SPDX-License-Identifier: MIT
"""Blob storage interface for package archives."""

from typing import BinaryIO, Protocol

from ..middleware.errors import StorageError


def archive_key(package_name: str, version: str) -> str:
    """Return the storage key of a package archive.

    Example:
        >>> archive_key("http", "1.0.0")
        'http/1.0.0/http-1.0.0.tar.gz'
    """
    return f"{package_name}/{version}/{package_name}-{version}.tar.gz"


class BlobExistsError(StorageError):
    """Raised when an archive is already stored under the target key."""

    def __init__(self, key: str):
        super().__init__(f"archive already stored: {key}")
        self.key = key


class BlobStorage(Protocol):
    """Durable storage of archive bytes addressed by key.

    Archives are write-once: ``store`` never replaces an existing object.
    Implementations raise ``StorageError`` on I/O failure.
    """

    def store(self, package_name: str, version: str, data: bytes) -> str:
        """Write an archive and return its key.

        Raises:
            BlobExistsError: If an archive is already stored under the key
            StorageError: If the write fails
        """
        ...

    def get(self, key: str) -> bytes: ...

    def get_reader(self, key: str) -> BinaryIO: ...

    def exists(self, key: str) -> bool: ...

    def delete(self, key: str) -> None: ...
