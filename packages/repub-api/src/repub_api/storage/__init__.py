# SPDX-License-Identifier: MIT
"""Package archive storage backends."""

from ..config import StorageConfig
from .base import BlobExistsError, BlobStorage, archive_key
from .local import LocalStorage
from .s3 import S3Storage

__all__ = [
    "BlobExistsError",
    "BlobStorage",
    "LocalStorage",
    "S3Storage",
    "archive_key",
    "create_storage",
]


def create_storage(config: StorageConfig) -> BlobStorage:
    """Create the storage backend selected by configuration."""
    if config.backend == "local":
        return LocalStorage(config.local_path)
    if config.backend == "s3":
        if not config.s3_bucket:
            raise ValueError("s3 storage requires a bucket")
        return S3Storage(
            bucket=config.s3_bucket,
            prefix=config.s3_prefix,
            region=config.s3_region,
        )
    raise ValueError(f"Unknown storage backend: {config.backend}")
