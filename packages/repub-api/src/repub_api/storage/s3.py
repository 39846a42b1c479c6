# SPDX-License-Identifier: MIT
"""Amazon S3 blob storage."""

from __future__ import annotations

import logging
from typing import Any, BinaryIO

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..middleware.errors import StorageError
from .base import BlobExistsError, archive_key

logger = logging.getLogger(__name__)

ARCHIVE_CONTENT_TYPE = "application/gzip"
_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}
# Conditional write lost to an existing or in-flight object
_EXISTS_CODES = {"412", "PreconditionFailed", "409", "ConditionalRequestConflict"}


class S3Storage:
    """Stores archives as objects in an S3 bucket below an optional prefix."""

    def __init__(
        self,
        bucket: str,
        prefix: str = "packages",
        client: Any = None,
        region: str | None = None,
    ):
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.client = client if client is not None else boto3.client("s3", region_name=region)

    def _object_key(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self.prefix}/{key}" if self.prefix else key

    def store(self, package_name: str, version: str, data: bytes) -> str:
        """Upload an archive with ``If-None-Match: *`` so existing objects are kept."""
        key = archive_key(package_name, version)
        object_key = self._object_key(key)
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=ARCHIVE_CONTENT_TYPE,
                IfNoneMatch="*",
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _EXISTS_CODES:
                logger.warning("Refusing to overwrite s3://%s/%s", self.bucket, object_key)
                raise BlobExistsError(key) from e
            logger.error("S3 put_object failed: bucket=%s key=%s: %s", self.bucket, object_key, e)
            raise StorageError(f"failed to store archive {key}") from e
        except BotoCoreError as e:
            logger.error("S3 put_object failed: bucket=%s key=%s: %s", self.bucket, object_key, e)
            raise StorageError(f"failed to store archive {key}") from e
        logger.info("Stored s3://%s/%s (%d bytes)", self.bucket, object_key, len(data))
        return key

    def _get_body(self, key: str):
        object_key = self._object_key(key)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                raise StorageError(f"archive not found: {key}") from e
            logger.error("S3 get_object failed: bucket=%s key=%s: %s", self.bucket, object_key, e)
            raise StorageError(f"failed to read archive {key}") from e
        except BotoCoreError as e:
            logger.error("S3 get_object failed: bucket=%s key=%s: %s", self.bucket, object_key, e)
            raise StorageError(f"failed to read archive {key}") from e
        return response["Body"]

    def get(self, key: str) -> bytes:
        body = self._get_body(key)
        try:
            return body.read()
        except (BotoCoreError, OSError) as e:
            raise StorageError(f"failed to read archive {key}") from e
        finally:
            body.close()

    def get_reader(self, key: str) -> BinaryIO:
        return self._get_body(key)

    def exists(self, key: str) -> bool:
        object_key = self._object_key(key)
        try:
            self.client.head_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return False
            raise StorageError(f"failed to check archive {key}") from e
        except BotoCoreError as e:
            raise StorageError(f"failed to check archive {key}") from e
        return True

    def delete(self, key: str) -> None:
        object_key = self._object_key(key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=object_key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete_object failed: bucket=%s key=%s: %s", self.bucket, object_key, e)
            raise StorageError(f"failed to delete archive {key}") from e
        logger.info("Deleted s3://%s/%s", self.bucket, object_key)
