# SPDX-License-Identifier: MIT
"""Three-step publish workflow.

1. ``request_upload_target`` tells the client where to POST the archive.
2. ``stage_upload`` keeps the archive in memory under a random finalize token.
3. ``finalize`` takes the staged archive and publishes it:
   extract, parse, authorize, check immutability, write the blob, then
   write the version row. Every check runs before the first durable write,
   so the only compensation ever needed is deleting the blob when the
   version row cannot be written. Blob writes never replace an existing
   archive, so a concurrent publish of the same version is rejected before
   it can touch the archive that was stored first.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from urllib.parse import quote

import repub_pubspec
from repub_pubspec import ArchiveContents, Pubspec, extract_archive, parse_pubspec

from ..db.models import Package, PackageVersion
from ..db.repository import PackageRepository
from ..middleware.errors import (
    ErrorDetail,
    InvalidArchiveError,
    InvalidManifestError,
    InvalidPubspecError,
    ManifestNotFoundError,
    UnauthorizedUploaderError,
    UploadNotFoundError,
    VersionExistsError,
)
from ..storage import BlobExistsError, BlobStorage
from .pending import PendingUpload, PendingUploadStore

logger = logging.getLogger(__name__)

NEW_VERSION_PATH = "/api/packages/versions/new"
FINALIZE_PATH = "/api/packages/versions/newUploadFinish"


@dataclass
class PublishResult:
    """Outcome of a successful publish."""

    package: Package
    version: PackageVersion
    message: str


def extract_contents(archive: bytes) -> ArchiveContents:
    """Run the archive extractor, translating its errors to API errors."""
    try:
        return extract_archive(archive)
    except repub_pubspec.ManifestNotFoundError as e:
        raise ManifestNotFoundError(str(e)) from e
    except repub_pubspec.ArchiveFormatError as e:
        raise InvalidArchiveError(str(e)) from e


def parse_manifest(text: str) -> Pubspec:
    """Parse and validate pubspec text, translating its errors to API errors."""
    try:
        return parse_pubspec(text)
    except repub_pubspec.PubspecParseError as e:
        raise InvalidPubspecError(str(e)) from e
    except repub_pubspec.PubspecValidationError as e:
        details = [ErrorDetail(field=d.field, error=d.message, value=d.value) for d in e.errors]
        raise InvalidManifestError(str(e), details=details) from e


class PublishWorkflow:
    """Publish workflow bound to one request's repository and base URL."""

    def __init__(
        self,
        repository: PackageRepository,
        storage: BlobStorage,
        pending: PendingUploadStore,
        base_url: str,
    ):
        self.repository = repository
        self.storage = storage
        self.pending = pending
        self.base_url = base_url.rstrip("/")

    def request_upload_target(self) -> tuple[str, dict[str, str]]:
        """Return the URL and form fields the client should upload to."""
        return f"{self.base_url}{NEW_VERSION_PATH}", {}

    def stage_upload(self, archive: bytes, uploader: str) -> str:
        """Stage an uploaded archive and return the finalize URL."""
        token = self.pending.stage(archive, uploader)
        logger.info(
            "Staged upload %s... (%d bytes) from %s", token[:8], len(archive), uploader
        )
        return f"{self.base_url}{FINALIZE_PATH}?upload_id={quote(token, safe='')}"

    def package_url(self, name: str) -> str:
        return f"{self.base_url}/packages/{name}"

    async def finalize(self, upload_id: str) -> PublishResult:
        """Publish the upload staged under ``upload_id``.

        The token is consumed whether or not publishing succeeds.

        Raises:
            UploadNotFoundError: If nothing is staged under the token
        """
        upload = self.pending.take(upload_id)
        if upload is None:
            raise UploadNotFoundError()
        return await self.publish(upload)

    async def publish(self, upload: PendingUpload) -> PublishResult:
        """Validate and persist a staged upload as a new package version.

        Raises:
            InvalidArchiveError: Archive is not a readable .tar.gz
            ManifestNotFoundError: No root-level pubspec.yaml
            InvalidPubspecError: pubspec.yaml is not a YAML mapping
            InvalidManifestError: name or version missing or malformed
            UnauthorizedUploaderError: Uploader may not publish this package
            VersionExistsError: The version was already published
            StorageError: The archive could not be written
            PersistenceError: The database write failed
        """
        contents = extract_contents(upload.archive)
        pubspec = parse_manifest(contents.pubspec)
        name, number = pubspec.name, pubspec.version

        package = await self.repository.get_package(name)
        if package is None:
            package = await self.repository.create_package(name)
            logger.info("Created package %s", name)

        uploaders = await self.repository.get_uploaders(package.id)
        if not uploaders:
            await self.repository.add_uploader(package.id, upload.uploader)
        elif upload.uploader not in uploaders:
            raise UnauthorizedUploaderError(name, upload.uploader)

        versions = await self.repository.get_versions(package.id)
        if any(v.version == number for v in versions):
            raise VersionExistsError(name, number)

        try:
            key = await asyncio.to_thread(self.storage.store, name, number, upload.archive)
        except BlobExistsError as e:
            # A concurrent publish of the same version got its archive in first
            raise VersionExistsError(name, number) from e
        sha256 = hashlib.sha256(upload.archive).hexdigest()

        record = PackageVersion(
            version=number,
            description=pubspec.description if isinstance(pubspec.description, str) else None,
            pubspec_yaml=contents.pubspec,
            readme=contents.readme,
            changelog=contents.changelog,
            archive_path=key,
            archive_sha256=sha256,
            uploader=upload.uploader,
        )

        try:
            await self.repository.update_package_metadata(package, pubspec)
            created = await self.repository.create_version(package, record)
        except Exception:
            await self._discard_blob(key)
            raise

        logger.info("Published %s %s by %s", name, number, upload.uploader)
        message = f"Successfully uploaded {self.package_url(name)} version {number}."
        return PublishResult(package=package, version=created, message=message)

    async def _discard_blob(self, key: str) -> None:
        try:
            await asyncio.to_thread(self.storage.delete, key)
        except Exception as e:
            logger.warning("Failed to remove orphaned archive %s: %s", key, e)
