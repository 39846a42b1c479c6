# SPDX-License-Identifier: MIT
"""Read path and package administration."""

import asyncio
import logging

from repub_pubspec import ManifestError, parse_pubspec

from ..auth import AuthenticatedUser
from ..db.models import Package, PackageVersion
from ..db.repository import PackageRepository
from ..middleware.errors import (
    NoVersionsError,
    PackageNotFoundError,
    PersistenceError,
    UnauthorizedUploaderError,
    VersionNotFoundError,
)
from ..models.responses import (
    PackageListResponse,
    PackageResponse,
    PackageSummary,
    PaginationInfo,
    VersionResponse,
)
from ..storage import BlobStorage

logger = logging.getLogger(__name__)


def archive_url(base_url: str, name: str, version: str) -> str:
    """Build the download URL of a version's archive."""
    return f"{base_url.rstrip('/')}/packages/{name}/versions/{version}/download"


def select_latest(versions: list[PackageVersion]) -> PackageVersion:
    """Pick the latest version from a newest-first list.

    The newest non-retracted version wins; when every version is retracted,
    the newest version is used.
    """
    for version in versions:
        if not version.retracted:
            return version
    return versions[0]


def version_to_response(version: PackageVersion, package_name: str, base_url: str) -> VersionResponse:
    """Convert a stored version to its wire shape."""
    try:
        pubspec = parse_pubspec(version.pubspec_yaml).to_dict()
    except ManifestError as e:
        logger.error("Stored pubspec of %s %s is unreadable: %s", package_name, version.version, e)
        raise PersistenceError(f"stored pubspec of {package_name} {version.version} is unreadable") from e

    return VersionResponse(
        version=version.version,
        retracted=version.retracted,
        archive_url=archive_url(base_url, package_name, version.version),
        archive_sha256=version.archive_sha256,
        pubspec=pubspec,
        published=version.created_at,
    )


async def get_package(
    repository: PackageRepository, name: str, base_url: str
) -> PackageResponse | None:
    """Assemble a package with all of its versions, newest first.

    Returns:
        None if the package does not exist

    Raises:
        NoVersionsError: If the package exists without versions
    """
    package = await repository.get_package(name)
    if package is None:
        return None

    versions = await repository.get_versions(package.id)
    if not versions:
        raise NoVersionsError(name)

    responses = [version_to_response(v, package.name, base_url) for v in versions]
    latest = select_latest(versions)
    return PackageResponse(
        name=package.name,
        latest=responses[versions.index(latest)],
        versions=responses,
    )


async def get_version(
    repository: PackageRepository, name: str, version: str, base_url: str
) -> VersionResponse | None:
    """Find one version by exact version string; None if absent."""
    package = await repository.get_package(name)
    if package is None:
        return None

    for candidate in await repository.get_versions(package.id):
        if candidate.version == version:
            return version_to_response(candidate, package.name, base_url)
    return None


async def list_packages(
    repository: PackageRepository, page: int, per_page: int
) -> PackageListResponse:
    """List packages alphabetically, one page at a time."""
    total = await repository.count_packages()
    packages = await repository.list_packages(limit=per_page, offset=(page - 1) * per_page)

    items = []
    for package in packages:
        versions = await repository.get_versions(package.id)
        items.append(
            PackageSummary(
                name=package.name,
                description=package.description,
                latest_version=select_latest(versions).version if versions else None,
                topics=package.topics or [],
                downloads=package.download_count,
                updated_at=package.updated_at,
            )
        )

    total_pages = (total + per_page - 1) // per_page if total > 0 else 0
    return PackageListResponse(
        packages=items,
        pagination=PaginationInfo(
            page=page,
            per_page=per_page,
            total=total,
            total_pages=total_pages,
        ),
    )


async def _require_version(
    repository: PackageRepository, name: str, version: str
) -> tuple[Package, PackageVersion]:
    package = await repository.get_package(name)
    if package is None:
        raise PackageNotFoundError(name)

    record = await repository.get_version(package.id, version)
    if record is None:
        raise VersionNotFoundError(name, version)
    return package, record


async def download(
    repository: PackageRepository, storage: BlobStorage, name: str, version: str
) -> tuple[bytes, PackageVersion]:
    """Fetch a version's archive bytes and count the download.

    Raises:
        PackageNotFoundError: If the package does not exist
        VersionNotFoundError: If the version does not exist
        StorageError: If the archive cannot be read
    """
    _, record = await _require_version(repository, name, version)
    data = await asyncio.to_thread(storage.get, record.archive_path)
    await repository.increment_download_count(record)
    return data, record


async def _require_uploader(
    repository: PackageRepository, package: Package, user: AuthenticatedUser
) -> list[str]:
    uploaders = await repository.get_uploaders(package.id)
    if user.user_id not in uploaders:
        raise UnauthorizedUploaderError(package.name, user.user_id)
    return uploaders


async def set_retracted(
    repository: PackageRepository,
    name: str,
    version: str,
    retracted: bool,
    user: AuthenticatedUser,
    base_url: str,
) -> VersionResponse:
    """Set or clear the retracted flag of a version.

    Only authorized uploaders of the package may do this.
    """
    package, record = await _require_version(repository, name, version)
    await _require_uploader(repository, package, user)

    if record.retracted != retracted:
        record = await repository.set_retracted(record, retracted)
        logger.info(
            "%s %s %s by %s", "Retracted" if retracted else "Restored", name, version, user.user_id
        )
    return version_to_response(record, package.name, base_url)


async def get_uploaders(repository: PackageRepository, name: str) -> list[str]:
    """Return the authorized uploaders of a package."""
    package = await repository.get_package(name)
    if package is None:
        raise PackageNotFoundError(name)
    return await repository.get_uploaders(package.id)


async def add_uploader(
    repository: PackageRepository, name: str, uploader: str, user: AuthenticatedUser
) -> list[str]:
    """Authorize another identity to publish a package.

    The uploader set only grows; adding an existing member is a no-op.
    """
    package = await repository.get_package(name)
    if package is None:
        raise PackageNotFoundError(name)

    uploaders = await _require_uploader(repository, package, user)
    if uploader in uploaders:
        return uploaders

    await repository.add_uploader(package.id, uploader)
    await repository.commit()
    logger.info("Added uploader %s to %s by %s", uploader, name, user.user_id)
    return sorted([*uploaders, uploader])
