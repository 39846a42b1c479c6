# SPDX-License-Identifier: MIT
"""Package/version store backed by SQLAlchemy.

Writes made while publishing (package creation, uploader registration,
metadata refresh) are only flushed; ``create_version`` commits them together
with the new version row so a failed publish leaves nothing behind.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Annotated, Protocol

from fastapi import Depends
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repub_pubspec import Pubspec

from ..middleware.errors import PersistenceError, VersionExistsError
from . import get_session
from .models import Package, PackageUploader, PackageVersion

logger = logging.getLogger(__name__)


class PackageRepository(Protocol):
    """Durable record of packages, versions and authorized uploaders."""

    async def get_package(self, name: str) -> Package | None: ...

    async def create_package(self, name: str, private: bool = False) -> Package: ...

    async def list_packages(self, limit: int, offset: int) -> list[Package]: ...

    async def count_packages(self) -> int: ...

    async def get_versions(self, package_id: int) -> list[PackageVersion]: ...

    async def get_version(self, package_id: int, version: str) -> PackageVersion | None: ...

    async def create_version(self, package: Package, version: PackageVersion) -> PackageVersion: ...

    async def get_uploaders(self, package_id: int) -> list[str]: ...

    async def add_uploader(self, package_id: int, uploader: str) -> None: ...

    async def update_package_metadata(self, package: Package, pubspec: Pubspec) -> None: ...

    async def set_retracted(self, version: PackageVersion, retracted: bool) -> PackageVersion: ...

    async def increment_download_count(self, version: PackageVersion) -> None: ...

    async def commit(self) -> None: ...


@contextmanager
def _persistence_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Database error while trying to %s: %s", action, e)
        raise PersistenceError(f"failed to {action}") from e


def _text(value: object) -> str | None:
    return value if isinstance(value, str) else None


class SQLAlchemyPackageRepository:
    """PackageRepository implementation over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _select_package(self, name: str) -> Package | None:
        with _persistence_errors("get package"):
            result = await self.session.execute(select(Package).where(Package.name == name))
            return result.scalar_one_or_none()

    async def get_package(self, name: str) -> Package | None:
        return await self._select_package(name)

    async def create_package(self, name: str, private: bool = False) -> Package:
        """Insert a package row, or return the row a concurrent publish created first.

        Must be the first write of its transaction: on a name clash the
        transaction is rolled back before the existing row is loaded.
        """
        package = Package(name=name, private=private)
        try:
            self.session.add(package)
            await self.session.flush()
        except IntegrityError as e:
            with _persistence_errors("create package"):
                await self.session.rollback()
            existing = await self._select_package(name)
            if existing is None:
                logger.error("Failed to create package %s: %s", name, e)
                raise PersistenceError("failed to create package") from e
            logger.info("Package %s was created concurrently; using the existing row", name)
            return existing
        except SQLAlchemyError as e:
            logger.error("Database error while trying to create package: %s", e)
            raise PersistenceError("failed to create package") from e
        return package

    async def list_packages(self, limit: int, offset: int) -> list[Package]:
        query = select(Package).order_by(Package.name).offset(offset).limit(limit)
        with _persistence_errors("list packages"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def count_packages(self) -> int:
        with _persistence_errors("count packages"):
            result = await self.session.execute(select(func.count()).select_from(Package))
            return result.scalar() or 0

    async def get_versions(self, package_id: int) -> list[PackageVersion]:
        """Return all versions of a package, newest first."""
        query = (
            select(PackageVersion)
            .where(PackageVersion.package_id == package_id)
            .order_by(PackageVersion.created_at.desc(), PackageVersion.id.desc())
        )
        with _persistence_errors("get package versions"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def get_version(self, package_id: int, version: str) -> PackageVersion | None:
        query = select(PackageVersion).where(
            PackageVersion.package_id == package_id,
            PackageVersion.version == version,
        )
        with _persistence_errors("get package version"):
            result = await self.session.execute(query)
            return result.scalar_one_or_none()

    async def create_version(self, package: Package, version: PackageVersion) -> PackageVersion:
        """Insert a version row and commit the publish transaction.

        Raises:
            VersionExistsError: If (package, version) violates the unique constraint
            PersistenceError: On any other database failure
        """
        package_name = package.name
        number = version.version
        version.package_id = package.id

        try:
            self.session.add(version)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning("Duplicate version %s of %s rejected by the database", number, package_name)
            raise VersionExistsError(package_name, number) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Failed to create version %s of %s: %s", number, package_name, e)
            raise PersistenceError("failed to create version record") from e
        return version

    async def get_uploaders(self, package_id: int) -> list[str]:
        query = (
            select(PackageUploader.uploader)
            .where(PackageUploader.package_id == package_id)
            .order_by(PackageUploader.uploader)
        )
        with _persistence_errors("get uploaders"):
            result = await self.session.execute(query)
            return list(result.scalars().all())

    async def add_uploader(self, package_id: int, uploader: str) -> None:
        with _persistence_errors("add uploader"):
            self.session.add(PackageUploader(package_id=package_id, uploader=uploader))
            await self.session.flush()

    async def update_package_metadata(self, package: Package, pubspec: Pubspec) -> None:
        """Refresh descriptive package fields from a newly published pubspec."""
        package.description = _text(pubspec.description)
        package.homepage = _text(pubspec.homepage)
        package.repository = _text(pubspec.repository)
        package.documentation = _text(pubspec.documentation)
        topics = pubspec.topics if isinstance(pubspec.topics, list) else None
        package.topics = [t for t in topics if isinstance(t, str)] if topics else None
        with _persistence_errors("update package metadata"):
            await self.session.flush()

    async def set_retracted(self, version: PackageVersion, retracted: bool) -> PackageVersion:
        version.retracted = retracted
        with _persistence_errors("update retraction"):
            await self.session.commit()
        return version

    async def increment_download_count(self, version: PackageVersion) -> None:
        """Increment download counters of a version and its package."""
        with _persistence_errors("record download"):
            await self.session.execute(
                update(PackageVersion)
                .where(PackageVersion.id == version.id)
                .values(download_count=PackageVersion.download_count + 1)
            )
            await self.session.execute(
                update(Package)
                .where(Package.id == version.package_id)
                .values(download_count=Package.download_count + 1)
            )
            await self.session.commit()

    async def commit(self) -> None:
        with _persistence_errors("commit"):
            await self.session.commit()


async def get_repository(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> SQLAlchemyPackageRepository:
    """FastAPI dependency providing a repository bound to the request session."""
    return SQLAlchemyPackageRepository(session)
