# SPDX-License-Identifier: MIT
"""SQLAlchemy database models for the package repository."""

from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Package(Base):
    """A package name and its descriptive metadata.

    Created on the first successful publish under the name; never deleted.
    """

    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    private: Mapped[bool] = mapped_column(Boolean, default=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    homepage: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    repository: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    documentation: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    topics: Mapped[Optional[list[Any]]] = mapped_column(JSON, nullable=True)
    download_count: Mapped[int] = mapped_column(Integer, default=0)
    like_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    def __repr__(self) -> str:
        return f"<Package(name={self.name!r})>"


class PackageVersion(Base):
    """An immutable published version of a package.

    Only ``retracted`` and ``download_count`` change after creation.
    """

    __tablename__ = "package_versions"
    __table_args__ = (UniqueConstraint("package_id", "version", name="uq_package_version"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    package_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("packages.id", ondelete="CASCADE"), index=True
    )
    version: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pubspec_yaml: Mapped[str] = mapped_column(Text)
    readme: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changelog: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    archive_path: Mapped[str] = mapped_column(String(500))
    archive_sha256: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    uploader: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    retracted: Mapped[bool] = mapped_column(Boolean, default=False)
    download_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utc_now)

    def __repr__(self) -> str:
        return f"<PackageVersion(package_id={self.package_id!r}, version={self.version!r})>"


class PackageUploader(Base):
    """Membership of an identity in a package's authorized uploader set."""

    __tablename__ = "package_uploaders"

    package_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("packages.id", ondelete="CASCADE"), primary_key=True
    )
    uploader: Mapped[str] = mapped_column(String(255), primary_key=True)

    def __repr__(self) -> str:
        return f"<PackageUploader(package_id={self.package_id!r}, uploader={self.uploader!r})>"
