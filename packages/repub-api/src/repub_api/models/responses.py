# SPDX-License-Identifier: MIT
"""Pydantic models for pub API responses."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class VersionResponse(BaseModel):
    """A single package version as served to pub clients."""

    version: str
    retracted: bool = False
    archive_url: str
    archive_sha256: str | None = None
    pubspec: dict[str, Any] = Field(description="The version's pubspec.yaml as a JSON object")
    published: datetime | None = None


class PackageResponse(BaseModel):
    """Response for the package listing endpoint."""

    name: str
    latest: VersionResponse
    versions: list[VersionResponse]


class NewVersionResponse(BaseModel):
    """Upload target returned by the first publish step."""

    url: str
    fields: dict[str, str] = Field(default_factory=dict)


class SuccessMessage(BaseModel):
    """Message body of a successful operation."""

    message: str


class SuccessResponse(BaseModel):
    """Standard success envelope."""

    success: SuccessMessage

    @classmethod
    def create(cls, message: str) -> "SuccessResponse":
        """Create a success response."""
        return cls(success=SuccessMessage(message=message))


class PaginationInfo(BaseModel):
    """Pagination metadata."""

    page: int = Field(ge=1, description="Current page number")
    per_page: int = Field(ge=1, le=100, description="Items per page")
    total: int = Field(ge=0, description="Total number of items")
    total_pages: int = Field(ge=0, description="Total number of pages")


class PackageSummary(BaseModel):
    """Package entry in paginated listings."""

    name: str
    description: str | None = None
    latest_version: str | None = None
    topics: list[str] = Field(default_factory=list)
    downloads: int = 0
    updated_at: datetime | None = None


class PackageListResponse(BaseModel):
    """Response for the paginated package index."""

    packages: list[PackageSummary]
    pagination: PaginationInfo


class UploadersResponse(BaseModel):
    """Authorized uploaders of a package."""

    package: str
    uploaders: list[str]
