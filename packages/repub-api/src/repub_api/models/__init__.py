# SPDX-License-Identifier: MIT
"""Pydantic models for API requests and responses."""

from .responses import (
    NewVersionResponse,
    PackageListResponse,
    PackageResponse,
    PackageSummary,
    PaginationInfo,
    SuccessMessage,
    SuccessResponse,
    UploadersResponse,
    VersionResponse,
)

__all__ = [
    "NewVersionResponse",
    "PackageListResponse",
    "PackageResponse",
    "PackageSummary",
    "PaginationInfo",
    "SuccessMessage",
    "SuccessResponse",
    "UploadersResponse",
    "VersionResponse",
]
