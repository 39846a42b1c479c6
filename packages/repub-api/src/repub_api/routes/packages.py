# SPDX-License-Identifier: MIT
"""Package metadata, retraction and uploader endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..auth import READ_SCOPE, WRITE_SCOPE, AuthenticatedUser, require_scope
from ..db.repository import SQLAlchemyPackageRepository, get_repository
from ..deps import get_base_url
from ..middleware.errors import PackageNotFoundError, VersionNotFoundError
from ..models.responses import (
    PackageListResponse,
    PackageResponse,
    UploadersResponse,
    VersionResponse,
)
from ..services import packages as package_service

router = APIRouter()

Repository = Annotated[SQLAlchemyPackageRepository, Depends(get_repository)]
BaseURL = Annotated[str, Depends(get_base_url)]


class RetractRequest(BaseModel):
    """Request body for retracting or restoring a version."""

    retracted: bool = True


class UploaderRequest(BaseModel):
    """Request body for adding an uploader."""

    uploader: str = Field(min_length=1, max_length=255)


@router.get("/api/packages", response_model=PackageListResponse)
async def list_packages(
    user: Annotated[AuthenticatedUser, Depends(require_scope(READ_SCOPE))],
    repository: Repository,
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(20, ge=1, le=100, description="Items per page"),
) -> PackageListResponse:
    """List all packages with pagination, sorted by name."""
    return await package_service.list_packages(repository, page, per_page)


@router.get("/api/packages/{name}", response_model=PackageResponse)
async def get_package(
    name: str,
    user: Annotated[AuthenticatedUser, Depends(require_scope(READ_SCOPE))],
    repository: Repository,
    base_url: BaseURL,
) -> PackageResponse:
    """Get a package with all of its versions, newest first."""
    package = await package_service.get_package(repository, name, base_url)
    if package is None:
        raise PackageNotFoundError(name)
    return package


@router.get("/api/packages/{name}/versions/{version}", response_model=VersionResponse)
async def get_version(
    name: str,
    version: str,
    user: Annotated[AuthenticatedUser, Depends(require_scope(READ_SCOPE))],
    repository: Repository,
    base_url: BaseURL,
) -> VersionResponse:
    """Get a single package version."""
    response = await package_service.get_version(repository, name, version, base_url)
    if response is None:
        raise VersionNotFoundError(name, version)
    return response


@router.post("/api/packages/{name}/versions/{version}/retract", response_model=VersionResponse)
async def retract_version(
    name: str,
    version: str,
    user: Annotated[AuthenticatedUser, Depends(require_scope(WRITE_SCOPE))],
    repository: Repository,
    base_url: BaseURL,
    body: RetractRequest | None = None,
) -> VersionResponse:
    """Retract a version, or restore it with ``{"retracted": false}``.

    Requires an authorized uploader of the package.
    """
    retracted = body.retracted if body is not None else True
    return await package_service.set_retracted(
        repository, name, version, retracted, user, base_url
    )


@router.get("/api/packages/{name}/uploaders", response_model=UploadersResponse)
async def list_uploaders(
    name: str,
    user: Annotated[AuthenticatedUser, Depends(require_scope(READ_SCOPE))],
    repository: Repository,
) -> UploadersResponse:
    """List the identities allowed to publish a package."""
    uploaders = await package_service.get_uploaders(repository, name)
    return UploadersResponse(package=name, uploaders=uploaders)


@router.post("/api/packages/{name}/uploaders", response_model=UploadersResponse)
async def add_uploader(
    name: str,
    body: UploaderRequest,
    user: Annotated[AuthenticatedUser, Depends(require_scope(WRITE_SCOPE))],
    repository: Repository,
) -> UploadersResponse:
    """Authorize another identity to publish a package.

    Requires an authorized uploader of the package.
    """
    uploaders = await package_service.add_uploader(repository, name, body.uploader, user)
    return UploadersResponse(package=name, uploaders=uploaders)
