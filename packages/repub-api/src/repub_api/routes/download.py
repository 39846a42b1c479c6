# SPDX-License-Identifier: MIT
"""Package archive download endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..auth import READ_SCOPE, AuthenticatedUser, require_scope
from ..db.repository import SQLAlchemyPackageRepository, get_repository
from ..deps import get_storage
from ..services import packages as package_service
from ..storage import BlobStorage

router = APIRouter()


@router.get("/packages/{name}/versions/{version}/download")
async def download_archive(
    name: str,
    version: str,
    user: Annotated[AuthenticatedUser, Depends(require_scope(READ_SCOPE))],
    repository: Annotated[SQLAlchemyPackageRepository, Depends(get_repository)],
    storage: Annotated[BlobStorage, Depends(get_storage)],
) -> Response:
    """Download a version's archive.

    Returns the .tar.gz as an attachment with its SHA256 in X-Checksum-SHA256.
    The version and package download counters are incremented.
    """
    data, record = await package_service.download(repository, storage, name, version)

    headers = {"Content-Disposition": f'attachment; filename="{name}-{version}.tar.gz"'}
    if record.archive_sha256:
        headers["X-Checksum-SHA256"] = record.archive_sha256

    return Response(content=data, media_type="application/octet-stream", headers=headers)
