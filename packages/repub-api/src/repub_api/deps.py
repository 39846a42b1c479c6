# SPDX-License-Identifier: MIT
"""Request-scoped dependencies shared by the route modules."""

from typing import Annotated

from fastapi import Depends, Request

from .db.repository import SQLAlchemyPackageRepository, get_repository
from .services.pending import PendingUploadStore
from .services.publish import PublishWorkflow
from .storage import BlobStorage


def get_base_url(request: Request) -> str:
    """Public base URL: the configured one, else the one the request came in on."""
    configured = request.app.state.config.base_url
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")


def get_storage(request: Request) -> BlobStorage:
    return request.app.state.storage


def get_pending_uploads(request: Request) -> PendingUploadStore:
    return request.app.state.pending_uploads


def get_publish_workflow(
    repository: Annotated[SQLAlchemyPackageRepository, Depends(get_repository)],
    storage: Annotated[BlobStorage, Depends(get_storage)],
    pending: Annotated[PendingUploadStore, Depends(get_pending_uploads)],
    base_url: Annotated[str, Depends(get_base_url)],
) -> PublishWorkflow:
    """Build the publish workflow for the current request."""
    return PublishWorkflow(repository, storage, pending, base_url)
