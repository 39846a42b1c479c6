# SPDX-License-Identifier: MIT
"""Package publish endpoints (request target, upload, finalize)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from ..auth import WRITE_SCOPE, AuthenticatedUser, require_scope
from ..deps import get_publish_workflow
from ..middleware.errors import MalformedRequestError
from ..models.responses import NewVersionResponse, SuccessResponse
from ..services.publish import PublishWorkflow

logger = logging.getLogger(__name__)

router = APIRouter()

# Allowance for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD = 64 * 1024


@router.get("/api/packages/versions/new", response_model=NewVersionResponse)
async def new_version(
    user: Annotated[AuthenticatedUser, Depends(require_scope(WRITE_SCOPE))],
    workflow: Annotated[PublishWorkflow, Depends(get_publish_workflow)],
) -> NewVersionResponse:
    """Return the URL the client should upload the package archive to."""
    url, fields = workflow.request_upload_target()
    return NewVersionResponse(url=url, fields=fields)


async def read_archive_field(request: Request, max_bytes: int) -> bytes:
    """Read the ``file`` field of a multipart upload, bounded to ``max_bytes``.

    Raises:
        MalformedRequestError: If the body is not multipart, lacks the field,
            or exceeds the size limit
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > max_bytes + MULTIPART_OVERHEAD:
            raise MalformedRequestError(f"Upload exceeds the maximum size of {max_bytes} bytes")

    try:
        form = await request.form(max_files=1)
    except (HTTPException, MultiPartException) as e:
        detail = getattr(e, "detail", None) or getattr(e, "message", str(e))
        raise MalformedRequestError(f"Failed to parse multipart body: {detail}") from e

    try:
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise MalformedRequestError("Missing 'file' field in multipart body")

        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise MalformedRequestError(f"Upload exceeds the maximum size of {max_bytes} bytes")
        return data
    finally:
        await form.close()


@router.post("/api/packages/versions/new", status_code=204)
async def upload_archive(
    request: Request,
    user: Annotated[AuthenticatedUser, Depends(require_scope(WRITE_SCOPE))],
    workflow: Annotated[PublishWorkflow, Depends(get_publish_workflow)],
) -> Response:
    """Stage an uploaded archive and redirect the client to the finalize URL."""
    max_bytes = request.app.state.config.upload.max_upload_bytes
    archive = await read_archive_field(request, max_bytes)

    finalize_url = workflow.stage_upload(archive, user.user_id)
    return Response(status_code=204, headers={"Location": finalize_url})


@router.get("/api/packages/versions/newUploadFinish", response_model=SuccessResponse)
async def finalize_upload(
    upload_id: Annotated[str, Query(min_length=1)],
    user: Annotated[AuthenticatedUser, Depends(require_scope(WRITE_SCOPE))],
    workflow: Annotated[PublishWorkflow, Depends(get_publish_workflow)],
) -> SuccessResponse:
    """Publish the staged upload identified by ``upload_id``."""
    result = await workflow.finalize(upload_id)
    return SuccessResponse.create(result.message)
