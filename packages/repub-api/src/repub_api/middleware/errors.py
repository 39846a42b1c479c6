# SPDX-License-Identifier: MIT
"""Error handling middleware and exception classes."""

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

PUB_MEDIA_TYPE = "application/vnd.pub.v2+json"


class PubJSONResponse(JSONResponse):
    """JSON response using the pub API v2 media type."""

    media_type = PUB_MEDIA_TYPE


class ErrorCode:
    """Standard API error codes."""

    INVALID_ARCHIVE = "INVALID_ARCHIVE"
    MANIFEST_NOT_FOUND = "MANIFEST_NOT_FOUND"
    INVALID_PUBSPEC = "INVALID_PUBSPEC"
    INVALID_MANIFEST = "INVALID_MANIFEST"
    UNAUTHORIZED_UPLOADER = "UNAUTHORIZED_UPLOADER"
    VERSION_EXISTS = "VERSION_EXISTS"
    UPLOAD_NOT_FOUND = "UPLOAD_NOT_FOUND"
    INVALID_REQUEST = "INVALID_REQUEST"
    STORAGE_ERROR = "STORAGE_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    NO_VERSIONS = "NO_VERSIONS"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# HTTP status codes for each error
ERROR_STATUS_CODES = {
    ErrorCode.INVALID_ARCHIVE: 400,
    ErrorCode.MANIFEST_NOT_FOUND: 400,
    ErrorCode.INVALID_PUBSPEC: 400,
    ErrorCode.INVALID_MANIFEST: 400,
    ErrorCode.UNAUTHORIZED_UPLOADER: 403,
    ErrorCode.VERSION_EXISTS: 400,
    ErrorCode.UPLOAD_NOT_FOUND: 400,
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.STORAGE_ERROR: 500,
    ErrorCode.PERSISTENCE_ERROR: 500,
    ErrorCode.PACKAGE_NOT_FOUND: 404,
    ErrorCode.VERSION_NOT_FOUND: 404,
    ErrorCode.NO_VERSIONS: 500,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.INTERNAL_ERROR: 500,
}


@dataclass
class ErrorDetail:
    """Detailed error information for a specific field or issue."""

    field: str
    error: str
    value: Any = None


@dataclass
class APIError(Exception):
    """Base API exception with structured error response.

    Attributes:
        code: Error code from ErrorCode class
        message: Human-readable error message
        details: List of detailed error information
    """

    code: str
    message: str
    details: list[ErrorDetail] = field(default_factory=list)

    def __str__(self) -> str:
        return self.message

    @property
    def status_code(self) -> int:
        """Get HTTP status code for this error."""
        return ERROR_STATUS_CODES.get(self.code, 500)

    def to_response(self) -> dict:
        """Convert to API response format."""
        response = {
            "error": {
                "code": self.code,
                "message": self.message,
            }
        }
        if self.details:
            response["error"]["details"] = [
                {"field": d.field, "error": d.error} for d in self.details
            ]
        return response


class InvalidArchiveError(APIError):
    """Uploaded bytes are not a readable .tar.gz archive."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.INVALID_ARCHIVE, message=message)


class ManifestNotFoundError(APIError):
    """Archive has no root-level pubspec.yaml."""

    def __init__(self, message: str = "pubspec.yaml not found in archive"):
        super().__init__(code=ErrorCode.MANIFEST_NOT_FOUND, message=message)


class InvalidPubspecError(APIError):
    """pubspec.yaml is not well-formed YAML."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.INVALID_PUBSPEC, message=message)


class InvalidManifestError(APIError):
    """Manifest validation failed."""

    def __init__(self, message: str, details: list[ErrorDetail] | None = None):
        super().__init__(
            code=ErrorCode.INVALID_MANIFEST,
            message=message,
            details=details or [],
        )


class UnauthorizedUploaderError(APIError):
    """Uploader is not in the package's authorized uploader set."""

    def __init__(self, package_name: str, uploader: str):
        super().__init__(
            code=ErrorCode.UNAUTHORIZED_UPLOADER,
            message=f"Uploader '{uploader}' is unauthorized to upload to package '{package_name}'",
        )


class VersionExistsError(APIError):
    """Version already exists (immutability violation)."""

    def __init__(self, package_name: str, version: str):
        super().__init__(
            code=ErrorCode.VERSION_EXISTS,
            message=f"Version '{version}' of package '{package_name}' already exists",
        )


class UploadNotFoundError(APIError):
    """Finalize token does not match a staged upload."""

    def __init__(self, message: str = "Upload not found or already processed"):
        super().__init__(code=ErrorCode.UPLOAD_NOT_FOUND, message=message)


class MalformedRequestError(APIError):
    """Request body or parameters could not be understood."""

    def __init__(self, message: str, details: list[ErrorDetail] | None = None):
        super().__init__(
            code=ErrorCode.INVALID_REQUEST,
            message=message,
            details=details or [],
        )


class StorageError(APIError):
    """Blob storage I/O failed."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.STORAGE_ERROR, message=message)


class PersistenceError(APIError):
    """Database I/O failed."""

    def __init__(self, message: str):
        super().__init__(code=ErrorCode.PERSISTENCE_ERROR, message=message)


class PackageNotFoundError(APIError):
    """Package does not exist."""

    def __init__(self, package_name: str):
        super().__init__(
            code=ErrorCode.PACKAGE_NOT_FOUND,
            message=f"Package '{package_name}' not found",
        )


class VersionNotFoundError(APIError):
    """Version does not exist."""

    def __init__(self, package_name: str, version: str):
        super().__init__(
            code=ErrorCode.VERSION_NOT_FOUND,
            message=f"Version '{version}' of package '{package_name}' not found",
        )


class NoVersionsError(APIError):
    """Package record exists without any versions."""

    def __init__(self, package_name: str):
        super().__init__(
            code=ErrorCode.NO_VERSIONS,
            message=f"Package '{package_name}' has no versions",
        )


class UnauthorizedError(APIError):
    """Authentication required."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            code=ErrorCode.UNAUTHORIZED,
            message=message,
        )


class ForbiddenError(APIError):
    """Not authorized for this operation."""

    def __init__(self, message: str = "Not authorized for this operation"):
        super().__init__(
            code=ErrorCode.FORBIDDEN,
            message=message,
        )


def _www_authenticate(message: str) -> str:
    escaped = message.replace("\\", "\\\\").replace('"', '\\"')
    return f'Bearer realm="pub", message="{escaped}"'


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Handle APIError exceptions."""
    headers = {}
    if isinstance(exc, UnauthorizedError):
        headers["WWW-Authenticate"] = _www_authenticate(exc.message)

    if exc.status_code >= 500:
        logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.code)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.code)

    return PubJSONResponse(
        status_code=exc.status_code,
        content=exc.to_response(),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as INVALID_REQUEST errors."""
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        details.append(ErrorDetail(field=location, error=error.get("msg", "invalid value")))

    error = MalformedRequestError("Invalid request parameters", details=details)
    return await api_error_handler(request, error)


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error for %s %s", request.method, request.url.path, exc_info=exc)
    return PubJSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred",
            }
        },
    )


def add_error_handlers(app: FastAPI) -> None:
    """Register error handlers with the FastAPI application."""
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)
