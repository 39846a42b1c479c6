# SPDX-License-Identifier: MIT
"""Hosted Dart package repository server."""

__version__ = "0.1.0"

from .app import create_app
from .config import (
    APIConfig,
    AuthConfig,
    ConfigError,
    DatabaseConfig,
    StorageConfig,
    UploadConfig,
)
from .middleware.errors import (
    APIError,
    ErrorCode,
    ForbiddenError,
    InvalidArchiveError,
    InvalidManifestError,
    InvalidPubspecError,
    MalformedRequestError,
    ManifestNotFoundError,
    NoVersionsError,
    PackageNotFoundError,
    PersistenceError,
    StorageError,
    UnauthorizedError,
    UnauthorizedUploaderError,
    UploadNotFoundError,
    VersionExistsError,
    VersionNotFoundError,
)

__all__ = [
    # App factory
    "create_app",
    # Configuration
    "APIConfig",
    "AuthConfig",
    "ConfigError",
    "DatabaseConfig",
    "StorageConfig",
    "UploadConfig",
    # Errors
    "APIError",
    "ErrorCode",
    "ForbiddenError",
    "InvalidArchiveError",
    "InvalidManifestError",
    "InvalidPubspecError",
    "MalformedRequestError",
    "ManifestNotFoundError",
    "NoVersionsError",
    "PackageNotFoundError",
    "PersistenceError",
    "StorageError",
    "UnauthorizedError",
    "UnauthorizedUploaderError",
    "UploadNotFoundError",
    "VersionExistsError",
    "VersionNotFoundError",
]
