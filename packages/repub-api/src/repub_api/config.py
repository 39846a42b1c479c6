# SPDX-License-Identifier: MIT
"""API server configuration."""

import os
from dataclasses import dataclass, field
from typing import Optional

ENV_PREFIX = "REPUB_"
READ_TOKEN_PREFIX = f"{ENV_PREFIX}READ_TOKEN_"
WRITE_TOKEN_PREFIX = f"{ENV_PREFIX}WRITE_TOKEN_"

STORAGE_BACKENDS = ("local", "s3")
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


class ConfigError(Exception):
    """Raised when the server configuration is unusable."""

    pass


@dataclass
class DatabaseConfig:
    """Database connection configuration."""

    url: str = "sqlite:///./repub.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass
class StorageConfig:
    """Package archive storage configuration."""

    backend: str = "local"  # "local" or "s3"
    local_path: str = "./storage"
    s3_bucket: Optional[str] = None
    s3_prefix: str = "packages"
    s3_region: Optional[str] = None


@dataclass
class AuthConfig:
    """Static bearer tokens, keyed by the identity of their owner."""

    read_tokens: dict[str, str] = field(default_factory=dict)
    write_tokens: dict[str, str] = field(default_factory=dict)


@dataclass
class UploadConfig:
    """Upload limits."""

    max_upload_bytes: int = 32 * 1024 * 1024


@dataclass
class APIConfig:
    """Main API server configuration."""

    # Server settings
    title: str = "repub"
    description: str = "Hosted Dart package repository"
    version: str = "0.1.0"
    debug: bool = False
    base_url: Optional[str] = None
    log_level: str = "info"

    # Sub-configurations
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)

    docs_url: str = "/docs"
    openapi_url: str = "/openapi.json"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "APIConfig":
        """Create configuration from environment variables."""
        env = os.environ if environ is None else environ
        config = cls()

        # Database
        if db_url := env.get("REPUB_DATABASE_URL"):
            config.database.url = db_url
        config.database.echo = _flag(env.get("REPUB_DATABASE_ECHO"))

        # Storage
        if storage_backend := env.get("REPUB_STORAGE_BACKEND"):
            config.storage.backend = storage_backend.lower()
        if local_path := env.get("REPUB_STORAGE_LOCAL_PATH"):
            config.storage.local_path = local_path
        if s3_bucket := env.get("REPUB_STORAGE_S3_BUCKET"):
            config.storage.s3_bucket = s3_bucket
        if s3_prefix := env.get("REPUB_STORAGE_S3_PREFIX"):
            config.storage.s3_prefix = s3_prefix
        if s3_region := env.get("REPUB_STORAGE_S3_REGION"):
            config.storage.s3_region = s3_region

        # Server
        if base_url := env.get("REPUB_BASE_URL"):
            config.base_url = base_url.rstrip("/")
        if log_level := env.get("REPUB_LOG_LEVEL"):
            config.log_level = log_level.lower()
        if max_upload := env.get("REPUB_MAX_UPLOAD_BYTES"):
            try:
                config.upload.max_upload_bytes = int(max_upload)
            except ValueError as e:
                raise ConfigError(f"REPUB_MAX_UPLOAD_BYTES must be an integer, got {max_upload!r}") from e
        config.debug = _flag(env.get("REPUB_DEBUG"))

        # Auth
        config.auth.read_tokens = _tokens_from_env(env, READ_TOKEN_PREFIX)
        config.auth.write_tokens = _tokens_from_env(env, WRITE_TOKEN_PREFIX)

        return config

    def validate(self) -> None:
        """Check that the configuration can serve requests.

        Raises:
            ConfigError: If no token is configured or storage settings are inconsistent
        """
        if not self.auth.read_tokens and not self.auth.write_tokens:
            raise ConfigError(
                f"at least one {READ_TOKEN_PREFIX}* or {WRITE_TOKEN_PREFIX}* "
                "environment variable is required"
            )
        if self.storage.backend not in STORAGE_BACKENDS:
            raise ConfigError(f"unknown storage backend: {self.storage.backend}")
        if self.storage.backend == "s3" and not self.storage.s3_bucket:
            raise ConfigError("REPUB_STORAGE_S3_BUCKET is required for the s3 backend")
        if self.upload.max_upload_bytes <= 0:
            raise ConfigError("max upload size must be positive")


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


def _tokens_from_env(env, prefix: str) -> dict[str, str]:
    """Collect ``{prefix}<NAME>=<token>`` variables as ``{name: token}``."""
    tokens = {}
    for key, value in env.items():
        if key.startswith(prefix) and value:
            name = key[len(prefix):].lower()
            if name:
                tokens[name] = value
    return tokens
