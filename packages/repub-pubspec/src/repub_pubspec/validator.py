# SPDX-License-Identifier: MIT
"""Validation of pubspec package names and version strings.

The checks here are intentionally shallow: a package name must be a valid
identifier of at most 64 characters, and a version must have at least three
dot-separated segments that each start with a digit (segments carrying a
pre-release or build suffix are accepted as-is). Full semantic-version
grammar is not enforced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

MAX_PACKAGE_NAME_LENGTH = 64


class ManifestError(Exception):
    """Base exception for archive and pubspec errors."""

    pass


@dataclass(frozen=True, slots=True)
class ValidationErrorDetail:
    """Details about a single validation error.

    Attributes:
        field: Name of the invalid pubspec field (e.g., "name" or "version")
        message: Human-readable error message
        value: The invalid value that caused the error (if available)
    """

    field: str
    message: str
    value: Any = None


class PubspecValidationError(ManifestError):
    """Raised when required pubspec fields are missing or malformed.

    Attributes:
        errors: List of validation errors with field names and messages
    """

    def __init__(self, errors: list[ValidationErrorDetail]):
        self.errors = errors
        message = f"Pubspec validation failed with {len(errors)} error(s)"
        if errors:
            message += f": {errors[0].message}"
        super().__init__(message)


def _is_ascii_letter(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z")


def is_valid_package_name(name: str) -> bool:
    """Check whether a package name follows hosted-repository conventions.

    Names start with an ASCII letter or underscore, continue with ASCII
    letters, digits or underscores, and are at most 64 characters long.

    Example:
        >>> is_valid_package_name("http_client")
        True
        >>> is_valid_package_name("9lives")
        False
    """
    if not name or len(name) > MAX_PACKAGE_NAME_LENGTH:
        return False

    if not (_is_ascii_letter(name[0]) or name[0] == "_"):
        return False

    return all(_is_ascii_letter(c) or ("0" <= c <= "9") or c == "_" for c in name)


def is_valid_version(version: str) -> bool:
    """Check a version string with the permissive three-segment heuristic.

    Example:
        >>> is_valid_version("1.0.0-dev.1+build.5")
        True
        >>> is_valid_version("1.0")
        False
    """
    if not version:
        return False

    parts = version.split(".")
    if len(parts) < 3:
        return False

    for part in parts:
        if not part:
            return False
        # Pre-release and build metadata segments
        if "-" in part or "+" in part:
            continue
        if not ("0" <= part[0] <= "9"):
            return False

    return True


def validate_required_fields(data: dict[str, Any]) -> list[ValidationErrorDetail]:
    """Validate the required ``name`` and ``version`` fields of a pubspec mapping.

    Returns:
        List of validation errors (empty if valid)
    """
    errors: list[ValidationErrorDetail] = []

    name = data.get("name")
    if name is None or name == "":
        errors.append(ValidationErrorDetail(field="name", message="package name is required"))
    elif not isinstance(name, str):
        errors.append(
            ValidationErrorDetail(
                field="name",
                message=f"package name must be a string, got {type(name).__name__}",
                value=name,
            )
        )
    elif not is_valid_package_name(name):
        errors.append(
            ValidationErrorDetail(
                field="name", message=f"invalid package name format: {name}", value=name
            )
        )

    version = data.get("version")
    if version is None or version == "":
        errors.append(
            ValidationErrorDetail(field="version", message="package version is required")
        )
    elif not isinstance(version, str):
        errors.append(
            ValidationErrorDetail(
                field="version",
                message=f"package version must be a string, got {type(version).__name__}",
                value=version,
            )
        )
    elif not is_valid_version(version):
        errors.append(
            ValidationErrorDetail(
                field="version", message=f"invalid version format: {version}", value=version
            )
        )

    return errors
