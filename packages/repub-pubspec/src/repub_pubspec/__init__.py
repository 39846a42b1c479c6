# SPDX-License-Identifier: MIT
"""Archive extraction and pubspec parsing for hosted pub packages.

Example:
    >>> from repub_pubspec import extract_archive, parse_pubspec
    >>>
    >>> contents = extract_archive(archive_bytes)
    >>> pubspec = parse_pubspec(contents.pubspec)
    >>> pubspec.name, pubspec.version
    ('my_package', '1.0.0')
"""

__version__ = "0.1.0"

from .archive import (
    ArchiveContents,
    ArchiveFormatError,
    ManifestNotFoundError,
    extract_archive,
    normalize_entry_name,
)
from .dependencies import Dependency, GitDependency, extract_dependencies, parse_dependency
from .pubspec import KNOWN_FIELDS, Pubspec, PubspecParseError, load_pubspec_mapping, parse_pubspec
from .validator import (
    MAX_PACKAGE_NAME_LENGTH,
    ManifestError,
    PubspecValidationError,
    ValidationErrorDetail,
    is_valid_package_name,
    is_valid_version,
    validate_required_fields,
)

__all__ = [
    # Archive
    "ArchiveContents",
    "ArchiveFormatError",
    "ManifestNotFoundError",
    "extract_archive",
    "normalize_entry_name",
    # Pubspec
    "KNOWN_FIELDS",
    "Pubspec",
    "PubspecParseError",
    "load_pubspec_mapping",
    "parse_pubspec",
    # Dependencies
    "Dependency",
    "GitDependency",
    "extract_dependencies",
    "parse_dependency",
    # Validation
    "MAX_PACKAGE_NAME_LENGTH",
    "ManifestError",
    "PubspecValidationError",
    "ValidationErrorDetail",
    "is_valid_package_name",
    "is_valid_version",
    "validate_required_fields",
]
