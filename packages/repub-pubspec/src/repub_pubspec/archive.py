# SPDX-License-Identifier: MIT
"""Extraction of pubspec, README and CHANGELOG files from package archives.

Package archives are gzip-compressed tarballs. Entries are commonly nested
under a single ``{package}-{version}/`` directory; that first path segment is
stripped before matching file names.
"""

from __future__ import annotations

import tarfile
import zlib
from dataclasses import dataclass
from io import BytesIO

from .validator import ManifestError

PUBSPEC_FILENAME = "pubspec.yaml"
README_FILENAME = "readme.md"
CHANGELOG_FILENAME = "changelog.md"


class ArchiveFormatError(ManifestError):
    """Raised when archive bytes are not a readable gzip-compressed tarball."""

    pass


class ManifestNotFoundError(ManifestError):
    """Raised when an archive has no root-level pubspec.yaml."""

    def __init__(self, message: str = "pubspec.yaml not found in archive"):
        super().__init__(message)


@dataclass(frozen=True)
class ArchiveContents:
    """Files of interest extracted from a package archive.

    Attributes:
        pubspec: Raw text of the root-level pubspec.yaml
        readme: README.md text, if present anywhere in the archive
        changelog: CHANGELOG.md text, if present anywhere in the archive
    """

    pubspec: str
    readme: str | None = None
    changelog: str | None = None


def normalize_entry_name(name: str) -> str:
    """Return an entry's path relative to the package root.

    A leading ``./`` is removed, then the first path segment is dropped when
    the entry has more than one segment.

    Example:
        >>> normalize_entry_name("./foo-1.0.0/lib/foo.dart")
        'lib/foo.dart'
        >>> normalize_entry_name("pubspec.yaml")
        'pubspec.yaml'
    """
    if name.startswith("./"):
        name = name[2:]

    parts = name.split("/")
    if len(parts) > 1:
        name = "/".join(parts[1:])
    return name


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def extract_archive(archive: bytes) -> ArchiveContents:
    """Extract the pubspec and optional README/CHANGELOG from an archive.

    The tarball is read as a stream; each entry is consumed fully before the
    next one. Only the first pubspec.yaml at the package root is kept. README
    and CHANGELOG files match at any depth, and the last one read wins.

    Args:
        archive: Raw bytes of a ``.tar.gz`` package archive

    Returns:
        ArchiveContents with the extracted texts

    Raises:
        ArchiveFormatError: If the bytes are not a valid compressed tar stream
        ManifestNotFoundError: If there is no root-level pubspec.yaml
    """
    pubspec: str | None = None
    readme: str | None = None
    changelog: str | None = None

    try:
        with tarfile.open(fileobj=BytesIO(archive), mode="r|gz") as tar:
            for member in tar:
                if member.isdir():
                    continue

                relative = normalize_entry_name(member.name)
                lowered = relative.lower()
                basename = lowered.rsplit("/", 1)[-1]

                if lowered == PUBSPEC_FILENAME:
                    if pubspec is not None:
                        continue
                    content = _read_member(tar, member)
                    if content is not None:
                        pubspec = content
                elif basename == README_FILENAME:
                    content = _read_member(tar, member)
                    if content is not None:
                        readme = content
                elif basename == CHANGELOG_FILENAME:
                    content = _read_member(tar, member)
                    if content is not None:
                        changelog = content
    except (tarfile.TarError, OSError, EOFError, zlib.error) as e:
        raise ArchiveFormatError(f"invalid package archive: {e}") from e

    if pubspec is None:
        raise ManifestNotFoundError()

    return ArchiveContents(pubspec=pubspec, readme=readme, changelog=changelog)


def _read_member(tar: tarfile.TarFile, member: tarfile.TarInfo) -> str | None:
    """Read a regular file entry as text; other entry types yield None."""
    handle = tar.extractfile(member)
    if handle is None:
        return None
    with handle:
        return _decode(handle.read())
