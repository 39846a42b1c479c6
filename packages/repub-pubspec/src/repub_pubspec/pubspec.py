# SPDX-License-Identifier: MIT
"""Parsing of pubspec.yaml documents into typed structures.

Known top-level fields are lifted onto :class:`Pubspec` attributes. Any other
top-level key is kept in :attr:`Pubspec.extra` so the document can be echoed
back faithfully by :meth:`Pubspec.to_dict`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

import yaml

from .validator import ManifestError, PubspecValidationError, validate_required_fields


class PubspecParseError(ManifestError):
    """Raised when pubspec text is not a well-formed YAML mapping."""

    pass


# Typed pubspec keys, in the order they are declared on Pubspec
KNOWN_FIELDS = (
    "name",
    "version",
    "description",
    "homepage",
    "repository",
    "issue_tracker",
    "documentation",
    "dependencies",
    "dev_dependencies",
    "dependency_overrides",
    "environment",
    "executables",
    "publish_to",
    "author",
    "authors",
    "funding",
    "screenshots",
    "topics",
    "platforms",
)


@dataclass
class Pubspec:
    """A parsed pubspec.yaml.

    Attributes:
        name: Package name
        version: Version string
        extra: Unrecognized top-level keys, in document order
        key_order: Top-level keys in the order they appeared in the document
    """

    name: str
    version: str
    description: str | None = None
    homepage: str | None = None
    repository: str | None = None
    issue_tracker: str | None = None
    documentation: str | None = None
    dependencies: dict[str, Any] | None = None
    dev_dependencies: dict[str, Any] | None = None
    dependency_overrides: dict[str, Any] | None = None
    environment: dict[str, Any] | None = None
    executables: dict[str, Any] | None = None
    publish_to: str | None = None
    author: str | None = None
    authors: list[str] | None = None
    funding: list[str] | None = None
    screenshots: list[dict[str, Any]] | None = None
    topics: list[str] | None = None
    platforms: dict[str, Any] | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: tuple[str, ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pubspec":
        """Build a Pubspec from an already-decoded mapping.

        Raises:
            PubspecValidationError: If ``name`` or ``version`` is missing or malformed
        """
        errors = validate_required_fields(data)
        if errors:
            raise PubspecValidationError(errors)

        typed = {key: data[key] for key in KNOWN_FIELDS if key in data}
        extra = {str(key): value for key, value in data.items() if key not in KNOWN_FIELDS}
        return cls(**typed, extra=extra, key_order=tuple(str(key) for key in data))

    def to_dict(self) -> dict[str, Any]:
        """Return the pubspec as a JSON-compatible mapping.

        Typed fields that were present in the source document are merged with
        the extra fields, keeping the original key order. Typed fields set
        programmatically but absent from the document are appended.
        """
        typed = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name in KNOWN_FIELDS and getattr(self, f.name) is not None
        }

        result: dict[str, Any] = {}
        for key in self.key_order:
            if key in typed:
                result[key] = typed.pop(key)
            elif key in self.extra:
                result[key] = self.extra[key]
        result.update(typed)
        for key, value in self.extra.items():
            result.setdefault(key, value)
        return result

    @property
    def sdk_constraint(self) -> str | None:
        """The Dart SDK constraint from the environment section, if any."""
        if not self.environment:
            return None
        sdk = self.environment.get("sdk")
        return sdk if isinstance(sdk, str) else None


def load_pubspec_mapping(text: str) -> dict[str, Any]:
    """Decode pubspec YAML text into a mapping without validating fields.

    Raises:
        PubspecParseError: If the text is empty, not valid YAML, or not a mapping
    """
    if not text or not text.strip():
        raise PubspecParseError("pubspec content is empty")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise PubspecParseError(f"failed to parse YAML: {e}") from e

    if not isinstance(data, dict):
        raise PubspecParseError(
            f"pubspec must be a YAML mapping, got {type(data).__name__}"
        )
    return data


def parse_pubspec(text: str) -> Pubspec:
    """Parse and validate pubspec.yaml text.

    Args:
        text: Raw pubspec.yaml content

    Returns:
        The parsed Pubspec

    Raises:
        PubspecParseError: On malformed YAML
        PubspecValidationError: When required fields are absent or malformed

    Example:
        >>> spec = parse_pubspec("name: foo\\nversion: 1.2.3\\nfoo_custom: true\\n")
        >>> spec.name, spec.version, spec.extra
        ('foo', '1.2.3', {'foo_custom': True})
    """
    return Pubspec.from_dict(load_pubspec_mapping(text))
