# SPDX-License-Identifier: MIT
"""Normalization of pubspec dependency declarations.

A dependency may be declared as a bare version constraint string, as null
(any version), or as a mapping describing a hosted, git, path or SDK source.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .pubspec import Pubspec
from .validator import PubspecValidationError, ValidationErrorDetail


@dataclass
class GitDependency:
    """Git source of a dependency."""

    url: str
    ref: str | None = None
    path: str | None = None


@dataclass
class Dependency:
    """A normalized dependency declaration.

    Attributes:
        version: Version constraint, if any
        hosted: Hosted repository URL (or name) the dependency is fetched from
        git: Git source details
        path: Local path source
        sdk: SDK name for SDK dependencies (e.g. "flutter")
        dev: True for entries from dev_dependencies
        extra: Unrecognized keys of a mapping declaration
    """

    version: str | None = None
    hosted: str | None = None
    git: GitDependency | None = None
    path: str | None = None
    sdk: str | None = None
    dev: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


def _parse_git(value: Any) -> GitDependency | None:
    if isinstance(value, str):
        return GitDependency(url=value)
    if isinstance(value, dict) and isinstance(value.get("url"), str):
        ref = value.get("ref")
        path = value.get("path")
        return GitDependency(
            url=value["url"],
            ref=ref if isinstance(ref, str) else None,
            path=path if isinstance(path, str) else None,
        )
    return None


def _parse_hosted(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, dict):
        url = value.get("url") or value.get("name")
        return url if isinstance(url, str) else None
    return None


def parse_dependency(name: str, spec: Any, dev: bool = False) -> Dependency:
    """Normalize a single dependency declaration.

    Raises:
        PubspecValidationError: If the declaration is neither null, a string,
            nor a mapping
    """
    if spec is None:
        return Dependency(dev=dev)

    if isinstance(spec, str):
        return Dependency(version=spec, dev=dev)

    if not isinstance(spec, dict):
        raise PubspecValidationError(
            [
                ValidationErrorDetail(
                    field=f"dependencies.{name}",
                    message=f"unsupported dependency format for {name}",
                    value=spec,
                )
            ]
        )

    dependency = Dependency(dev=dev)
    for key, value in spec.items():
        if key == "version" and isinstance(value, str):
            dependency.version = value
        elif key == "hosted":
            dependency.hosted = _parse_hosted(value)
        elif key == "git":
            dependency.git = _parse_git(value)
        elif key == "path" and isinstance(value, str):
            dependency.path = value
        elif key == "sdk" and isinstance(value, str):
            dependency.sdk = value
        else:
            dependency.extra[str(key)] = value
    return dependency


def extract_dependencies(pubspec: Pubspec) -> dict[str, Dependency]:
    """Collect regular and dev dependencies of a pubspec.

    Regular dependencies take precedence over dev dependencies of the same name.
    """
    dependencies: dict[str, Dependency] = {}

    for name, spec in (pubspec.dev_dependencies or {}).items():
        dependencies[str(name)] = parse_dependency(str(name), spec, dev=True)

    for name, spec in (pubspec.dependencies or {}).items():
        dependencies[str(name)] = parse_dependency(str(name), spec)

    return dependencies
