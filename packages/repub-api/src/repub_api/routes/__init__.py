# SPDX-License-Identifier: MIT
"""API route modules."""

from . import download, packages, publish

__all__ = ["download", "packages", "publish"]
