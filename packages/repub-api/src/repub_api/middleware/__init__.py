# SPDX-License-Identifier: MIT
"""API middleware components."""

from .errors import PUB_MEDIA_TYPE, APIError, PubJSONResponse, add_error_handlers

__all__ = ["APIError", "PUB_MEDIA_TYPE", "PubJSONResponse", "add_error_handlers"]
