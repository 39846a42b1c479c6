# SPDX-License-Identifier: MIT
"""Authentication handlers."""

from .tokens import (
    READ_SCOPE,
    WRITE_SCOPE,
    AuthenticatedUser,
    authenticate_token,
    generate_api_token,
    get_current_user,
    parse_authorization_header,
    require_scope,
)

__all__ = [
    "READ_SCOPE",
    "WRITE_SCOPE",
    "AuthenticatedUser",
    "authenticate_token",
    "generate_api_token",
    "get_current_user",
    "parse_authorization_header",
    "require_scope",
]
