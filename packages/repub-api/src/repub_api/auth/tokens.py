# SPDX-License-Identifier: MIT
"""Static bearer token authentication."""

import logging
import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, Request

from ..config import AuthConfig
from ..middleware.errors import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

READ_SCOPE = "read"
WRITE_SCOPE = "write"

TOKEN_PREFIX = "repub_"


@dataclass
class AuthenticatedUser:
    """The owner of a configured token.

    ``user_id`` is the token's configured name and doubles as the uploader
    identity recorded on published versions.
    """

    user_id: str
    scopes: list[str]


def generate_api_token() -> str:
    """Generate a new random API token for an operator to configure."""
    return f"{TOKEN_PREFIX}{secrets.token_urlsafe(32)}"


def parse_authorization_header(auth_header: str | None) -> str | None:
    """Extract the token from a ``Bearer <token>`` Authorization header.

    Returns:
        The token, or None if the header is missing or uses another scheme.
    """
    if not auth_header:
        return None

    scheme, _, token = auth_header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None

    token = token.strip()
    return token or None


def _matches(candidate: bytes, expected: str) -> bool:
    return secrets.compare_digest(candidate, expected.encode("utf-8"))


def authenticate_token(token: str, auth: AuthConfig) -> AuthenticatedUser | None:
    """Resolve a token against the configured read and write tokens.

    Write tokens satisfy read checks as well.
    """
    candidate = token.encode("utf-8")

    for name, value in auth.write_tokens.items():
        if _matches(candidate, value):
            return AuthenticatedUser(user_id=name, scopes=[READ_SCOPE, WRITE_SCOPE])

    for name, value in auth.read_tokens.items():
        if _matches(candidate, value):
            return AuthenticatedUser(user_id=name, scopes=[READ_SCOPE])

    return None


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AuthenticatedUser:
    """FastAPI dependency to get the current authenticated user.

    Raises:
        UnauthorizedError: If no valid bearer token is provided
    """
    token = parse_authorization_header(authorization)
    if token is None:
        raise UnauthorizedError("Please provide a bearer token")

    user = authenticate_token(token, request.app.state.config.auth)
    if user is None:
        logger.debug("Rejected unknown token for %s", request.url.path)
        raise UnauthorizedError("Invalid token")
    return user


def require_scope(required_scope: str):
    """Create a dependency that requires a specific scope.

    Usage:
        @router.get("/api/packages/versions/new")
        async def new_version(user: Annotated[AuthenticatedUser, Depends(require_scope("write"))]):
            ...
    """

    async def check_scope(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if required_scope not in user.scopes:
            raise ForbiddenError(f"Token lacks the '{required_scope}' scope")
        return user

    return check_scope
