"""
Bearer token authentication for the catalog endpoints.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, Request

from api.deps import Services, get_services
from catalog.errors import AuthenticationError
from catalog.schemas import UserResponse
from catalog.security import InvalidTokenError

logger = structlog.get_logger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Pull the token out of an ``Authorization`` header value.

    Raises:
        AuthenticationError: Header missing or not a bearer credential
    """
    if not authorization:
        raise AuthenticationError("authorization header is missing")

    if not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("invalid authorization format")

    return authorization[len(BEARER_PREFIX):]


async def require_user(
    request: Request,
    authorization: Optional[str] = Header(None, description="Bearer identity token"),
    services: Services = Depends(get_services),
) -> UserResponse:
    """
    Authenticate the request from its bearer token.

    The token subject must still be a registered user. The resolved identity
    is kept on ``request.state.user``.

    Returns:
        Identity of the caller

    Raises:
        AuthenticationError: Missing header, wrong scheme or untrusted token
        NotFoundError: The token subject no longer exists
    """
    token = extract_bearer_token(authorization)

    try:
        claims = services.token_service.verify(token)
    except InvalidTokenError as e:
        logger.warning("Invalid token attempted", path=request.url.path, error=str(e))
        raise AuthenticationError("invalid token") from e

    user = await services.users.get_by_username(claims.subject)
    request.state.user = user
    return user
