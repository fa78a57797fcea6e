"""Request dependencies, including the session guard."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from schemabuilder.api.container import ServiceContainer
from schemabuilder.core.exceptions import Unauthenticated
from schemabuilder.core.logging import get_logger
from schemabuilder.models.user import User

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


async def _resolve(request: Request, token: str, container: ServiceContainer) -> User:
    user = await container.identity_provider.resolve(token)
    request.state.user = user
    request.state.token = token
    return user


async def require_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> User:
    """Resolve the bearer credential to a user or fail with 401."""
    if credentials is None:
        if request.headers.get("Authorization"):
            raise Unauthenticated("Invalid authorization header format")
        raise Unauthenticated("Authorization header required")
    return await _resolve(request, credentials.credentials, container)


async def optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    container: ServiceContainer = Depends(get_container),
) -> Optional[User]:
    """Like ``require_user`` but lets anonymous and badly authenticated requests through."""
    if credentials is None:
        return None
    try:
        return await _resolve(request, credentials.credentials, container)
    except Unauthenticated as e:
        logger.debug("Ignoring invalid optional credential", reason=e.kind)
        return None


async def bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None:
        raise Unauthenticated("Authorization header required")
    return credentials.credentials
