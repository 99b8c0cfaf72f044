"""FastAPI dependencies that turn a Bearer token into an Actor.

Usage in any router:
    from src.cn_gateway.auth.dependencies import get_current_actor

    @router.get("/protected")
    async def protected(actor: Actor = Depends(get_current_actor)):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from config.settings import settings
from src.cn_common.actor import Actor
from src.cn_common.errors import ForbiddenError, InvalidCredentialsError
from src.cn_gateway.auth.jwt_handler import actor_from_token

# tokenUrl points at the school auth service (used for the Swagger "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_optional_actor(token: str | None = Depends(oauth2_scheme)) -> Actor | None:
    """Actor for a valid token, None when no token was sent.

    A token that is present but invalid is still rejected with 401.
    """
    if not token:
        return None
    try:
        return actor_from_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None


async def get_current_actor(actor: Actor | None = Depends(get_optional_actor)) -> Actor:
    if actor is None:
        raise _CREDENTIALS_EXCEPTION
    return actor


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """Verify the caller carries the admin role (canteen staff)."""
    if actor.role != settings.ADMIN_ROLE:
        raise ForbiddenError()
    return actor
