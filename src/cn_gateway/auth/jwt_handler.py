"""JWT access token creation and verification.

Tokens are issued by the school's auth service; this service shares its
HS256 JWT_SECRET and only verifies them. ``create_access_token`` exists for
operational scripts and tests.

Claims: sub (user id), name, email, role, type="access", iat, exp.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.cn_common.actor import Actor
from src.cn_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_DEFAULT_EXPIRE = timedelta(minutes=30)


def create_access_token(
    user_id: str,
    name: str | None = None,
    email: str | None = None,
    role: str = "student",
    expires_in: timedelta = _DEFAULT_EXPIRE,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, object] = {
        "sub": user_id,
        "type": "access",
        "role": role,
        "iat": now,
        "exp": now + expires_in,
    }
    if name:
        payload["name"] = name
    if email:
        payload["email"] = email
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature invalid, token expired, or not an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    return payload


def actor_from_token(token: str) -> Actor:
    payload = decode_token(token)
    return Actor(
        user_id=str(payload["sub"]),
        name=payload.get("name"),
        email=payload.get("email"),
        role=payload.get("role") or "student",
    )
