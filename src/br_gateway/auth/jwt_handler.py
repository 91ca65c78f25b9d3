"""JWT access-token verification.

Tokens are issued by the external auth service with the shared JWT_SECRET
(HS256). This service only verifies them; it never signs.
"""

from jose import JWTError, jwt

from config.settings import settings
from src.br_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"


def decode_access_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Returns the payload with at least {"sub": ..., "type": "access"}.
    Raises InvalidCredentialsError if the token is invalid, expired, or not
    an access token.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type", "access") != "access":
        raise InvalidCredentialsError()
    return payload
