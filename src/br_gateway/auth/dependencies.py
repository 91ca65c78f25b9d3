"""FastAPI dependency: get_current_user_id.

Usage in any protected router:
    from src.br_gateway.auth.dependencies import get_current_user_id

    @router.get("/protected")
    async def protected(user_id: Annotated[str, Depends(get_current_user_id)]):
        ...
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from src.br_common.errors import InvalidCredentialsError
from src.br_gateway.auth.jwt_handler import decode_access_token

# tokenUrl points Swagger UI at the external auth service's login endpoint
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> str:
    """Return the caller's user id (the token's `sub` claim). HTTP 401 otherwise."""
    try:
        payload = decode_access_token(token)
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION
    return str(user_id)
