from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from schoolportal.auth.schemas import Principal
from schoolportal.auth.security import decode_access_token
from schoolportal.core.enums import Role


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_principal(token: str = Depends(oauth2_scheme)) -> Principal:
    """Resolve the request principal from the access token issued by the sign-in service."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    principal_id = payload.get("user_id") or payload.get("sub")
    if not principal_id:
        raise credentials_exception

    # An unknown role is not an authentication failure: the principal is kept and every scope denies.
    return Principal(id=str(principal_id), role=Role.parse(payload.get("role")))
