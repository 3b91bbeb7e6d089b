from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..errors import Unauthorized
from ..security import verify_token

# auto_error is off so a missing header is answered with our own 401
bearer_scheme = HTTPBearer(scheme_name="Bearer", auto_error=False)


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """
    FastAPI dependency - the verified id of the caller.

    Usage:
        @router.get("/")
        def route(user_id: str = Depends(get_current_user_id)):
            ...
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing bearer token")
    return verify_token(credentials.credentials)
