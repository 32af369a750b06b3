from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from salesdesk.core.config import API_PREFIX
from salesdesk.core.errors import AuthError
from salesdesk.core.request_context import set_request_context
from salesdesk.services.auth import decode_access_token

# Swagger "Authorize" posts the OAuth2 password form here.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{API_PREFIX}/users/token", auto_error=False)


def get_current_username(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> str:
    """Reads the bearer token and returns the username it asserts."""
    if not token:
        raise AuthError("Missing bearer token")

    username = decode_access_token(token)
    request.state.username = username
    set_request_context(username=username)
    return username
