"""
Operator authentication.

Uploading and listing require the single configured username/password pair
over HTTP Basic. Reading a paste needs only its identifier.
"""

import base64
import binascii
import logging
import secrets
from typing import Optional

from fastapi import Request
from fastapi.security import HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param

from paste_config import ServerConfig
from paste_errors import AuthError

logger = logging.getLogger("pastebinit")


def authorize(config: ServerConfig, username: str, password: str) -> bool:
    """Check credentials against the configured pair in constant time"""
    user_ok = secrets.compare_digest(username.encode("utf-8"), config.username.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), config.password.encode("utf-8"))
    return user_ok and pass_ok


def parse_basic_credentials(authorization: Optional[str]) -> Optional[HTTPBasicCredentials]:
    """
    Decode an HTTP Basic Authorization header.

    The payload is decoded as UTF-8 so non-ASCII credentials work. Returns
    None when the header is missing, uses another scheme or is malformed.
    """
    scheme, param = get_authorization_scheme_param(authorization)
    if not authorization or scheme.lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None
    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return HTTPBasicCredentials(username=username, password=password)


async def require_operator(request: Request) -> str:
    """FastAPI dependency guarding operator-only endpoints; returns the username"""
    config: ServerConfig = request.app.state.config
    client_ip = request.client.host if request.client else "unknown"
    path = request.url.path

    credentials = parse_basic_credentials(request.headers.get("Authorization"))
    if credentials is None:
        logger.warning(f"Missing or malformed credentials from {client_ip} for {path}")
        raise AuthError(realm=config.base_uri)

    if not authorize(config, credentials.username, credentials.password):
        logger.warning(f"Invalid credentials from {client_ip} for {path}")
        raise AuthError(realm=config.base_uri)

    return credentials.username
