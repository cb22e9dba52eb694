from __future__ import annotations

import logging

from fastapi import Request

from orglogin.security.config import AuthConfig

logger = logging.getLogger(__name__)


def extract_session_token(request: Request, config: AuthConfig) -> str | None:
    """
    Read the session token from the configured header.

    - Input: `Token: <token>` or `Token: Bearer <token>`
    - Missing or empty header: None (the operation decides whether that is an error)
    """

    header_name = config.headers.token_header
    raw = request.headers.get(header_name)
    if not raw:
        logger.debug("No session token header path=%s method=%s", request.url.path, request.method)
        return None

    token = raw.strip()
    scheme, _, rest = token.partition(" ")
    if config.headers.token_prefix and scheme == config.headers.token_prefix:
        token = rest.strip()

    if not token:
        logger.info("Empty session token path=%s method=%s", request.url.path, request.method)
        return None
    return token


def extract_client_auth(request: Request, config: AuthConfig) -> str | None:
    return request.headers.get(config.headers.client_header)
