from __future__ import annotations

import base64
import binascii
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientCredentials:
    client_id: str
    client_secret: str


def decode_client_credentials(raw: str | None, prefix: str = "Basic") -> ClientCredentials | None:
    """
    Decode ``<prefix> base64(<client_id>:<client_secret>)``.

    Returns None for a missing or malformed header; the caller reports that as
    an unknown client.
    """

    if not raw:
        return None

    value = raw.strip()
    if prefix and value.startswith(f"{prefix} "):
        value = value[len(prefix) + 1 :].strip()

    try:
        decoded = base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        logger.info("Client header is not valid base64")
        return None

    client_id, sep, client_secret = decoded.partition(":")
    if not sep or not client_id or not client_secret:
        logger.info("Client header is missing the id or the secret")
        return None
    return ClientCredentials(client_id=client_id, client_secret=client_secret)


def encode_client_credentials(client_id: str, client_secret: str, prefix: str = "Basic") -> str:
    token = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    return f"{prefix} {token}" if prefix else token
