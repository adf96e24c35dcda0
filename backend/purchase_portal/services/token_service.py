# Overview: Response token generation for emailed confirmation links.

from __future__ import annotations

import logging
import secrets
from typing import Callable

logger = logging.getLogger(__name__)

# 32 random bytes -> 64 hex characters (256 bits). Hex needs no URL escaping.
TOKEN_BYTES = 32
MAX_GENERATION_ATTEMPTS = 5


def generate_response_token() -> str:
    """Return a fresh single-use bearer token from the OS CSPRNG."""
    return secrets.token_hex(TOKEN_BYTES)


def generate_unique_token(token_exists: Callable[[str], bool]) -> str:
    """
    Generate a token that is not already assigned to any request.

    A collision at 256 bits is not expected in practice; the check guards the
    unique index so a clash surfaces as a retry instead of a failed insert.
    """
    for attempt in range(MAX_GENERATION_ATTEMPTS):
        token = generate_response_token()
        if not token_exists(token):
            return token
        logger.warning("Response token collision on attempt %d; regenerating", attempt + 1)
    raise RuntimeError("Unable to generate a unique response token")
