"""
Token acquisition.

Each cycle starts by minting a timestamp/signature pair from the token
endpoint. The pair authorizes every content request of the same cycle and is
never reused.
"""

import asyncio
import logging
from typing import Optional

import httpx
import orjson
from pydantic import ValidationError

from utils.config import Settings, settings as default_settings
from utils.errors import RetryExhaustedError, TokenError
from utils.http import BackoffPolicy, Sleep, fetch_with_retry
from utils.schemas import Token


logger = logging.getLogger(__name__)

MISSING_TOKEN_MESSAGE = "Token API did not return timestamp or signature."


async def fetch_token(
    client: httpx.AsyncClient,
    settings: Optional[Settings] = None,
    *,
    policy: Optional[BackoffPolicy] = None,
    sleep: Sleep = asyncio.sleep,
) -> Token:
    """
    Fetch a fresh token for one cycle.

    Args:
        client: Shared async HTTP client
        settings: Application settings, defaults to the global instance
        policy: Backoff policy for the token request
        sleep: Awaitable sleep used between retries

    Returns:
        Validated Token

    Raises:
        TokenError: If the endpoint keeps failing or the body lacks a field
    """
    settings = settings or default_settings

    try:
        response = await fetch_with_retry(
            client,
            "GET",
            settings.TOKEN_URL,
            policy=policy,
            sleep=sleep,
            headers=settings.default_headers(),
        )
    except RetryExhaustedError as e:
        raise TokenError(f"Token API failed: {e}") from e

    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError as e:
        raise TokenError(f"Token API returned invalid JSON: {e}") from e

    if not isinstance(body, dict):
        raise TokenError(MISSING_TOKEN_MESSAGE)

    try:
        token = Token(**body)
    except ValidationError as e:
        raise TokenError(MISSING_TOKEN_MESSAGE) from e

    logger.info("Token fetched. TS: %s, SIG: %s...", token.timestamp, token.signature[:8])
    return token
