"""
Content fetch-and-cache.

One authorized POST per content type, base64 decode of the `data` field and
an overwrite of that type's cache file. Every failure is contained here and
reported as a CacheResult, so one broken content type never blocks the
others.
"""

import asyncio
import base64
import binascii
import logging
from pathlib import Path
from typing import Optional, Union

import httpx
import orjson
from pydantic import ValidationError

from apps.refresher.cache import write_artifact
from utils.config import Settings, settings as default_settings
from utils.errors import MalformedResponseError, PayloadDecodeError
from utils.http import BackoffPolicy, Sleep, fetch_with_retry
from utils.schemas import CacheResult, ContentPayload, ContentRequestSpec, Token

logger = logging.getLogger(__name__)


def decode_payload(data: str) -> str:
    """
    Decode a base64 payload into UTF-8 text.

    Accepts standard and URL-safe alphabets, with or without padding.

    Args:
        data: Base64-encoded UTF-8 text

    Returns:
        Decoded text

    Raises:
        PayloadDecodeError: If the payload is not valid base64 or not UTF-8
    """
    data = "".join(data.split())
    try:
        raw = base64.b64decode(data + "=" * (-len(data) % 4), altchars=b"-_")
    except (binascii.Error, ValueError) as e:
        raise PayloadDecodeError(f"Invalid base64 payload: {e}") from e

    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise PayloadDecodeError(f"Payload is not valid UTF-8: {e}") from e


def parse_content_response(response: httpx.Response, content_type: str) -> str:
    """Extract the base64 `data` field from a content response."""
    try:
        body = orjson.loads(response.content)
    except orjson.JSONDecodeError as e:
        raise MalformedResponseError(f"Invalid JSON in response for type: {content_type}") from e

    if not isinstance(body, dict):
        raise MalformedResponseError(f"Data field missing in response for type: {content_type}")

    try:
        return ContentPayload(**body).data
    except ValidationError as e:
        raise MalformedResponseError(
            f"Data field missing in response for type: {content_type}"
        ) from e


async def fetch_and_cache(
    client: httpx.AsyncClient,
    request_spec: ContentRequestSpec,
    token: Token,
    cache_dir: Union[str, Path],
    settings: Optional[Settings] = None,
    *,
    policy: Optional[BackoffPolicy] = None,
    sleep: Sleep = asyncio.sleep,
) -> CacheResult:
    """
    Fetch one content type, decode it and overwrite its cache file.

    Never raises for fetch, decode or write failures; the outcome is
    returned as a CacheResult instead.
    """
    settings = settings or default_settings
    headers = {**settings.default_headers(), **token.headers()}

    try:
        response = await fetch_with_retry(
            client,
            "POST",
            settings.CONTENT_URL,
            policy=policy,
            sleep=sleep,
            headers=headers,
            content=orjson.dumps({"type": request_spec.type}),
        )
        data = parse_content_response(response, request_spec.type)
        text = decode_payload(data)
        path = await asyncio.to_thread(write_artifact, cache_dir, request_spec.filename, text)

    except Exception as e:
        logger.error(
            "Failed to fetch or decode %s data: %s",
            request_spec.type,
            str(e),
            extra={"content_type": request_spec.type, "error_type": type(e).__name__},
        )
        return CacheResult(type=request_spec.type, filename=request_spec.filename, ok=False, error=str(e))

    logger.info("Cached %s data to %s", request_spec.type, request_spec.filename)
    return CacheResult(type=request_spec.type, filename=request_spec.filename, ok=True, path=str(path))
