"""bible-api.com random verse client."""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from verse_bot.config import (
    DEFAULT_MAX_RESPONSE_BYTES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_VERSE_API_URL,
)

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A verse could not be fetched. ``reason`` is one of a few fixed strings."""

    def __init__(self, reason: str, detail: Any = None):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail is not None else reason)


class VersePayload(BaseModel):
    translation: dict[str, Any]
    random_verse: dict[str, Any]


async def fetch_verse(
    url: str = DEFAULT_VERSE_API_URL,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    client: httpx.AsyncClient | None = None,
) -> VersePayload:
    """Fetch one random verse.

    Issues a single GET (no retries) and reads at most ``max_bytes`` of the
    body, whatever the server claims in Content-Length. The whole exchange,
    body included, must finish within ``timeout`` seconds; this bound also
    applies when a ``client`` is passed in. Raises FetchError
    with reason "bad status", "response too large", "request failed" or
    "decode failed".
    """
    logger.debug("Requesting random verse: url=%s", url)

    if client is None:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
        ) as own_client:
            body = await _bounded_read(own_client, url, max_bytes, timeout)
    else:
        body = await _bounded_read(client, url, max_bytes, timeout)

    try:
        return VersePayload.model_validate_json(body)
    except ValidationError as exc:
        raise FetchError("decode failed", exc) from exc


async def _bounded_read(client, url, max_bytes, timeout):
    # httpx timeouts are per phase; a slow drip of bytes never trips them.
    try:
        return await asyncio.wait_for(_read_body(client, url, max_bytes), timeout)
    except asyncio.TimeoutError as exc:
        raise FetchError("request failed", f"no complete response within {timeout}s") from exc


async def _read_body(client: httpx.AsyncClient, url: str, max_bytes: int) -> bytes:
    body = bytearray()
    try:
        async with client.stream("GET", url) as response:
            logger.debug("Verse API response status: %s", response.status_code)
            if response.status_code != 200:
                raise FetchError("bad status", response.status_code)

            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise FetchError("response too large", len(body))
    except httpx.HTTPError as exc:
        raise FetchError("request failed", exc) from exc

    return bytes(body)
