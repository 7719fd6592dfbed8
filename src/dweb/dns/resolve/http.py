"""HTTP helpers shared by the DNS-over-HTTPS and well-known clients."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession
from pydantic import BaseModel

from dweb.dns.config import DEFAULT_DWEB_DNS_TTL, MAX_DWEB_DNS_TTL, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

MAX_SAFE_INTEGER = 2**53 - 1


class FetchResult(BaseModel):
    """Outcome of a single GET.

    A status of 0 means the request never produced a response; err then
    describes the transport failure.
    """

    status: int
    body: str = ""
    err: Optional[str] = None


async def fetch_text(
    session: ClientSession,
    url: str,
    params: Optional[Dict[str, str]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> FetchResult:
    """GET a URL with a bounded timeout, folding transport errors into status 0.

    Bodies are decoded leniently; undecodable bytes become U+FFFD rather than
    turning a real response into a transport failure.
    """
    timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
    try:
        async with session.get(
            url, params=params, headers=headers, timeout=timeout
        ) as resp:
            body = await resp.text(errors="replace")
            return FetchResult(status=resp.status, body=body or "")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        logger.debug("GET %s failed: %r", url, e)
        return FetchResult(status=0, body="", err=str(e) or type(e).__name__)


def normalize_ttl(ttl: Any) -> int:
    """Apply the default and maximum TTL rules.

    Integral floats such as 120.0 count as integers.
    """
    if isinstance(ttl, float) and ttl.is_integer():
        ttl = int(ttl)
    if (
        isinstance(ttl, bool)
        or not isinstance(ttl, int)
        or ttl < 0
        or ttl > MAX_SAFE_INTEGER
    ):
        ttl = DEFAULT_DWEB_DNS_TTL
    if ttl > MAX_DWEB_DNS_TTL:
        ttl = MAX_DWEB_DNS_TTL
    return ttl
