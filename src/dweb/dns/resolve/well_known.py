"""Resolution through the /.well-known/<record-name> HTTPS convention.

The document served by the host is plain text:

    dweb://<64 hex characters>
    ttl=3600

Line 1 is required. Line 2 is optional and a malformed TTL falls back to the
default.
"""

import logging
import re
from typing import Optional

from aiohttp import ClientSession

from dweb.dns.errors import InvalidRecordError, NotFoundError
from dweb.dns.events import FAILED, EventChannel
from dweb.dns.model import FailedEvent, ResolvedRecord
from dweb.dns.resolve.http import FetchResult, fetch_text, normalize_ttl

logger = logging.getLogger(__name__)

METHOD = "well-known"

TTL_LINE_REGEX = re.compile(r"^ttl=(\d+)$", re.IGNORECASE)


async def fetch_well_known_record(
    session: ClientSession, name: str, record_name: str
) -> FetchResult:
    """Fetch https://{host}/.well-known/{record_name}.

    Only the host part of the name is used; any path it carries is dropped.
    """
    host = name.split("/", 1)[0]
    logger.debug(".well-known/%s lookup for name: %s", record_name, name)
    return await fetch_text(session, f"https://{host}/.well-known/{record_name}")


def parse_well_known_record(
    events: EventChannel,
    name: str,
    body: str,
    protocol_regex: re.Pattern[str],
    record_name: str,
) -> ResolvedRecord:
    """Extract a key and TTL from a well-known record.

    Raises:
        NotFoundError: If the body is empty
        InvalidRecordError: If line 1 does not match protocol_regex
    """
    if not body or not isinstance(body, str):
        events.emit(FAILED, FailedEvent(method=METHOD, name=name, err="Empty response"))
        raise NotFoundError()

    lines = body.split("\n")

    match = protocol_regex.search(lines[0])
    if match is None:
        logger.debug(
            ".well-known/%s failed for %s, must conform to %s",
            record_name,
            name,
            protocol_regex.pattern,
        )
        events.emit(
            FAILED,
            FailedEvent(
                method=METHOD,
                name=name,
                err=f"Record did not conform to {protocol_regex.pattern}",
            ),
        )
        raise InvalidRecordError(
            f"Invalid .well-known/{record_name} record, must conform to {protocol_regex.pattern}"
        )
    key = match.group(1)

    ttl: Optional[int] = None
    if len(lines) > 1 and lines[1]:
        ttl_match = TTL_LINE_REGEX.match(lines[1])
        if ttl_match is not None:
            ttl = int(ttl_match.group(1))
        else:
            logger.debug(
                ".well-known/%s failed to parse TTL for %s, line: %s",
                record_name,
                name,
                lines[1],
            )
            events.emit(
                FAILED,
                FailedEvent(
                    method=METHOD,
                    name=name,
                    err=f"Failed to parse TTL line: {lines[1]!r}",
                ),
            )

    return ResolvedRecord(key=key, ttl=normalize_ttl(ttl))
