"""DNS-over-HTTPS TXT record lookup.

Queries a JSON DNS-over-HTTPS endpoint (the application/dns-json format served
by Cloudflare, Google and Quad9) for the TXT records of a name and extracts a
key from the first answer matching the configured TXT pattern.
"""

import json
import logging
import re

from aiohttp import ClientSession

from dweb.dns.config import DnsProvider
from dweb.dns.errors import InvalidNameError, InvalidRecordError
from dweb.dns.events import FAILED, EventChannel
from dweb.dns.model import FailedEvent, ResolvedRecord
from dweb.dns.resolve.http import FetchResult, fetch_text, normalize_ttl

logger = logging.getLogger(__name__)

METHOD = "dns-over-https"


def _fail(events: EventChannel, name: str, err: str) -> None:
    logger.debug("dns-over-https failed for %s: %s", name, err)
    events.emit(FAILED, FailedEvent(method=METHOD, name=name, err=err))


async def fetch_dns_over_https_record(
    session: ClientSession, events: EventChannel, name: str, provider: DnsProvider
) -> FetchResult:
    """Fetch the TXT records of a name from a DNS-over-HTTPS provider.

    Args:
        session: HTTP client session
        events: Channel receiving the failure event for unqualified names
        name: Normalized name to look up
        provider: DNS-over-HTTPS endpoint

    Returns:
        FetchResult; transport failures produce status 0 with an empty body

    Raises:
        InvalidNameError: If the name is not a fully qualified domain name
    """
    if "." not in name:
        _fail(events, name, "Name is not a FQDN")
        raise InvalidNameError("Domain is not a FQDN.")
    if not name.endswith("."):
        name = name + "."

    logger.debug("dns-over-https lookup for name: %s", name)
    # Cloudflare requires this exact header, other providers ignore it
    return await fetch_text(
        session,
        f"https://{provider.host}:{provider.port}{provider.path}",
        params={"name": name, "type": "TXT"},
        headers={"Accept": "application/dns-json"},
    )


def parse_dns_over_https_record(
    events: EventChannel, name: str, body: str, txt_regex: re.Pattern[str]
) -> ResolvedRecord:
    """Extract a key and TTL from a DNS-over-HTTPS JSON response.

    Raises:
        InvalidRecordError: If the body is not JSON, has no Answer list, or no
            answer matches txt_regex
    """
    try:
        record = json.loads(body)
    except ValueError as e:
        _fail(events, name, "Failed to parse JSON response")
        raise InvalidRecordError("Invalid dns-over-https record, must provide json") from e

    answers = record.get("Answer") if isinstance(record, dict) else None
    if not answers or not isinstance(answers, list):
        _fail(events, name, "Did not give any TXT answers")
        raise InvalidRecordError("Invalid dns-over-https record, no TXT answers given")

    for answer in answers:
        if not isinstance(answer, dict):
            continue
        data = answer.get("data")
        if not isinstance(data, str):
            continue
        match = txt_regex.search(data)
        if match is None:
            continue
        return ResolvedRecord(key=match.group(1), ttl=normalize_ttl(answer.get("TTL")))

    _fail(events, name, "Did not give any matching TXT answers")
    raise InvalidRecordError("Invalid dns-over-https record, no matching TXT answer given")
