"""
Configuration for dweb name resolution.

Settings are loaded with pydantic-settings from environment variables prefixed
with DWEB_DNS_ (for example DWEB_DNS_RECORD_NAME=dmemo), or passed directly
when a resolver is constructed programmatically.

Resolver-level settings mirror the construction options of the resolver:
- hash_regex, txt_regex and protocol_regex control how keys are recognised
- record_name selects the /.well-known/<record_name> document
- dns_host, dns_port and dns_path override the DNS-over-HTTPS provider

The remaining settings configure the ambient services used by the command
line entry point (logging, Sentry, metrics and the Redis persistent cache).
"""

import logging
import random
import re
from typing import Final, List, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

DWEB_HASH_REGEX: Final = re.compile(r"^[0-9a-f]{64}.?$", re.IGNORECASE)
"""Matches a raw key, tolerating a single trailing character."""

DWEB_PROTOCOL_REGEX: Final = re.compile(r"^dweb://([0-9a-f]{64})", re.IGNORECASE)
"""Extracts the key from the first line of a well-known record."""

DWEB_TXT_REGEX: Final = re.compile(r'"?dwebkey=([0-9a-f]{64})"?', re.IGNORECASE)
"""Extracts the key from the data of a TXT answer."""

DWEB_RECORD_NAME: Final = "dweb"

DEFAULT_DWEB_DNS_TTL: Final = 3600  # 1 hour
MAX_DWEB_DNS_TTL: Final = 3600 * 24 * 7  # 1 week
CACHED_MISS_TTL: Final = 60
MEMORY_CACHE_DEFAULT_TTL: Final = 60
REQUEST_TIMEOUT: Final = 2.0


class DnsProvider(BaseModel):
    """A DNS-over-HTTPS endpoint."""

    host: str
    port: int = 443
    path: str


DEFAULT_DNS_PROVIDERS: Final[List[DnsProvider]] = [
    DnsProvider(host="cloudflare-dns.com", port=443, path="/dns-query"),
    DnsProvider(host="dns.google", port=443, path="/resolve"),
    DnsProvider(host="dns.quad9.net", port=5053, path="/dns-query"),
]


def _compile_pattern(v, field_name: str) -> re.Pattern[str]:
    if isinstance(v, re.Pattern):
        return v
    if isinstance(v, str):
        return re.compile(v, re.IGNORECASE)
    raise ValueError(f"{field_name} must be a regular expression string or compiled pattern")


class Settings(BaseSettings):
    """
    Settings for a dweb resolver.

    Every field is optional. Regular expressions may be given either as compiled
    patterns, which are used unchanged, or as strings, which are compiled
    case-insensitively.
    """

    model_config = SettingsConfigDict(env_prefix="DWEB_DNS_")

    hash_regex: re.Pattern[str] = DWEB_HASH_REGEX
    """Pattern identifying a name that is already a key."""

    txt_regex: re.Pattern[str] = DWEB_TXT_REGEX
    """Pattern extracting the key (group 1) from TXT answer data."""

    protocol_regex: re.Pattern[str] = DWEB_PROTOCOL_REGEX
    """Pattern extracting the key (group 1) from line 1 of a well-known record."""

    record_name: str = DWEB_RECORD_NAME
    """Path segment of the well-known record, as in /.well-known/dweb."""

    dns_host: Optional[str] = None
    """
    DNS-over-HTTPS host. When either dns_host or dns_path is unset, one of the
    built-in providers is picked at random for each resolver instance.
    """

    dns_port: int = 443
    """DNS-over-HTTPS port, only used together with dns_host and dns_path."""

    dns_path: Optional[str] = None
    """DNS-over-HTTPS path, for example /dns-query."""

    # Command line and ambient services
    debug: bool = False
    """Enable debug logging."""

    sentry_dsn: Optional[str] = None
    """Sentry DSN for error reporting. No error reporting if not set."""

    metrics_backend: str = "none"
    """Metrics backend, either 'telegraf' or 'none'."""

    statsd_host: str = "localhost"
    statsd_port: int = 8125
    statsd_prefix: str = "dweb_dns"

    redis_dsn: Optional[str] = Field(default=None)
    """Redis connection string for the persistent cache. Disabled if not set."""

    @field_validator("hash_regex", mode="before")
    @classmethod
    def decode_hash_regex(cls, v) -> re.Pattern[str]:
        return _compile_pattern(v, "hash_regex")

    @field_validator("txt_regex", mode="before")
    @classmethod
    def decode_txt_regex(cls, v) -> re.Pattern[str]:
        return _compile_pattern(v, "txt_regex")

    @field_validator("protocol_regex", mode="before")
    @classmethod
    def decode_protocol_regex(cls, v) -> re.Pattern[str]:
        return _compile_pattern(v, "protocol_regex")


def select_dns_provider(settings: Settings, rng: Optional[random.Random] = None) -> DnsProvider:
    """
    Choose the DNS-over-HTTPS provider for a resolver instance.

    An explicit dns_host and dns_path always win. Otherwise a default provider is
    chosen at random; callers keep the result for the lifetime of the resolver.
    """
    if settings.dns_host and settings.dns_path:
        return DnsProvider(
            host=settings.dns_host,
            port=settings.dns_port or 443,
            path=settings.dns_path,
        )
    chooser = rng or random
    provider = chooser.choice(DEFAULT_DNS_PROVIDERS)
    logger.debug("Using default DNS-over-HTTPS provider %s", provider.host)
    return provider
