"""
dweb-dns - Name Resolution for dweb Keys

This package resolves human-readable names (domains, dweb:// URLs or raw keys)
to the 64 character hexadecimal key they point to, much like DNS resolves a
hostname to an address.

Key Components:
- resolver.py: The DWebDNS resolver tying caching and lookups together
- resolve/: DNS-over-HTTPS and /.well-known lookup protocols
- name.py: Name normalization (URLs, +version suffixes, raw keys)
- cache.py: In-memory cache with per-entry TTLs, including cached misses
- persistent.py: Persistent cache interface and Redis implementation
- events.py: Observational resolved/failed/cache-flushed events
- config.py: Settings loaded through pydantic-settings
- metrics.py: Metrics abstraction (Telegraf/StatsD or no-op)
- __main__.py: Command line interface

Resolution Flow:
1. Normalize the name; raw keys are returned immediately
2. Answer from the memory cache when possible
3. Try a DNS-over-HTTPS TXT lookup (dwebkey=<key>)
4. Fall back to https://<name>/.well-known/dweb (dweb://<key>)
5. Cache the result, and on failure consult the persistent cache
"""

from dweb.dns.errors import (
    InvalidNameError,
    InvalidRecordError,
    NotFoundError,
    RecordLookupError,
    ResolutionError,
)
from dweb.dns.config import Settings
from dweb.dns.persistent import PersistentCache, RedisPersistentCache
from dweb.dns.resolver import DWebDNS, create_resolver

__all__ = [
    "DWebDNS",
    "create_resolver",
    "Settings",
    "PersistentCache",
    "RedisPersistentCache",
    "ResolutionError",
    "InvalidNameError",
    "InvalidRecordError",
    "NotFoundError",
    "RecordLookupError",
]
