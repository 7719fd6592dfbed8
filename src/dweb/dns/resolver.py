"""Resolution of dweb names to 64 character keys.

DWebDNS ties together name normalization, the memory cache, the two lookup
protocols and the optional persistent cache:

1. Names that are already keys are returned as is.
2. The memory cache answers with a key, or with a cached miss.
3. DNS-over-HTTPS is tried first. Its failures are never surfaced; resolution
   falls through to the well-known lookup.
4. The /.well-known/<record-name> lookup either produces the key or the error
   returned to the caller. Unreachable hosts and 404s are cached as misses.
5. Successful lookups are written to the memory and persistent caches.
6. When a persistent cache is configured it gets a chance to answer any
   failure with a previously stored key.
"""

import logging
import random
import time
from typing import List, Optional

import sentry_sdk
from aiohttp import ClientSession

from dweb.dns.cache import MemoryCache
from dweb.dns.config import CACHED_MISS_TTL, Settings, select_dns_provider
from dweb.dns.errors import (
    NotFoundError,
    RecordLookupError,
    ResolutionError,
)
from dweb.dns.events import (
    CACHE_FLUSHED,
    FAILED,
    RESOLVED,
    EventChannel,
    Listener,
)
from dweb.dns.metrics import MetricsClient, NoOpMetricsClient
from dweb.dns.model import (
    CacheEntry,
    CacheFlushedEvent,
    FailedEvent,
    ResolvedEvent,
    ResolvedRecord,
)
from dweb.dns.name import normalize_name
from dweb.dns.persistent import PersistentCache
from dweb.dns.resolve import doh, well_known

logger = logging.getLogger(__name__)


class DWebDNS:
    """
    Resolver for dweb names.

    The DNS-over-HTTPS provider is chosen once, when the resolver is created, so a
    given instance always talks to the same provider.
    """

    def __init__(
        self,
        session: ClientSession,
        settings: Optional[Settings] = None,
        persistent_cache: Optional[PersistentCache] = None,
        metrics: Optional[MetricsClient] = None,
        memory_cache: Optional[MemoryCache] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.session = session
        self.settings = settings or Settings()
        self.persistent_cache = persistent_cache
        self.metrics = metrics or NoOpMetricsClient()
        self.memory_cache = memory_cache or MemoryCache()
        self.events = EventChannel()
        self.dns_provider = select_dns_provider(self.settings, rng)

    def on(self, event: str, listener: Listener) -> None:
        self.events.on(event, listener)

    def off(self, event: str, listener: Listener) -> None:
        self.events.off(event, listener)

    async def resolve_name(
        self,
        name,
        *,
        ignore_cache: bool = False,
        ignore_cached_miss: bool = False,
        no_dns_over_https: bool = False,
        no_well_known: bool = False,
    ) -> str:
        """
        Resolve a name to its key.

        Args:
            name: Hostname, dweb:// URL or key, optionally suffixed with +<version>
            ignore_cache: Skip the memory cache read (results are still cached)
            ignore_cached_miss: Treat a cached miss as absent instead of failing
            no_dns_over_https: Skip the DNS-over-HTTPS lookup
            no_well_known: Skip the /.well-known lookup

        Returns:
            The 64 character key

        Raises:
            InvalidNameError: If the name cannot be parsed
            NotFoundError: If no key exists, or a miss is cached
            InvalidRecordError: If the well-known record is malformed
            RecordLookupError: If the well-known lookup returned an unexpected status
        """
        normalized = normalize_name(name, self.settings.hash_regex)
        if normalized.is_key:
            return normalized.name
        name = normalized.name

        start = time.monotonic()
        try:
            key = await self._resolve(
                name,
                ignore_cache=ignore_cache,
                ignore_cached_miss=ignore_cached_miss,
                no_dns_over_https=no_dns_over_https,
                no_well_known=no_well_known,
            )
        except ResolutionError as err:
            failed_tags = {"outcome": type(err).__name__}
            if self.persistent_cache is None:
                self.metrics.increment("resolve.count", tag_dict=failed_tags)
                raise
            try:
                # Either returns a stored key or raises err
                key = await self.persistent_cache.read(name, err)
            except ResolutionError:
                self.metrics.increment("resolve.count", tag_dict=failed_tags)
                raise
            logger.debug("Persistent cache answered %s with %s", name, key)
            self.metrics.increment("resolve.count", tag_dict={"outcome": "persistent"})
            return key
        finally:
            self.metrics.timer("resolve.time", time.monotonic() - start)

        return key

    async def _resolve(
        self,
        name: str,
        ignore_cache: bool,
        ignore_cached_miss: bool,
        no_dns_over_https: bool,
        no_well_known: bool,
    ) -> str:
        if not ignore_cache:
            cached_key = self.memory_cache.get(name)
            if cached_key is not None and (cached_key or not ignore_cached_miss):
                logger.debug("In-memory cache hit for name %s: %s", name, cached_key)
                if not cached_key:
                    raise NotFoundError()
                self.metrics.increment("resolve.count", tag_dict={"outcome": "cache"})
                return cached_key

        res: Optional[ResolvedRecord] = None
        method = None

        if not no_dns_over_https:
            res = await self._resolve_dns_over_https(name)
            method = doh.METHOD

        if res is None and not no_well_known:
            res = await self._resolve_well_known(name)
            method = well_known.METHOD

        if res is None:
            raise NotFoundError()

        if res.ttl != 0:
            self.memory_cache.set(name, res.key, res.ttl)
        if self.persistent_cache is not None:
            try:
                await self.persistent_cache.write(name, res.key, res.ttl)
            except Exception as e:
                logger.warning("Persistent cache write failed for %s: %s", name, e)
                sentry_sdk.capture_exception(e)

        self.metrics.increment("resolve.count", tag_dict={"outcome": method})
        return res.key

    async def _resolve_dns_over_https(self, name: str) -> Optional[ResolvedRecord]:
        try:
            fetched = await doh.fetch_dns_over_https_record(
                self.session, self.events, name, self.dns_provider
            )
            res = doh.parse_dns_over_https_record(
                self.events, name, fetched.body, self.settings.txt_regex
            )
        except ResolutionError as e:
            # Ignored, the well-known lookup is tried next
            logger.debug("dns-over-https gave no result for %s: %s", name, e)
            return None

        self.events.emit(
            RESOLVED, ResolvedEvent(method=doh.METHOD, name=name, key=res.key)
        )
        logger.debug("dns-over-https resolved %s to %s", name, res.key)
        return res

    async def _resolve_well_known(self, name: str) -> ResolvedRecord:
        record_name = self.settings.record_name
        fetched = await well_known.fetch_well_known_record(
            self.session, name, record_name
        )

        if fetched.status in (0, 404):
            logger.debug(
                ".well-known/%s lookup failed for name %s: %s %s",
                record_name,
                name,
                fetched.status,
                fetched.err,
            )
            self.events.emit(
                FAILED,
                FailedEvent(
                    method=well_known.METHOD,
                    name=name,
                    err=f"HTTP code {fetched.status} {fetched.err or ''}".rstrip(),
                ),
            )
            self.memory_cache.set(name, False, CACHED_MISS_TTL)
            raise NotFoundError()

        if fetched.status != 200:
            logger.debug(
                ".well-known/%s lookup failed for name %s: %s",
                record_name,
                name,
                fetched.status,
            )
            self.events.emit(
                FAILED,
                FailedEvent(
                    method=well_known.METHOD,
                    name=name,
                    err=f"HTTP code {fetched.status}",
                ),
            )
            raise RecordLookupError(fetched.status)

        res = well_known.parse_well_known_record(
            self.events,
            name,
            fetched.body,
            self.settings.protocol_regex,
            record_name,
        )
        self.events.emit(
            RESOLVED, ResolvedEvent(method=well_known.METHOD, name=name, key=res.key)
        )
        logger.debug(".well-known/%s resolved %s to %s", record_name, name, res.key)
        return res

    def list_cache(self) -> List[CacheEntry]:
        return self.memory_cache.list()

    def flush_cache(self) -> None:
        self.events.emit(CACHE_FLUSHED, CacheFlushedEvent())
        self.memory_cache.flush()


def create_resolver(
    session: ClientSession,
    persistent_cache: Optional[PersistentCache] = None,
    metrics: Optional[MetricsClient] = None,
    **options,
) -> DWebDNS:
    """
    Create a resolver from keyword options.

    Options are Settings fields, for example:

        create_resolver(session, record_name="dmemo", protocol_regex=r"^dmemo://([0-9a-f]{64})")
    """
    return DWebDNS(
        session,
        settings=Settings(**options),
        persistent_cache=persistent_cache,
        metrics=metrics,
    )
