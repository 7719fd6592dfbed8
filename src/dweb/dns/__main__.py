from typing import List, Optional
import argparse
import aiohttp
import asyncio
import json
import logging
import os
import sys
from logging.config import dictConfig

import sentry_sdk
from redis import asyncio as redis

from dweb.dns.config import Settings
from dweb.dns.errors import ResolutionError
from dweb.dns.metrics import create_metrics_client
from dweb.dns.persistent import PersistentCache, RedisPersistentCache
from dweb.dns.resolver import DWebDNS

logger = logging.getLogger(__name__)


def configure_logging(debug: bool = False) -> None:
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dweb-dns", description="Resolve dweb names")
    parser.add_argument("name", nargs="+", help="The name(s) to resolve.")
    parser.add_argument("--ignore-cache", action="store_true")
    parser.add_argument("--ignore-cached-miss", action="store_true")
    parser.add_argument(
        "--no-dns-over-https",
        action="store_true",
        help="Skip the DNS-over-HTTPS TXT lookup.",
    )
    parser.add_argument(
        "--no-well-known",
        action="store_true",
        help="Skip the /.well-known lookup.",
    )
    parser.add_argument(
        "--record-name", help="The well-known record name, e.g. dweb or dmemo."
    )
    parser.add_argument("--dns-host", help="DNS-over-HTTPS host.")
    parser.add_argument("--dns-port", type=int, help="DNS-over-HTTPS port.")
    parser.add_argument("--dns-path", help="DNS-over-HTTPS path.")
    parser.add_argument("--debug", action="store_true", default=None)
    return parser


def settings_from_args(args: dict) -> Settings:
    overrides = {
        field: args.get(field)
        for field in ("record_name", "dns_host", "dns_port", "dns_path", "debug")
        if args.get(field) is not None
    }
    return Settings(**overrides)


async def realMain(argv: Optional[List[str]] = None) -> int:
    args = vars(build_parser().parse_args(argv))
    settings = settings_from_args(args)

    configure_logging(settings.debug)

    if settings.sentry_dsn:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    metrics = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        prefix=settings.statsd_prefix,
        debug=settings.debug,
    )
    await metrics.connect()

    redis_client: Optional[redis.Redis] = None
    persistent_cache: Optional[PersistentCache] = None
    if settings.redis_dsn:
        redis_client = redis.Redis.from_url(settings.redis_dsn, decode_responses=True)
        persistent_cache = RedisPersistentCache(redis_client)

    names: List[str] = args.get("name", [])
    failures = 0

    try:
        async with aiohttp.ClientSession() as session:
            resolver = DWebDNS(
                session,
                settings=settings,
                persistent_cache=persistent_cache,
                metrics=metrics,
            )
            for name in names:
                try:
                    key = await resolver.resolve_name(
                        name,
                        ignore_cache=args.get("ignore_cache", False),
                        ignore_cached_miss=args.get("ignore_cached_miss", False),
                        no_dns_over_https=args.get("no_dns_over_https", False),
                        no_well_known=args.get("no_well_known", False),
                    )
                    print(f"resolved {name} {key}")
                except ResolutionError as e:
                    failures += 1
                    logger.error("Unable to resolve %s: %s", name, e)
    finally:
        if redis_client is not None:
            await redis_client.aclose()
        await metrics.close()

    return 1 if failures else 0


def main() -> None:
    sys.exit(asyncio.run(realMain()))


if __name__ == "__main__":
    main()
