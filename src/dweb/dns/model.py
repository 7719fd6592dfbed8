"""Data models shared by the resolver components."""

from typing import Literal, Union

from pydantic import BaseModel


class NormalizedName(BaseModel):
    """Result of normalizing a caller supplied name.

    When is_key is set, name is already a 64 character key and needs no
    further resolution.
    """

    name: str
    is_key: bool = False


class ResolvedRecord(BaseModel):
    """Key and TTL extracted from a DNS-over-HTTPS or well-known record."""

    key: str
    ttl: int


class CacheEntry(BaseModel):
    """Snapshot of a live memory cache entry.

    A key of False marks a cached miss.
    """

    name: str
    key: Union[Literal[False], str]
    expires_at: float


class ResolvedEvent(BaseModel):
    method: str
    name: str
    key: str


class FailedEvent(BaseModel):
    method: str
    name: str
    err: str


class CacheFlushedEvent(BaseModel):
    pass
