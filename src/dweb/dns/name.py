"""Name normalization.

Turns caller input (a hostname, a dweb:// URL or a raw key, optionally with
a +version suffix) into either a terminal key or a name to resolve.
"""

import re
from typing import Any
from urllib.parse import urlsplit

from dweb.dns.errors import InvalidNameError
from dweb.dns.model import NormalizedName

VERSION_REGEX = re.compile(r"(\+[^/]+)$")


def strip_version(name: str) -> str:
    """Remove a trailing +<version> suffix."""
    return VERSION_REGEX.sub("", name)


def normalize_name(name: Any, hash_regex: re.Pattern[str]) -> NormalizedName:
    """Normalize a name for resolution.

    Args:
        name: Hostname, URL or key, optionally suffixed with +<version>
        hash_regex: Pattern identifying an already resolved key

    Returns:
        NormalizedName, with is_key set when no resolution is needed

    Raises:
        InvalidNameError: If the input is not a string or is empty once parsed
    """
    if not isinstance(name, str):
        raise InvalidNameError(f"Name must be a string, got {type(name).__name__}")

    try:
        parsed = urlsplit(name)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidNameError(f"Unable to parse name {name!r}: {e}") from e

    value = hostname or parsed.path
    if not value:
        raise InvalidNameError(f"Unable to parse name {name!r}")

    value = strip_version(value)
    if not value:
        raise InvalidNameError(f"Unable to parse name {name!r}")

    if hash_regex.search(value):
        return NormalizedName(name=value[:64], is_key=True)

    return NormalizedName(name=value)
