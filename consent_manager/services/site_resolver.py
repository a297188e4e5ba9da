"""
Site id resolution for embed pages.

A site id is resolved by an explicit, ordered chain of resolvers. Each
resolver is a zero-argument callable returning a site id or None; the first
non-empty result wins and must be a canonical UUID.

Typical chain::

    resolve_site_id([
        partial(from_url_param, page_url),
        partial(from_hostname_mapping, page_url, hostname_map),
        partial(from_default, default_site_id),
    ])
"""

import logging
import re
from functools import partial
from typing import Callable, Mapping, Optional, Sequence
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

UUID_RE = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE
)

Resolver = Callable[[], Optional[str]]


class InvalidSiteIdError(ValueError):
    """A resolver produced a value that is not a UUID."""

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__(f"Invalid siteId format: {site_id}")


def is_valid_uuid(value: str) -> bool:
    return bool(value) and bool(UUID_RE.match(value))


def from_url_param(url: str, param: str = 'siteId') -> Optional[str]:
    """Return the ``siteId`` query parameter of url, if present."""
    try:
        values = parse_qs(urlparse(url).query).get(param)
    except ValueError as e:
        logger.error(f"Error parsing URL parameters of {url!r}: {e}")
        return None
    if values and values[0]:
        logger.debug(f"Found siteId in URL parameter: {values[0]}")
        return values[0]
    return None


def from_hostname_mapping(url: str, mapping: Mapping[str, str]) -> Optional[str]:
    """
    Look the page host up in a hostname -> site id table.

    Lookup order: ``host:port``, bare hostname, then ``*.<root domain>``
    where the root domain is the last two labels of the hostname.
    """
    if not mapping:
        return None
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        port = parsed.port
    except ValueError as e:
        logger.error(f"Error getting hostname of {url!r}: {e}")
        return None
    if not hostname:
        return None

    if port is not None:
        host_with_port = f"{hostname}:{port}"
        if mapping.get(host_with_port):
            return mapping[host_with_port]

    if mapping.get(hostname):
        return mapping[hostname]

    labels = hostname.split('.')
    if len(labels) >= 2:
        wildcard = f"*.{'.'.join(labels[-2:])}"
        if mapping.get(wildcard):
            return mapping[wildcard]

    logger.debug(f"No hostname mapping found for: {hostname}")
    return None


def from_default(value: Optional[str]) -> Optional[str]:
    return value or None


def resolve_site_id(resolvers: Sequence[Resolver]) -> Optional[str]:
    """
    Run resolvers in order and return the first site id found.

    Args:
        resolvers: Zero-argument callables returning a site id or None

    Returns:
        Site id, or None when no resolver produced one

    Raises:
        InvalidSiteIdError: If the resolved value is not a UUID
    """
    for resolver in resolvers:
        site_id = resolver()
        if site_id:
            if not is_valid_uuid(site_id):
                raise InvalidSiteIdError(site_id)
            return site_id

    logger.warning("Could not determine siteId from any source")
    return None


def build_resolvers(
    page_url: str,
    hostname_map: Optional[Mapping[str, str]] = None,
    default_site_id: Optional[str] = None,
) -> list:
    """Standard chain: URL parameter, hostname mapping, configured default."""
    return [
        partial(from_url_param, page_url),
        partial(from_hostname_mapping, page_url, hostname_map or {}),
        partial(from_default, default_site_id),
    ]
