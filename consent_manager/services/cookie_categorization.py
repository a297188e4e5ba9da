"""
Cookie categorization service.

Cookies are categorized by matching their name (and, for marketing, their
domain) against ordered pattern tables. The first matching group wins:

1. Analytics patterns (name)
2. Marketing patterns (name or domain)
3. Functional patterns (name)
4. Preferences patterns (name)
5. Same-origin cookie domain -> necessary
6. Fallback -> unclassified
"""

import logging
import re
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlparse

from consent_manager.models.scan import CookieCategory, CookieType

logger = logging.getLogger(__name__)

# Known cookie name fragments per category, matched case-insensitively.
COOKIE_PATTERNS: Dict[CookieCategory, Tuple[str, ...]] = {
    CookieCategory.ANALYTICS: (
        '_ga', '_gid', '_gat', '__utma', '__utmb', '__utmc', '__utmz', '__utmt',
        '_hjid', '_hjIncludedInSample', 'mp_', 'mixpanel', 'amplitude',
        'ajs_', 'segment', 'optimizelyEndUserId', '_fbp', '_fbc',
    ),
    CookieCategory.MARKETING: (
        'IDE', 'test_cookie', 'DSID', 'id', 'NID', 'ANID', 'fr', 'tr',
        'ads', 'doubleclick', 'adsense', 'adwords', 'conversion',
        '_gcl_', 'gclid', 'dclid', 'fbclid', 'mc', 'msclkid',
    ),
    CookieCategory.FUNCTIONAL: (
        'wordpress', 'wp-', 'PHPSESSID', 'JSESSIONID', 'ASP.NET_SessionId',
        'cf_', 'cloudflare', '__cfduid', 'intercom', 'drift', 'crisp',
    ),
    CookieCategory.PREFERENCES: (
        'lang', 'language', 'locale', 'timezone', 'currency', 'theme',
        'color', 'font', 'layout', 'consent', 'cookie_consent',
    ),
}

# Alphanumeric patterns this short match whole tokens only:
# "id" matches "user_id" but not "sessionid", "NID" matches "NID" but not "JSESSIONID".
SHORT_PATTERN_MAX_LENGTH = 3

_TOKEN_SPLIT_RE = re.compile(r'[^a-z0-9]+')


def _compile_patterns(patterns: Tuple[str, ...]) -> Tuple[List[str], List[str]]:
    """Split a pattern table into (substring patterns, whole-token patterns), lower-cased."""
    tokens = [p.lower() for p in patterns if len(p) <= SHORT_PATTERN_MAX_LENGTH and p.isalnum()]
    substrings = [p.lower() for p in patterns if p.lower() not in tokens]
    return substrings, tokens


_COMPILED_PATTERNS = {
    category: _compile_patterns(patterns)
    for category, patterns in COOKIE_PATTERNS.items()
}


def _tokens(text: str) -> set:
    return {token for token in _TOKEN_SPLIT_RE.split(text) if token}


def _matches(category: CookieCategory, *texts: str) -> bool:
    """Return True if any lower-cased text matches the category's pattern table."""
    substrings, tokens = _COMPILED_PATTERNS[category]
    for text in texts:
        if any(pattern in text for pattern in substrings):
            return True
        if tokens and not _tokens(text).isdisjoint(tokens):
            return True
    return False


def strip_leading_dot(domain: str) -> str:
    """Strip the leading dot of a wildcard cookie domain (``.example.com``)."""
    return domain[1:] if domain.startswith('.') else domain


def get_site_hostname(site_url: str) -> Optional[str]:
    """
    Return the lower-cased hostname of a site URL.

    Bare hosts (``example.com``) are accepted and treated as https URLs.
    Returns None when no hostname can be parsed.
    """
    if not site_url:
        return None
    url = site_url if site_url.startswith(('http://', 'https://')) else f'https://{site_url}'
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return None
    return hostname.lower() if hostname else None


def is_first_party(cookie_domain: Optional[str], hostname: Optional[str]) -> bool:
    """
    Return True if the cookie domain equals the site hostname or is a suffix of it.

    ``.example.com`` and ``example.com`` are treated identically.
    """
    if not cookie_domain or not hostname:
        return False
    domain = strip_leading_dot(cookie_domain.lower())
    if not domain:
        return False
    hostname = hostname.lower()
    return hostname == domain or hostname.endswith(domain)


def determine_party_type(cookie_domain: Optional[str], site_url: str) -> CookieType:
    """Return the first/third party type of a cookie relative to site_url."""
    if not cookie_domain:
        return CookieType.UNKNOWN
    hostname = get_site_hostname(site_url)
    return CookieType.FIRST_PARTY if is_first_party(cookie_domain, hostname) else CookieType.THIRD_PARTY


def categorize_cookie(name: Optional[str], domain: Optional[str], site_url: str) -> CookieCategory:
    """
    Categorize a cookie from its name and domain.

    Args:
        name: Cookie name
        domain: Cookie domain (may start with '.')
        site_url: URL (or hostname) of the scanned site

    Returns:
        Cookie category
    """
    name_l = (name or '').lower()
    domain_l = (domain or '').lower()

    if _matches(CookieCategory.ANALYTICS, name_l):
        return CookieCategory.ANALYTICS

    if _matches(CookieCategory.MARKETING, name_l, domain_l):
        return CookieCategory.MARKETING

    if _matches(CookieCategory.FUNCTIONAL, name_l):
        return CookieCategory.FUNCTIONAL

    if _matches(CookieCategory.PREFERENCES, name_l):
        return CookieCategory.PREFERENCES

    try:
        if is_first_party(domain_l, get_site_hostname(site_url)):
            return CookieCategory.NECESSARY
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"Same-origin check failed for cookie {name!r} ({domain!r}): {e}")

    return CookieCategory.UNCLASSIFIED
