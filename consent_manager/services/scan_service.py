"""
Cookie scan service.

Drives a browser driver against a site, classifies every cookie it finds and
aggregates the result. ``scan_website`` never raises: any failure is captured
in a ``ScanResult`` with ``success=False``.
"""

import asyncio
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from consent_manager.models.scan import (
    CookieCategory,
    CookieObservation,
    CookieType,
    RawCookie,
    ScanResult,
    ScanStats,
)
from consent_manager.services.browser import PlaywrightBrowserDriver
from consent_manager.services.cookie_categorization import categorize_cookie, determine_party_type

logger = logging.getLogger(__name__)

VALUE_DISPLAY_LENGTH = 50
TRUNCATION_MARKER = '...'


def validate_scan_url(site_url: str) -> str:
    """
    Validate a scan target and return its lower-cased hostname.

    Raises:
        ValueError: If the URL has no http(s) scheme or no hostname
    """
    try:
        parsed = urlparse(site_url or '')
        hostname = parsed.hostname
    except ValueError:
        raise ValueError(f"Invalid URL: {site_url}")
    if parsed.scheme not in ('http', 'https') or not hostname:
        raise ValueError(f"Invalid URL: {site_url}")
    return hostname.lower()


def truncate_value(value: str) -> str:
    """Truncate a cookie value for display."""
    if len(value) > VALUE_DISPLAY_LENGTH:
        return value[:VALUE_DISPLAY_LENGTH] + TRUNCATION_MARKER
    return value


def observe_cookie(cookie: RawCookie, site_url: str) -> CookieObservation:
    """Build the classified, display-safe observation of a raw cookie."""
    return CookieObservation(
        name=cookie.name,
        value=truncate_value(cookie.value),
        domain=cookie.domain,
        path=cookie.path,
        expires=cookie.expires,
        size=len(cookie.value.encode('utf-8')),
        http_only=cookie.http_only,
        secure=cookie.secure,
        same_site=cookie.same_site,
        category=categorize_cookie(cookie.name, cookie.domain, site_url),
    )


def group_by_category(
    cookies: Iterable[CookieObservation]
) -> Dict[CookieCategory, List[CookieObservation]]:
    """Group observations by category. Only categories that occur get a key."""
    grouped: Dict[CookieCategory, List[CookieObservation]] = {}
    for cookie in cookies:
        grouped.setdefault(cookie.category, []).append(cookie)
    return grouped


def compute_stats(cookies: List[CookieObservation], site_url: str) -> ScanStats:
    """
    Derive scan statistics from the observation list.

    Cookies without a domain count as third party.
    """
    by_category = Counter(cookie.category.value for cookie in cookies)
    party_types = Counter(determine_party_type(cookie.domain, site_url) for cookie in cookies)
    first_party = party_types[CookieType.FIRST_PARTY]
    return ScanStats(
        total=len(cookies),
        by_category=dict(by_category),
        first_party=first_party,
        third_party=len(cookies) - first_party,
    )


def build_scan_result(
    site_url: str,
    raw_cookies: Iterable[RawCookie],
    request_count: int = 0,
    scanned_at: Optional[datetime] = None,
) -> ScanResult:
    """
    Build a successful scan result from the cookies collected for site_url.

    Args:
        site_url: Scanned URL (must include protocol)
        raw_cookies: Cookies reported by the browser driver
        request_count: Number of requests the page issued
        scanned_at: Scan timestamp (defaults to now)

    Returns:
        Frozen ScanResult
    """
    validate_scan_url(site_url)
    cookies = [observe_cookie(cookie, site_url) for cookie in raw_cookies]
    return ScanResult(
        site_url=site_url,
        scanned_at=scanned_at or datetime.now(timezone.utc),
        success=True,
        cookies=cookies,
        cookies_by_category=group_by_category(cookies),
        stats=compute_stats(cookies, site_url),
        request_count=request_count,
    )


async def scan_website(
    site_url: str,
    driver=None,
    *,
    timeout_ms: int = 30000,
    wait_until: str = 'networkidle',
    settle_seconds: float = 2.0,
    user_agent: Optional[str] = None,
    headless: bool = True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ScanResult:
    """
    Scan a website for cookies and categorize them.

    Args:
        site_url: URL to scan (must include protocol)
        driver: Browser driver; a Playwright driver is created when omitted
        timeout_ms: Navigation timeout in milliseconds
        wait_until: Navigation wait strategy
        settle_seconds: Extra wait after navigation for late cookies
        user_agent: User agent for the default driver
        headless: Headless flag for the default driver
        sleep: Awaitable sleep used for the settle wait

    Returns:
        ScanResult, with ``success=False`` and the error message on failure
    """
    if driver is None:
        driver = PlaywrightBrowserDriver(headless=headless, user_agent=user_agent)

    try:
        validate_scan_url(site_url)
        logger.info(f"Starting cookie scan for: {site_url}")

        await driver.launch()
        await driver.new_page()
        await driver.goto(site_url, timeout=timeout_ms, wait_until=wait_until)

        if settle_seconds > 0:
            await sleep(settle_seconds)

        raw_cookies = await driver.cookies()
        result = build_scan_result(
            site_url,
            raw_cookies,
            request_count=getattr(driver, 'request_count', 0),
        )
        logger.info(
            f"Scan complete for {site_url}: {result.stats.total} cookies, "
            f"categories: {result.stats.by_category}"
        )
        return result

    except Exception as e:
        message = str(e) or e.__class__.__name__
        logger.error(f"Error during scan of {site_url}: {message}")
        return ScanResult.failed(site_url, message)

    finally:
        try:
            await driver.close()
        except Exception as e:
            logger.warning(f"Failed to close browser driver for {site_url}: {e}")
