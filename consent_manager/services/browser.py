"""
Playwright browser driver used by the cookie scan.
"""

import logging
from typing import List, Optional

from playwright.async_api import async_playwright, Browser, BrowserContext, Page, Playwright
from playwright_stealth import Stealth

from consent_manager.models.scan import RawCookie

logger = logging.getLogger(__name__)
stealth = Stealth()

DEFAULT_USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


class PlaywrightBrowserDriver:
    """
    Single-use headless Chromium session.

    Lifecycle: ``launch()`` -> ``new_page()`` -> ``goto()`` -> ``cookies()`` -> ``close()``.
    Every request issued by the page is counted in ``request_count``.
    """

    def __init__(self, headless: bool = True, user_agent: Optional[str] = None):
        self.headless = headless
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.request_count = 0
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

    async def launch(self):
        """Start Playwright and launch Chromium with a stealth context."""
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.headless,
            args=[
                "--no-sandbox",
                "--disable-setuid-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
                "--disable-blink-features=AutomationControlled",
            ]
        )
        self._context = await self._browser.new_context(
            user_agent=self.user_agent,
            viewport={"width": 1366, "height": 768}
        )
        await stealth.apply_stealth_async(self._context)

    async def new_page(self) -> Page:
        """Open a page in the stealth context and start counting its requests."""
        if self._context is None:
            raise RuntimeError("Browser not launched")
        self._page = await self._context.new_page()
        self._page.on("request", self._on_request)
        return self._page

    def _on_request(self, request):
        self.request_count += 1

    async def goto(self, url: str, timeout: int = 30000, wait_until: str = "networkidle"):
        """Navigate the current page to url."""
        if self._page is None:
            await self.new_page()
        await self._page.goto(url, timeout=timeout, wait_until=wait_until)

    async def cookies(self) -> List[RawCookie]:
        """Return every cookie visible to the browser context."""
        if self._context is None:
            return []
        raw = await self._context.cookies()
        return [
            RawCookie(
                name=c.get("name", ""),
                value=c.get("value", ""),
                domain=c.get("domain", ""),
                path=c.get("path", "/"),
                expires=c.get("expires", -1),
                http_only=c.get("httpOnly", False),
                secure=c.get("secure", False),
                same_site=c.get("sameSite"),
            )
            for c in raw
        ]

    async def close(self):
        """Close the browser and stop Playwright. Safe to call more than once."""
        try:
            if self._browser is not None:
                await self._browser.close()
        except Exception as e:
            logger.warning(f"Failed to close browser: {e}")
        finally:
            self._browser = None
            self._context = None
            self._page = None
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                except Exception as e:
                    logger.warning(f"Failed to stop Playwright: {e}")
                self._playwright = None
