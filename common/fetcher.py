"""
Page fetching for all extractors.

Two strategies share one contract: a plain HTTP GET through httpx, and a headless
Chromium render through Playwright for client-rendered product pages. Both raise the
FetchError family from common.exceptions and run block detection on what they get back.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from pydantic import BaseModel

from common.exceptions import BlockedError, FetchTimeoutError, HTTPStatusError, NetworkError
from common.utils import strip_www
from config import config

logger = logging.getLogger(__name__)

FETCH_MODES = ("http", "browser")

BLOCK_STATUSES = (403, 429)

# Challenge pages served by bot-protection vendors
BLOCK_BODY_MARKERS = (
    "captcha-delivery.com",
    "datadome",
    "px-captcha",
    "_pxCaptcha",
    "cf-challenge",
    "challenge-platform",
    "Pardon Our Interruption",
    "Robot or human?",
)

BLOCK_TITLE_PATTERN = re.compile(
    r"<title[^>]*>[^<]*(Access Denied|Attention Required|Just a moment\.\.\.|Blocked)[^<]*</title>",
    re.IGNORECASE,
)

DNS_ERROR_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
    "no address associated",
    "enotfound",
)


class FetchResult(BaseModel):
    """What a fetch returns: final URL, status, body and, for JSON responses, the parsed payload."""

    url: str
    status: int
    html: str = ""
    data: Optional[Any] = None
    headers: Dict[str, str] = {}


def detect_block(status: int, headers: Dict[str, str], body: str) -> Optional[str]:
    """Return a human readable block reason, or None when the response looks like a real page."""
    if status in BLOCK_STATUSES:
        return f"Blocked: HTTP {status}"
    lowered_headers = {k.lower() for k in (headers or {})}
    if "x-datadome" in lowered_headers and status != 200:
        return "Blocked: DataDome protection"
    if not body:
        return None
    # Challenge pages are small; only scan the head of large documents
    head = body[:20000]
    for marker in BLOCK_BODY_MARKERS:
        if marker in head:
            return f"Blocked: bot protection page ({marker})"
    if BLOCK_TITLE_PATTERN.search(head):
        return "Blocked: access denied page"
    return None


def _is_dns_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in DNS_ERROR_MARKERS)


class Fetcher:
    """Fetches pages over HTTP or through a headless browser.

    ``transport`` and ``playwright_factory`` exist so tests can substitute fakes for the
    network and the browser.
    """

    def __init__(self, settings=None, transport: Optional[httpx.AsyncBaseTransport] = None, playwright_factory=None):
        self.settings = settings or config
        self._transport = transport
        self._playwright_factory = playwright_factory or async_playwright

    @property
    def browser_enabled(self) -> bool:
        return self.settings.browser.enabled

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.scraper.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        }

    async def fetch(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        follow_redirects: bool = True,
        mode: str = "http",
        wait_for: Optional[str] = None,
        js_code: Optional[str] = None,
    ) -> FetchResult:
        """Fetch ``url`` and return a FetchResult.

        Raises NetworkError, FetchTimeoutError, BlockedError or HTTPStatusError. A timeout is
        retried at most ``settings.scraper.timeout_retries`` times; nothing else is retried.
        """
        if mode not in FETCH_MODES:
            raise ValueError(f"Unknown fetch mode: {mode}")

        attempts = max(self.settings.scraper.timeout_retries, 0) + 1
        for attempt in range(attempts):
            try:
                if mode == "browser":
                    return await self._fetch_browser(url, headers, timeout, wait_for, js_code)
                return await self._fetch_http(url, headers, timeout, max_redirects, follow_redirects)
            except FetchTimeoutError:
                if attempt == attempts - 1:
                    raise
                logger.warning(f"Timeout fetching {url} ({mode}), retry {attempt + 1}/{attempts - 1}")
        # Unreachable: the loop either returns or raises
        raise FetchTimeoutError(url, f"Timed out fetching {url}")

    async def _fetch_http(self, url, headers, timeout, max_redirects, follow_redirects, allow_bare_host=True):
        request_headers = self.default_headers()
        if headers:
            request_headers.update(headers)

        client_kwargs = {
            "timeout": httpx.Timeout(timeout or self.settings.scraper.request_timeout),
            "follow_redirects": follow_redirects,
            "max_redirects": max_redirects if max_redirects is not None else self.settings.scraper.max_redirects,
            "headers": request_headers,
        }
        if self._transport is not None:
            client_kwargs["transport"] = self._transport
        else:
            proxy = self.settings.proxy.proxy_for(url)
            if proxy:
                logger.info(f"Using proxy for: {url}")
                client_kwargs["proxy"] = proxy

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.get(url)
        except httpx.TimeoutException as e:
            raise FetchTimeoutError(url, f"Timed out fetching {url}") from e
        except httpx.TooManyRedirects as e:
            raise NetworkError(url, f"Too many redirects for {url}") from e
        except httpx.ConnectError as e:
            bare_url = strip_www(url) if allow_bare_host and _is_dns_error(e) else None
            if bare_url:
                logger.info(f"DNS lookup failed for {url}, retrying without www: {bare_url}")
                return await self._fetch_http(
                    bare_url, headers, timeout, max_redirects, follow_redirects, allow_bare_host=False
                )
            raise NetworkError(url, f"Could not connect to {url}: {e}") from e
        except httpx.TransportError as e:
            raise NetworkError(url, f"Network error fetching {url}: {e}") from e
        except httpx.InvalidURL as e:
            raise NetworkError(url, f"Invalid URL {url}: {e}") from e

        text = response.text
        response_headers = dict(response.headers)
        reason = detect_block(response.status_code, response_headers, text)
        if reason:
            logger.warning(f"{reason} for {url}")
            raise BlockedError(url, reason, status=response.status_code)
        # The redirect resolver reads unfollowed responses as they come
        if follow_redirects and response.status_code >= 400:
            logger.info(f"HTTP {response.status_code} for {url}")
            raise HTTPStatusError(url, f"HTTP {response.status_code} fetching {url}", status=response.status_code)

        data = None
        if "json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except (json.JSONDecodeError, ValueError) as e:
                logger.debug(f"Response from {url} claims JSON but does not parse: {e}")

        return FetchResult(
            url=str(response.url),
            status=response.status_code,
            html=text,
            data=data,
            headers=response_headers,
        )

    async def _fetch_browser(self, url, headers, timeout, wait_for, js_code):
        browser_settings = self.settings.browser
        page_timeout = int(timeout * 1000) if timeout else browser_settings.page_timeout_ms
        launch_kwargs = {"headless": browser_settings.headless}
        if browser_settings.executable_path:
            launch_kwargs["executable_path"] = browser_settings.executable_path

        # Launch, context and content calls can fail too; all of it surfaces as a FetchError
        try:
            async with self._playwright_factory() as p:
                browser = await p.chromium.launch(**launch_kwargs)
                try:
                    context = await browser.new_context(
                        user_agent=self.settings.scraper.user_agent,
                        extra_http_headers=headers or {},
                        viewport={"width": 1366, "height": 900},
                    )
                    page = await context.new_page()
                    try:
                        response = await page.goto(url, wait_until="domcontentloaded", timeout=page_timeout)
                    except PlaywrightTimeoutError as e:
                        raise FetchTimeoutError(url, f"Page load timed out for {url}") from e
                    except PlaywrightError as e:
                        raise NetworkError(url, f"Browser could not load {url}: {e}") from e

                    if wait_for:
                        try:
                            await page.wait_for_selector(wait_for, timeout=browser_settings.selector_timeout_ms)
                        except PlaywrightTimeoutError:
                            logger.info(f"Selector {wait_for!r} did not appear on {url}, continuing without it")

                    if js_code:
                        try:
                            await page.evaluate(js_code)
                            await page.wait_for_timeout(1000)
                        except PlaywrightError as e:
                            logger.debug(f"Expansion script failed on {url}: {e}")

                    html = await page.content()
                    status = response.status if response else 200
                    response_headers = await response.all_headers() if response else {}
                    final_url = page.url or url
                finally:
                    await browser.close()
        except PlaywrightTimeoutError as e:
            raise FetchTimeoutError(url, f"Browser timed out on {url}") from e
        except PlaywrightError as e:
            logger.warning(f"Browser session failed for {url}: {e}")
            raise NetworkError(url, f"Browser session failed for {url}: {e}") from e

        reason = detect_block(status, response_headers, html)
        if reason:
            logger.warning(f"{reason} for {url} (browser)")
            raise BlockedError(url, reason, status=status)
        if status >= 400:
            logger.info(f"HTTP {status} for {url} (browser)")
            raise HTTPStatusError(url, f"HTTP {status} fetching {url}", status=status)

        return FetchResult(url=final_url, status=status, html=html, headers=response_headers)
