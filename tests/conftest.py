import os
import sys

import pytest

# Ensure project root is in sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from common.exceptions import NetworkError
from common.fetcher import FetchResult
from config import BrowserSettings, config


def page(html="", url="https://example.com", status=200, headers=None, data=None):
    return FetchResult(url=url, status=status, html=html, headers=headers or {}, data=data)


def redirect(url, location, status=301):
    return page(url=url, status=status, headers={"location": location})


class FakeFetcher:
    """Serves canned pages by URL. Unknown URLs fail like a DNS miss."""

    def __init__(self, pages=None, browser_pages=None, browser_enabled=False):
        self.pages = pages or {}
        self.browser_pages = browser_pages or {}
        self.browser_enabled = browser_enabled
        self.calls = []

    async def fetch(
        self,
        url,
        headers=None,
        timeout=None,
        max_redirects=None,
        follow_redirects=True,
        mode="http",
        wait_for=None,
        js_code=None,
    ):
        self.calls.append({"url": url, "mode": mode, "follow_redirects": follow_redirects, "timeout": timeout})
        source = self.browser_pages if mode == "browser" else self.pages
        if url not in source:
            raise NetworkError(url, f"getaddrinfo ENOTFOUND {url}")
        value = source[url]
        if isinstance(value, Exception):
            raise value
        if isinstance(value, FetchResult):
            return value
        return page(value, url=url)


PRODUCT_HTML = "<html><head><title>Wrap Dress</title></head><body><h1>Wrap Dress</h1></body></html>"


class FakeResponse:
    def __init__(self, status, headers=None):
        self.status = status
        self._headers = headers or {}

    async def all_headers(self):
        return self._headers


class FakePage:
    def __init__(self, env):
        self.env = env
        self.url = ""

    async def goto(self, url, wait_until=None, timeout=None):
        if self.env.goto_error:
            raise self.env.goto_error
        self.url = url
        return FakeResponse(self.env.status)

    async def wait_for_selector(self, selector, timeout=None):
        self.env.waited_for.append(selector)
        if self.env.selector_error:
            raise self.env.selector_error

    async def evaluate(self, script):
        self.env.scripts.append(script)

    async def wait_for_timeout(self, ms):
        return None

    async def content(self):
        return self.env.html


class FakeBrowser:
    def __init__(self, env):
        self.env = env

    async def new_context(self, **kwargs):
        if self.env.context_error:
            raise self.env.context_error
        return self

    async def new_page(self):
        return FakePage(self.env)

    async def close(self):
        self.env.closes += 1


class FakePlaywright:
    """Stands in for ``async_playwright``: call it, then use it as an async context manager."""

    def __init__(
        self,
        html=PRODUCT_HTML,
        status=200,
        goto_error=None,
        selector_error=None,
        launch_error=None,
        context_error=None,
    ):
        self.html = html
        self.status = status
        self.goto_error = goto_error
        self.selector_error = selector_error
        self.launch_error = launch_error
        self.context_error = context_error
        self.launches = 0
        self.closes = 0
        self.waited_for = []
        self.scripts = []

    def __call__(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    @property
    def chromium(self):
        return self

    async def launch(self, **kwargs):
        self.launches += 1
        if self.launch_error:
            raise self.launch_error
        return FakeBrowser(self)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher()


@pytest.fixture
def settings_no_browser():
    return config.model_copy(update={"browser": BrowserSettings(enabled=False)})
