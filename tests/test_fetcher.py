import os
import sys

import httpx
import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from conftest import PRODUCT_HTML, FakePlaywright

from common.exceptions import BlockedError, FetchTimeoutError, HTTPStatusError, NetworkError
from common.fetcher import Fetcher, detect_block
from config import BrowserSettings, ScraperConfig, config

SETTINGS = config.model_copy(
    update={"scraper": ScraperConfig(timeout_retries=1), "browser": BrowserSettings(enabled=True)}
)


def fetcher_for(handler):
    return Fetcher(settings=SETTINGS, transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "status,headers,body,blocked",
    [
        (200, {}, PRODUCT_HTML, False),
        (403, {}, "", True),
        (429, {}, PRODUCT_HTML, True),
        (401, {"X-DataDome": "protected"}, "", True),
        (200, {}, '<script src="https://geo.captcha-delivery.com/c.js"></script>', True),
        (200, {}, "<title>Access Denied</title>", True),
        (200, {}, "<title>Just a moment...</title>", True),
        (404, {}, "<title>Not found</title>", False),
    ],
)
def test_detect_block(status, headers, body, blocked):
    assert (detect_block(status, headers, body) is not None) is blocked


@pytest.mark.asyncio
async def test_http_fetch_returns_page():
    fetcher = fetcher_for(lambda request: httpx.Response(200, html=PRODUCT_HTML))
    result = await fetcher.fetch("https://tibi.com/products/wrap-dress")
    assert result.status == 200
    assert result.html == PRODUCT_HTML
    assert result.url == "https://tibi.com/products/wrap-dress"
    assert result.data is None


@pytest.mark.asyncio
async def test_http_fetch_parses_json():
    fetcher = fetcher_for(lambda request: httpx.Response(200, json={"product": {"title": "Wrap Dress"}}))
    result = await fetcher.fetch("https://tibi.com/products/wrap-dress.json")
    assert result.data == {"product": {"title": "Wrap Dress"}}


@pytest.mark.asyncio
async def test_http_sends_user_agent_and_extra_headers():
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(200, html=PRODUCT_HTML)

    await fetcher_for(handler).fetch("https://tibi.com/p", headers={"Accept": "application/json"})
    assert seen["user-agent"] == SETTINGS.scraper.user_agent
    assert seen["accept"] == "application/json"


@pytest.mark.asyncio
async def test_http_block_status_raises():
    fetcher = fetcher_for(lambda request: httpx.Response(403, html="Forbidden"))
    with pytest.raises(BlockedError) as exc_info:
        await fetcher.fetch("https://www.zara.com/us/en/shirt-p1.html")
    assert exc_info.value.status == 403


@pytest.mark.asyncio
async def test_http_challenge_page_raises():
    fetcher = fetcher_for(lambda request: httpx.Response(200, html='<div id="px-captcha"></div>'))
    with pytest.raises(BlockedError):
        await fetcher.fetch("https://www.ssense.com/en-us/p")


@pytest.mark.asyncio
async def test_timeout_is_retried_once():
    calls = []

    def handler(request):
        calls.append(request.url)
        raise httpx.ReadTimeout("read timed out", request=request)

    with pytest.raises(FetchTimeoutError):
        await fetcher_for(handler).fetch("https://slow.example/p")
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_timeout_then_success():
    calls = []

    def handler(request):
        calls.append(request.url)
        if len(calls) == 1:
            raise httpx.ConnectTimeout("connect timed out", request=request)
        return httpx.Response(200, html=PRODUCT_HTML)

    result = await fetcher_for(handler).fetch("https://slow.example/p")
    assert result.status == 200
    assert len(calls) == 2


@pytest.mark.asyncio
async def test_connection_refused_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(NetworkError):
        await fetcher_for(handler).fetch("https://www.down.example/p")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_dns_failure_retries_without_www():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        if request.url.host.startswith("www."):
            raise httpx.ConnectError("[Errno -2] Name or service not known", request=request)
        return httpx.Response(200, html=PRODUCT_HTML)

    result = await fetcher_for(handler).fetch("https://www.boutique.example/products/top")
    assert hosts == ["www.boutique.example", "boutique.example"]
    assert result.url == "https://boutique.example/products/top"


@pytest.mark.asyncio
async def test_dns_failure_without_www_raises():
    def handler(request):
        raise httpx.ConnectError("getaddrinfo ENOTFOUND", request=request)

    with pytest.raises(NetworkError):
        await fetcher_for(handler).fetch("https://gone.example/p")


@pytest.mark.asyncio
async def test_redirects_can_be_left_unfollowed():
    def handler(request):
        return httpx.Response(301, headers={"Location": "https://tibi.com/products/wrap-dress"})

    result = await fetcher_for(handler).fetch("https://bit.ly/abc", follow_redirects=False)
    assert result.status == 301
    assert result.headers["location"] == "https://tibi.com/products/wrap-dress"



@pytest.mark.asyncio
async def test_http_error_status_raises():
    fetcher = fetcher_for(lambda request: httpx.Response(404, html="<title>Page Not Found</title>"))
    with pytest.raises(HTTPStatusError) as exc_info:
        await fetcher.fetch("https://www.everlane.com/products/womens-gone-tee")
    assert exc_info.value.status == 404
    assert "404" in str(exc_info.value)


@pytest.mark.asyncio
async def test_server_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(503, html="Service Unavailable")

    with pytest.raises(HTTPStatusError):
        await fetcher_for(handler).fetch("https://tibi.com/products/wrap-dress")
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_error_status_is_returned_when_redirects_are_unfollowed():
    fetcher = fetcher_for(lambda request: httpx.Response(404, html="gone"))
    result = await fetcher.fetch("https://bit.ly/gone", follow_redirects=False)
    assert result.status == 404


@pytest.mark.asyncio
async def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        await Fetcher(settings=SETTINGS).fetch("https://tibi.com/p", mode="carrier-pigeon")


@pytest.mark.asyncio
async def test_browser_fetch_renders_and_closes():
    env = FakePlaywright()
    fetcher = Fetcher(settings=SETTINGS, playwright_factory=env)
    result = await fetcher.fetch("https://www.farfetch.com/p", mode="browser", wait_for="h1", js_code="1 + 1")
    assert result.html == PRODUCT_HTML
    assert result.url == "https://www.farfetch.com/p"
    assert env.waited_for == ["h1"]
    assert env.scripts == ["1 + 1"]
    assert env.launches == env.closes == 1


@pytest.mark.asyncio
async def test_browser_timeout_retries_and_always_closes():
    env = FakePlaywright(goto_error=PlaywrightTimeoutError("Timeout 45000ms exceeded"))
    fetcher = Fetcher(settings=SETTINGS, playwright_factory=env)
    with pytest.raises(FetchTimeoutError):
        await fetcher.fetch("https://www.farfetch.com/p", mode="browser")
    assert env.launches == 2
    assert env.closes == 2


@pytest.mark.asyncio
async def test_missing_selector_is_not_fatal():
    env = FakePlaywright(selector_error=PlaywrightTimeoutError("waiting for selector"))
    result = await Fetcher(settings=SETTINGS, playwright_factory=env).fetch(
        "https://www.farfetch.com/p", mode="browser", wait_for="[data-component=\"PriceLarge\"]"
    )
    assert result.status == 200


@pytest.mark.asyncio
async def test_browser_block_raises_after_close():
    env = FakePlaywright(status=403)
    with pytest.raises(BlockedError):
        await Fetcher(settings=SETTINGS, playwright_factory=env).fetch("https://www.zara.com/p", mode="browser")
    assert env.closes == 1


def test_browser_enabled_follows_settings():
    disabled = config.model_copy(update={"browser": BrowserSettings(enabled=False)})
    assert Fetcher(settings=disabled).browser_enabled is False
    assert Fetcher(settings=SETTINGS).browser_enabled is True


@pytest.mark.asyncio
async def test_browser_error_status_raises_after_close():
    env = FakePlaywright(status=404)
    with pytest.raises(HTTPStatusError) as exc_info:
        await Fetcher(settings=SETTINGS, playwright_factory=env).fetch("https://www.farfetch.com/p", mode="browser")
    assert exc_info.value.status == 404
    assert env.closes == 1


@pytest.mark.asyncio
async def test_browser_launch_failure_is_a_network_error():
    env = FakePlaywright(launch_error=PlaywrightError("Executable doesn't exist at /ms-playwright/chromium"))
    with pytest.raises(NetworkError) as exc_info:
        await Fetcher(settings=SETTINGS, playwright_factory=env).fetch("https://www.farfetch.com/p", mode="browser")
    assert "Executable doesn't exist" in str(exc_info.value)
    assert env.launches == 1
    assert env.closes == 0


@pytest.mark.asyncio
async def test_browser_context_failure_closes_browser():
    env = FakePlaywright(context_error=PlaywrightError("Target page, context or browser has been closed"))
    with pytest.raises(NetworkError):
        await Fetcher(settings=SETTINGS, playwright_factory=env).fetch("https://www.farfetch.com/p", mode="browser")
    assert env.closes == 1
