import json
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from conftest import FakeFetcher, redirect

from common.exceptions import BlockedError
from common.fetcher import Fetcher
from scrapers.classifier import HandlerId
from scrapers.generic import GenericExtractor
from scrapers.router import NO_DATA_ERROR, HandlerSpec, ProductRouter, build_registry
from scrapers.shopify import ShopifyExtractor
from scrapers.sites import GENERIC_SITE, SHOPIFY_SITE, SITES

AMAZON = "https://www.amazon.com/dp/B0TEST1234"
ZARA = "https://www.zara.com/us/en/linen-shirt-p0123.html"
SHORT = "https://bit.ly/3xYz"
TIBI = "https://tibi.com/products/wrap-dress"

AMAZON_HTML = (
    '<html><head><script type="application/ld+json">'
    + json.dumps(
        {
            "@type": "Product",
            "name": "Insulated Water Bottle",
            "brand": {"name": "Hydro Flask"},
            "image": "https://m.media-amazon.com/images/I/bottle.jpg",
            "offers": {"price": "29.99", "priceCurrency": "USD"},
        }
    )
    + "</script></head><body></body></html>"
)

TIBI_HTML = (
    '<script>var meta = {"product": {"title": "Wrap Dress", "vendor": "TIBI", '
    '"images": ["//cdn.shopify.com/s/files/dress_800x800.jpg"], '
    '"variants": [{"option1": "S", "price": 39500, "compare_at_price": 49500, "available": true}]}};</script>'
)


def make_router(pages, settings, **kwargs):
    fetcher = FakeFetcher(pages)
    return ProductRouter(fetcher=fetcher, settings=settings, **kwargs), fetcher


@pytest.mark.asyncio
async def test_structured_data_success(settings_no_browser):
    router, fetcher = make_router({AMAZON: AMAZON_HTML}, settings_no_browser)
    result = await router.scrape_product(AMAZON)
    assert result.success is True
    assert result.error is None
    assert result.product.name == "Insulated Water Bottle"
    assert result.product.brand == "Hydro Flask"
    assert result.product.sale_price == 29.99
    assert result.product.vendor_url == AMAZON
    assert [call["mode"] for call in fetcher.calls] == ["http"]


@pytest.mark.asyncio
async def test_unreachable_host_returns_envelope_without_product(settings_no_browser):
    router, _ = make_router({}, settings_no_browser)
    result = await router.scrape_product(ZARA)
    assert result.success is False
    assert result.product is None
    assert "ENOTFOUND" in result.error
    assert result.to_dict() == {"success": False, "product": None, "error": result.error}


@pytest.mark.asyncio
async def test_blocked_site_returns_shaped_product(settings_no_browser):
    router, _ = make_router({ZARA: BlockedError(ZARA, "Blocked: HTTP 403", status=403)}, settings_no_browser)
    result = await router.scrape_product(ZARA)
    assert result.success is False
    assert result.error == "Blocked: HTTP 403"
    assert result.product.blocked is True
    assert result.product.brand == "Zara"
    assert result.product.name == "Linen Shirt"
    assert result.product.in_stock is False


@pytest.mark.asyncio
async def test_short_link_is_resolved_then_dispatched(settings_no_browser):
    router, _ = make_router({SHORT: redirect(SHORT, TIBI), TIBI: TIBI_HTML}, settings_no_browser)
    result = await router.scrape_product(SHORT)
    assert result.success is True
    product = result.product
    assert product.name == "Wrap Dress"
    assert product.sale_price == 395.0
    assert product.is_on_sale is True
    assert product.discount_percentage == 20
    assert product.platform == "shopify"
    assert product.vendor_url == TIBI
    assert product.redirect.original_url == SHORT
    assert product.redirect.redirect_count == 1

    data = result.to_dict()
    assert data["product"]["originalUrl"] == SHORT
    assert data["product"]["finalUrl"] == TIBI
    assert data["product"]["product_name"] == data["product"]["name"] == "Wrap Dress"


@pytest.mark.asyncio
async def test_redirect_loop_keeps_where_the_chain_ended(settings_no_browser):
    other = "https://rstyle.me/n/abc"
    router, _ = make_router({SHORT: redirect(SHORT, other), other: redirect(other, SHORT)}, settings_no_browser)
    result = await router.scrape_product(SHORT)
    assert result.success is False
    assert result.error == "Redirect loop detected"
    product = result.product
    assert product.vendor_url == other
    assert product.needs_manual_check is True
    assert product.in_stock is False
    assert product.redirect.original_url == SHORT
    assert product.redirect.redirect_count == 1

    data = result.to_dict()
    assert data["product"]["finalUrl"] == other
    assert data["product"]["redirectCount"] == 1
    assert data["product"]["needsManualCheck"] is True


@pytest.mark.asyncio
async def test_redirect_chain_past_hop_ceiling(settings_no_browser):
    hops = [f"https://bit.ly/hop{i}" for i in range(12)]
    pages = {hop: redirect(hop, nxt) for hop, nxt in zip(hops, hops[1:])}
    router, _ = make_router(pages, settings_no_browser)
    result = await router.scrape_product(hops[0])
    assert result.success is False
    assert "too many redirects" in result.error
    assert result.product.redirect.redirect_count == settings_no_browser.scraper.max_redirect_hops
    assert result.to_dict()["product"]["finalUrl"] == hops[settings_no_browser.scraper.max_redirect_hops]


@pytest.mark.asyncio
async def test_missing_product_page_is_a_failure(settings_no_browser):
    url = "https://www.everlane.com/products/womens-gone-tee"
    html = '<html><head><meta property="og:title" content="Page Not Found"></head><body><h1>Page Not Found</h1></body></html>'
    fetcher = Fetcher(settings=settings_no_browser, transport=httpx.MockTransport(lambda request: httpx.Response(404, html=html)))
    router = ProductRouter(fetcher=fetcher, settings=settings_no_browser)
    result = await router.scrape_product(url)
    assert result.success is False
    assert result.product is None
    assert "404" in result.error


@pytest.mark.asyncio
async def test_redirect_host_without_hops_falls_back_to_generic(settings_no_browser):
    url = "https://shopmy.us/collections/spring-top"
    router, _ = make_router({url: "<html><body><h1>Spring Top</h1><span class='price'>$30</span></body></html>"}, settings_no_browser)
    result = await router.scrape_product(url)
    assert result.success is True
    assert result.product.platform == "generic"
    assert result.product.redirect.redirect_count == 0


@pytest.mark.asyncio
async def test_unknown_shopify_store_is_detected(settings_no_browser):
    url = "https://www.small-boutique.com/products/ribbed-top"
    html = '<html><head><script src="https://cdn.shopify.com/s/theme.js"></script></head><body><h1>Ribbed Top</h1><span class="price">$45.00</span></body></html>'
    router, fetcher = make_router({url: html}, settings_no_browser)
    result = await router.scrape_product(url)
    assert result.success is True
    assert result.product.platform == "shopify"
    assert result.product.brand == "Small Boutique"
    assert fetcher.calls[0]["timeout"] == settings_no_browser.scraper.probe_timeout


@pytest.mark.asyncio
async def test_fallback_policy_uses_shopify_check(settings_no_browser):
    detector = MagicMock()
    detector.is_shopify_store = AsyncMock(return_value=True)
    router = ProductRouter(fetcher=FakeFetcher(), platform_detector=detector, settings=settings_no_browser)
    assert await router.fallback_policy("https://unknown.example/p") == HandlerId.SHOPIFY
    detector.is_shopify_store.assert_awaited_once_with(
        "https://unknown.example/p", timeout=settings_no_browser.scraper.probe_timeout
    )

    detector.is_shopify_store = AsyncMock(return_value=False)
    assert await router.fallback_policy("https://unknown.example/p") == HandlerId.GENERIC


@pytest.mark.asyncio
async def test_invalid_url(settings_no_browser):
    router, fetcher = make_router({}, settings_no_browser)
    result = await router.scrape_product("not a url")
    assert result.success is False
    assert result.product is None
    assert "Invalid URL" in result.error
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_unexpected_extractor_failure_is_contained(settings_no_browser):
    def exploding_factory(fetcher, browser_enabled):
        raise RuntimeError("factory exploded")

    registry = build_registry()
    registry[HandlerId.AMAZON] = HandlerSpec(HandlerId.AMAZON, SITES[HandlerId.AMAZON], exploding_factory)
    router, _ = make_router({AMAZON: AMAZON_HTML}, settings_no_browser, registry=registry)
    result = await router.scrape_product(AMAZON)
    assert result.to_dict() == {"success": False, "product": None, "error": "factory exploded"}


@pytest.mark.asyncio
async def test_handler_without_extractor(settings_no_browser):
    registry = build_registry()
    registry[HandlerId.AMAZON] = HandlerSpec(HandlerId.AMAZON, SITES[HandlerId.AMAZON])
    router, fetcher = make_router({AMAZON: AMAZON_HTML}, settings_no_browser, registry=registry)
    result = await router.scrape_product(AMAZON)
    assert result.success is False
    assert result.error == "No extractor registered for amazon"
    assert fetcher.calls == []


@pytest.mark.asyncio
async def test_page_without_product_data(settings_no_browser):
    router, _ = make_router({AMAZON: "<html><body><p>Sign in</p></body></html>"}, settings_no_browser)
    result = await router.scrape_product(AMAZON)
    assert result.success is False
    assert result.error == NO_DATA_ERROR
    assert result.product is not None


@pytest.mark.asyncio
async def test_scrape_many_keeps_order(settings_no_browser):
    router, _ = make_router({AMAZON: AMAZON_HTML}, settings_no_browser)
    results = await router.scrape_many([ZARA, AMAZON], concurrency=2)
    assert [r.success for r in results] == [False, True]


def test_registry_covers_every_handler():
    registry = build_registry()
    assert set(registry) == set(HandlerId)
    for handler in (HandlerId.REDIRECT, HandlerId.SHOPSTYLE):
        assert registry[handler].resolves_redirect
        assert registry[handler].factory is None
    for handler in HandlerId:
        if not registry[handler].resolves_redirect:
            assert registry[handler].factory is not None
    extractor = registry[HandlerId.CHICLARA].factory(FakeFetcher(), False)
    assert isinstance(extractor, ShopifyExtractor)
    assert registry[HandlerId.AMAZON].requires_browser is True
    assert registry[HandlerId.ZARA].descriptor is SITES[HandlerId.ZARA]
    assert registry[HandlerId.SHOPIFY].descriptor is SHOPIFY_SITE
    assert registry[HandlerId.GENERIC].descriptor is GENERIC_SITE
    assert isinstance(registry[HandlerId.GENERIC].factory(FakeFetcher(), False), GenericExtractor)
