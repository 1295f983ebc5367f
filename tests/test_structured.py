import json
import os
import sys

from bs4 import BeautifulSoup

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from scrapers.sites import DEFAULT_STATE_PATTERNS
from scrapers.structured import (
    ParseOutcome,
    extract_embedded_state,
    extract_json_ld,
    extract_meta,
    product_from_json_ld,
    product_from_state,
    summarize_outcomes,
)


def ld_script(data):
    return f'<script type="application/ld+json">{json.dumps(data)}</script>'


def soup_of(*parts):
    return BeautifulSoup("<html><head>" + "".join(parts) + "</head><body></body></html>", "html.parser")


PRODUCT = {
    "@context": "https://schema.org",
    "@type": "Product",
    "name": "Linen Shirt",
    "brand": {"@type": "Brand", "name": "Everlane"},
    "image": [{"@type": "ImageObject", "url": "https://cdn.shop.com/1.jpg"}, "https://cdn.shop.com/2.jpg"],
    "description": "<p>Breathable linen</p>",
    "sku": "LS-1",
    "offers": {"@type": "Offer", "price": "49.99", "priceCurrency": "USD", "availability": "https://schema.org/InStock"},
}


def test_plain_product_node():
    products, outcomes = extract_json_ld(soup_of(ld_script(PRODUCT)))
    assert len(products) == 1
    assert outcomes == [ParseOutcome(source="json-ld[0]", value=1)]

    record = product_from_json_ld(products[0])
    assert record["name"] == "Linen Shirt"
    assert record["brand"] == "Everlane"
    assert record["price"] == "49.99"
    assert record["currency"] == "USD"
    assert record["in_stock"] is True
    assert record["images"] == ["https://cdn.shop.com/1.jpg", "https://cdn.shop.com/2.jpg"]
    assert record["description"] == "Breathable linen"
    assert record["sku"] == "LS-1"


def test_graph_and_list_containers():
    graph = {"@context": "https://schema.org", "@graph": [{"@type": "WebPage"}, dict(PRODUCT, name="In Graph")]}
    listed = [{"@type": "BreadcrumbList"}, dict(PRODUCT, name="In List")]
    products, _ = extract_json_ld(soup_of(ld_script(graph), ld_script(listed)))
    assert [p["name"] for p in products] == ["In Graph", "In List"]


def test_type_list_and_aggregate_offer():
    node = {
        "@type": ["Product", "Thing"],
        "name": "Boot",
        "brand": "Acme",
        "image": "https://cdn.shop.com/boot.jpg",
        "offers": [{"@type": "AggregateOffer", "lowPrice": 120, "highPrice": 180}],
    }
    products, _ = extract_json_ld(soup_of(ld_script(node)))
    record = product_from_json_ld(products[0])
    assert record["price"] == 120
    assert record["brand"] == "Acme"
    assert record["images"] == ["https://cdn.shop.com/boot.jpg"]


def test_strikethrough_price_specification():
    node = dict(
        PRODUCT,
        offers={
            "@type": "Offer",
            "price": "75.00",
            "priceSpecification": {"@type": "UnitPriceSpecification", "priceType": "https://schema.org/StrikethroughPrice", "price": "100.00"},
        },
    )
    record = product_from_json_ld(node)
    assert record["price"] == "75.00"
    assert record["original_price"] == "100.00"


def test_invalid_block_is_reported_not_fatal():
    broken = '<script type="application/ld+json">{"@type": "Product", name: }</script>'
    products, outcomes = extract_json_ld(soup_of(broken, ld_script(PRODUCT)))
    assert len(products) == 1
    assert not outcomes[0].ok
    assert "invalid JSON" in outcomes[0].error
    assert outcomes[1].ok


def test_embedded_window_state():
    html = '<script>window.__INITIAL_STATE__ = {"page": {"product": {"name": "Wool Coat", "price": {"value": 320}, "brand": "Aritzia"}}};</script>'
    state, outcomes = extract_embedded_state(html, DEFAULT_STATE_PATTERNS)
    assert outcomes[0].ok
    record = product_from_state(state)
    assert record == {"name": "Wool Coat", "price": 320, "brand": "Aritzia"}


def test_next_data_script_tag():
    payload = {"props": {"pageProps": {"product": {"title": "Knit Top", "currentPrice": "58.00"}}}}
    html = f'<script id="__NEXT_DATA__" type="application/json">{json.dumps(payload)}</script>'
    state, _ = extract_embedded_state(html, DEFAULT_STATE_PATTERNS)
    assert product_from_state(state)["name"] == "Knit Top"
    assert product_from_state(state)["price"] == "58.00"


def test_broken_state_yields_failed_outcome():
    html = "<script>window.__PRELOADED_STATE__ = {not json};</script>"
    state, outcomes = extract_embedded_state(html, DEFAULT_STATE_PATTERNS)
    assert state is None
    assert len(outcomes) == 1 and not outcomes[0].ok


def test_extract_meta():
    soup = soup_of(
        '<meta property="og:title" content="Ribbed Tank">',
        '<meta property="og:image" content="https://cdn.shop.com/tank.jpg">',
        '<meta property="product:price:amount" content="38.00">',
        '<meta property="product:brand" content="COS">',
        '<meta name="description" content="A ribbed tank">',
    )
    assert extract_meta(soup) == {
        "name": "Ribbed Tank",
        "image": "https://cdn.shop.com/tank.jpg",
        "price": "38.00",
        "brand": "COS",
        "description": "A ribbed tank",
    }


def test_summarize_outcomes_counts_failures():
    outcomes = [ParseOutcome(source="a", value=1), ParseOutcome(source="b", error="bad"), ParseOutcome(source="c", error="bad")]
    assert summarize_outcomes(outcomes, "https://shop.com/p") == {"attempted": 3, "failed": 2}
