"""
Extractor for any Shopify storefront.

Shopify themes expose the product three ways, tried in order: a JSON blob embedded in the
page (``var meta = {...}`` or ``window.productJSON``), the ``<product-url>.json`` endpoint,
and finally the rendered HTML.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from common.exceptions import BlockedError, FetchError
from common.utils import clean_description, clean_image_urls, dedupe, domain_brand
from scrapers.engine import SelectorExtractor, blocked_record
from scrapers.sites import SHOPIFY_SITE, SiteDescriptor

logger = logging.getLogger(__name__)

EMBEDDED_PATTERNS = (
    (re.compile(r"var meta = (\{.*?\});", re.DOTALL), "product"),
    (re.compile(r"window\.productJSON\s*=\s*(\{.*?\});", re.DOTALL), None),
    (re.compile(r"<script[^>]*data-product-json[^>]*>(.*?)</script>", re.DOTALL), None),
)

SIZE_SUFFIX = re.compile(r"_\d+x\d+(?=\.)")
VERSION_QUERY = re.compile(r"\?v=\d+$")

# Stores whose vendor field is not the brand shoppers know
VENDOR_OVERRIDES = {"stussy.com": "Stussy"}

DEFAULT_OPTION = "Default Title"


def shopify_price(value: Any) -> Optional[float]:
    """Shopify prices arrive as ``"45.00"`` strings or as integer cents (``4500``)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        digits = re.sub(r"[^0-9.]", "", value)
        try:
            return float(digits) if digits else None
        except ValueError:
            return None
    if isinstance(value, int) and value > 100:
        return value / 100
    if isinstance(value, (int, float)):
        return float(value)
    return None


def clean_shopify_image(url: str) -> str:
    """Absolutize a Shopify CDN image and strip its size suffix and cache-busting query."""
    if not url:
        return ""
    if url.startswith("//"):
        url = f"https:{url}"
    url = SIZE_SUFFIX.sub("", url)
    return VERSION_QUERY.sub("", url)


def embedded_product(html: str) -> Optional[Dict[str, Any]]:
    """Return the product JSON embedded in a Shopify page, if any."""
    for pattern, key in EMBEDDED_PATTERNS:
        match = pattern.search(html or "")
        if not match:
            continue
        try:
            data = json.loads(match.group(1))
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Embedded Shopify JSON did not parse: {e}")
            continue
        product = data.get(key) if key else data
        if isinstance(product, dict) and product:
            return product
    return None


def product_json_url(url: str) -> str:
    return url.split("?")[0].split("#")[0].rstrip("/") + ".json"


def record_from_product(product: Dict[str, Any]) -> Dict[str, Any]:
    """Map a Shopify product object onto raw-record fields."""
    record: Dict[str, Any] = {}
    if product.get("title"):
        record["name"] = str(product["title"]).strip()
    if product.get("vendor"):
        record["brand"] = str(product["vendor"]).strip()
    if product.get("product_type") or product.get("type"):
        record["category"] = product.get("product_type") or product.get("type")

    description = product.get("description") or product.get("body_html")
    if description:
        record["description"] = clean_description(description)

    images: List[str] = []
    for image in product.get("images") or []:
        if isinstance(image, str):
            images.append(image)
        elif isinstance(image, dict) and (image.get("src") or image.get("url")):
            images.append(image.get("src") or image.get("url"))
    if not images and isinstance(product.get("image"), dict) and product["image"].get("src"):
        images.append(product["image"]["src"])
    elif not images and isinstance(product.get("featured_image"), str):
        images.append(product["featured_image"])
    if images:
        record["images"] = [clean_shopify_image(image) for image in images]

    variants = [v for v in product.get("variants") or [] if isinstance(v, dict)]
    if variants:
        sizes = dedupe(v.get("option1") for v in variants if v.get("option1") != DEFAULT_OPTION)
        colors = dedupe(v.get("option2") for v in variants)
        if sizes:
            record["sizes"] = sizes
        if colors:
            record["colors"] = colors

        variant = next((v for v in variants if v.get("available")), variants[0])
        price = shopify_price(variant.get("price"))
        if price is not None:
            record["price"] = price
        original = shopify_price(variant.get("compare_at_price"))
        if original:
            record["original_price"] = original
        if variant.get("sku"):
            record["sku"] = str(variant["sku"])
        if "available" in variant:
            record["in_stock"] = any(bool(v.get("available")) for v in variants)
    elif product.get("price") is not None:
        record["price"] = shopify_price(product["price"])
    return record


class ShopifyExtractor:
    """Universal Shopify extractor, also used for storefronts found by the platform probe."""

    def __init__(self, fetcher, descriptor: Optional[SiteDescriptor] = None, browser_enabled: Optional[bool] = None):
        self.fetcher = fetcher
        self.descriptor = descriptor or SHOPIFY_SITE
        # HTML fallback shares the selector engine, without browser escalation
        self.html = SelectorExtractor(self.descriptor, fetcher, browser_enabled=False)

    async def extract(self, url: str) -> Dict[str, Any]:
        try:
            return await self._extract(url)
        except BlockedError as e:
            logger.warning(f"Shopify store blocked {url}: {e}")
            return blocked_record(url, self._fallback_brand(url), str(e))
        except FetchError as e:
            logger.error(f"Error scraping Shopify store {url}: {e}")
            return {"url": url, "error": str(e)}
        except Exception as e:
            logger.exception(f"Shopify extraction failed for {url}")
            return {"url": url, "error": f"Extraction failed: {e}"}

    async def _extract(self, url: str) -> Dict[str, Any]:
        page = await self.fetcher.fetch(url)
        record: Dict[str, Any] = {}

        product = embedded_product(page.html)
        if product:
            logger.info(f"Found embedded Shopify product JSON on {url}")
            record.update(record_from_product(product))

        if not all(record.get(field) for field in ("name", "price", "images")):
            json_product = await self._fetch_product_json(url)
            if json_product:
                self._fill(record, record_from_product(json_product))

        html_record = self.html.parse(page.html, url, page.url)
        self._fill(record, html_record)

        for domain, brand in VENDOR_OVERRIDES.items():
            if domain in url:
                record["brand"] = brand
        if not record.get("brand"):
            record["brand"] = self._fallback_brand(url)

        images = [clean_shopify_image(image) for image in record.get("images") or []]
        record["images"] = clean_image_urls(images, page.url, limit=self.descriptor.image_limit)
        record["platform"] = "shopify"
        record["url"] = url
        return record

    async def _fetch_product_json(self, url: str) -> Optional[Dict[str, Any]]:
        json_url = product_json_url(url)
        logger.info(f"Fetching Shopify JSON endpoint: {json_url}")
        try:
            result = await self.fetcher.fetch(json_url, headers={"Accept": "application/json"})
        except FetchError as e:
            logger.info(f"JSON endpoint not available for {url}, using HTML parsing: {e}")
            return None
        data = result.data
        if data is None and result.html:
            try:
                data = json.loads(result.html)
            except (json.JSONDecodeError, ValueError):
                return None
        if result.status == 200 and isinstance(data, dict) and isinstance(data.get("product"), dict):
            return data["product"]
        return None

    def _fallback_brand(self, url: str) -> str:
        if self.descriptor is not SHOPIFY_SITE:
            return self.descriptor.brand_fallback
        return domain_brand(url).title() or self.descriptor.brand_fallback

    @staticmethod
    def _fill(record: Dict[str, Any], values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if value in (None, "", []):
                continue
            if record.get(key) in (None, "", []):
                record[key] = value
