"""
Descriptor driven product extraction.

One engine serves every retailer that is described in ``scrapers.sites``: fetch the page
(HTTP first, headless browser when the site needs it or HTTP came back thin), read
structured data, then fall back to the site's selectors and finally to meta tags.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from common.exceptions import BlockedError, FetchError
from common.fetcher import FetchResult
from common.utils import (
    clean_description,
    clean_image_urls,
    dedupe,
    extract_price_text,
    slug_to_title,
    truncate,
)
from scrapers.sites import FIELDS, SiteDescriptor
from scrapers.structured import (
    extract_embedded_state,
    extract_json_ld,
    extract_meta,
    product_from_json_ld,
    product_from_state,
    summarize_outcomes,
)

logger = logging.getLogger(__name__)

BLOCKED_DESCRIPTION = "Unable to fetch product details due to site protection"

ATTRIBUTE_SELECTOR = re.compile(r"^(.+)@([\w:-]+)$")

LIST_FIELDS = ("sizes", "colors")
PRICE_FIELDS = ("price", "original_price")
IMAGE_ATTRIBUTES = ("data-src", "data-original", "data-zoom-image", "data-lazy", "src")
SRCSET_ATTRIBUTES = ("srcset", "data-srcset")

# Option labels that are prompts, not values
OPTION_PROMPTS = re.compile(r"^(select|choose|pick)\b|^size$|^colou?r$", re.IGNORECASE)


def blocked_record(url: str, brand: str, error: str) -> Dict[str, Any]:
    """Minimal record for a page hidden behind bot protection."""
    return {
        "url": url,
        "name": slug_to_title(url),
        "brand": brand,
        "description": BLOCKED_DESCRIPTION,
        "images": [],
        "in_stock": False,
        "error": error,
        "blocked": True,
        "needs_manual_check": True,
    }


def largest_srcset_url(srcset: str) -> str:
    """Pick the last (largest) candidate of a srcset attribute."""
    entries = [entry.strip() for entry in (srcset or "").split(",") if entry.strip()]
    if not entries:
        return ""
    return entries[-1].split()[0]


def image_url(element) -> str:
    """Pull the best image URL off an ``img``, ``source`` or ``meta`` element."""
    if element.name == "meta":
        return element.get("content") or ""
    for attr in SRCSET_ATTRIBUTES:
        if element.get(attr):
            return largest_srcset_url(element[attr])
    for attr in IMAGE_ATTRIBUTES:
        value = element.get(attr)
        if value and not value.startswith("data:"):
            return value
    return ""


def _split_selector(selector: str):
    match = ATTRIBUTE_SELECTOR.match(selector)
    if match:
        return match.group(1), match.group(2)
    return selector, None


def _element_value(element, attr: Optional[str]) -> str:
    if attr:
        value = element.get(attr) or ""
        if attr in SRCSET_ATTRIBUTES:
            return largest_srcset_url(value)
        return value.strip()
    if element.name == "meta":
        return (element.get("content") or "").strip()
    return element.get_text(" ", strip=True)


class SelectorExtractor:
    """Extract a raw product record from any site that has a SiteDescriptor."""

    def __init__(self, descriptor: SiteDescriptor, fetcher, browser_enabled: Optional[bool] = None):
        self.descriptor = descriptor
        self.fetcher = fetcher
        self.browser_enabled = fetcher.browser_enabled if browser_enabled is None else browser_enabled

    async def extract(self, url: str) -> Dict[str, Any]:
        """Return a raw record. Never raises; failures come back as ``{url, error}`` records."""
        try:
            return await self._extract(url)
        except BlockedError as e:
            logger.warning(f"{self.descriptor.handler.value}: blocked on {url}: {e}")
            return blocked_record(url, self.descriptor.brand_fallback, str(e))
        except FetchError as e:
            logger.error(f"{self.descriptor.handler.value}: fetch failed for {url}: {e}")
            return {"url": url, "error": str(e)}
        except Exception as e:
            logger.exception(f"{self.descriptor.handler.value}: extraction failed for {url}")
            return {"url": url, "error": f"Extraction failed: {e}"}

    async def _extract(self, url: str) -> Dict[str, Any]:
        descriptor = self.descriptor
        if descriptor.requires_browser and self.browser_enabled:
            page = await self._fetch_browser(url)
            return self.parse(page.html, url, page.url)

        try:
            page = await self.fetcher.fetch(url)
        except BlockedError:
            if not self.browser_enabled:
                raise
            logger.info(f"HTTP fetch blocked for {url}, escalating to browser")
            page = await self._fetch_browser(url)
            return self.parse(page.html, url, page.url)

        record = self.parse(page.html, url, page.url)
        if self.browser_enabled and not (record.get("name") and record.get("price")):
            logger.info(f"HTTP result for {url} is missing name or price, escalating to browser")
            try:
                rendered = await self._fetch_browser(url)
            except FetchError as e:
                logger.warning(f"Browser escalation failed for {url}, keeping HTTP result: {e}")
                return record
            browser_record = self.parse(rendered.html, url, rendered.url)
            if self._completeness(browser_record) >= self._completeness(record):
                return browser_record
        return record

    async def _fetch_browser(self, url: str) -> FetchResult:
        return await self.fetcher.fetch(
            url,
            mode="browser",
            wait_for=self.descriptor.wait_for,
            js_code=self.descriptor.expand_js,
        )

    @staticmethod
    def _completeness(record: Dict[str, Any]) -> int:
        return sum(1 for field in ("name", "price", "images", "description", "brand") if record.get(field))

    def parse(self, html: str, url: str, page_url: Optional[str] = None) -> Dict[str, Any]:
        """Build a raw record from page HTML.

        Structured data wins over DOM selectors, which win over meta tags. Fields are
        only filled when still missing, so earlier sources are never overwritten.
        """
        for marker in self.descriptor.block_markers:
            if marker in (html or ""):
                raise BlockedError(url, f"Blocked: site returned an error page ({marker})")

        base_url = page_url or url
        soup = BeautifulSoup(html or "", "html.parser")
        record: Dict[str, Any] = {}

        nodes, outcomes = extract_json_ld(soup)
        if nodes:
            self._fill(record, product_from_json_ld(nodes[0]))
        state, state_outcomes = extract_embedded_state(html or "", self.descriptor.state_patterns)
        outcomes.extend(state_outcomes)
        if state is not None:
            self._fill(record, product_from_state(state))

        for field in FIELDS:
            if record.get(field) not in (None, "", []):
                continue
            value = self.select_field(soup, field)
            if value not in (None, "", []):
                record[field] = value

        meta = extract_meta(soup)
        for field in ("name", "description", "brand", "price", "currency"):
            if not record.get(field) and meta.get(field):
                record[field] = meta[field]
        if not record.get("images") and meta.get("image"):
            record["images"] = [meta["image"]]

        self.finish(record, soup, url, base_url)
        summarize_outcomes(outcomes, url)
        return record

    def finish(self, record: Dict[str, Any], soup: BeautifulSoup, url: str, base_url: str) -> None:
        """Clean up collected values in place."""
        descriptor = self.descriptor
        for field in PRICE_FIELDS:
            value = record.get(field)
            if isinstance(value, str):
                record[field] = extract_price_text(value)
        record["images"] = clean_image_urls(record.get("images"), base_url, limit=descriptor.image_limit)
        if record.get("description"):
            description = clean_description(record["description"])
            if descriptor.description_limit:
                description = truncate(description, descriptor.description_limit)
            record["description"] = description
        if isinstance(record.get("name"), str):
            record["name"] = record["name"].strip()
        if descriptor.category_hint and not record.get("category"):
            record["category"] = descriptor.category_hint
        record["platform"] = descriptor.platform or descriptor.handler.value
        record["url"] = url

    def select_field(self, soup: BeautifulSoup, field: str) -> Any:
        """Return the first non-empty value the field's selectors produce."""
        for selector in self.descriptor.candidates(field):
            css, attr = _split_selector(selector)
            elements = soup.select(css)
            if not elements:
                continue

            if field == "images":
                urls = [_element_value(el, attr) if attr else image_url(el) for el in elements]
                urls = [u for u in urls if u]
                if urls:
                    return urls
            elif field in LIST_FIELDS:
                values = [_element_value(el, attr) for el in elements]
                values = dedupe(v for v in values if v and not OPTION_PROMPTS.search(v))
                if values:
                    return values
            else:
                for element in elements:
                    value = _element_value(element, attr)
                    if value and (field not in PRICE_FIELDS or extract_price_text(value)):
                        return value
        return None

    @staticmethod
    def _fill(record: Dict[str, Any], values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if value in (None, "", []):
                continue
            if record.get(key) in (None, "", []):
                record[key] = value


def select_texts(soup: BeautifulSoup, selectors: List[str]) -> List[str]:
    """Texts of every element matched by the first selector that matches anything."""
    for selector in selectors:
        elements = soup.select(selector)
        texts = [el.get_text(" ", strip=True) for el in elements]
        texts = [t for t in texts if t]
        if texts:
            return texts
    return []
