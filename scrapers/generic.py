"""
Heuristic extractor for stores without a dedicated descriptor.
"""

import logging
from typing import Any, Dict

from bs4 import BeautifulSoup

from common.utils import domain_brand, extract_price_text
from scrapers.engine import SelectorExtractor, select_texts
from scrapers.sites import GENERIC_SITE

logger = logging.getLogger(__name__)

SALE_MARKERS = ".sale-badge, .discount-badge, .was-price, .original-price"
ORIGINAL_PRICE_SELECTORS = [".was-price", ".original-price", ".compare-at-price"]


class GenericExtractor(SelectorExtractor):
    """Common e-commerce markup (schema.org, WooCommerce, Open Graph) on an unknown store."""

    def __init__(self, fetcher, browser_enabled=None):
        super().__init__(GENERIC_SITE, fetcher, browser_enabled=browser_enabled)

    def finish(self, record: Dict[str, Any], soup: BeautifulSoup, url: str, base_url: str) -> None:
        if not record.get("name"):
            title = soup.title.get_text(strip=True) if soup.title else ""
            if title:
                record["name"] = title.split(" - ")[0].split(" | ")[0].strip()

        if soup.select_one(SALE_MARKERS):
            for text in select_texts(soup, ORIGINAL_PRICE_SELECTORS):
                if extract_price_text(text):
                    record["original_price"] = text
                    break

        if not record.get("brand"):
            record["brand"] = domain_brand(url)

        super().finish(record, soup, url, base_url)
