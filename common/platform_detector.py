import hashlib
import logging

from bs4 import BeautifulSoup

from common.exceptions import FetchError
from config import config

logger = logging.getLogger(__name__)

# Lower-cased substrings that identify a Shopify storefront in raw HTML
SHOPIFY_SIGNALS = ("shopify", "cdn.shopify", "/cdn/shop/", "myshopify.com")


class PlatformDetector:
    def __init__(self, fetcher, settings=None):
        self.fetcher = fetcher
        self.settings = settings or config
        self._cache = {}  # Simple in-memory cache

    async def detect(self, url):
        cache_key = self._get_cache_key(url)
        if cache_key in self._cache:
            return self._cache[cache_key]
        try:
            result = await self.fetcher.fetch(url, timeout=self.settings.scraper.probe_timeout)
        except FetchError as e:
            logger.warning(f"[PlatformDetector] Error for {url}: {e}")
            return "unknown", 0

        html = result.html
        soup = BeautifulSoup(html, "html.parser")
        results = [
            self._detect_shopify(html, soup, url),
            self._detect_woocommerce(html, soup, url),
            self._detect_magento(html, soup, url),
            self._detect_wordpress(html, soup, url),
            self._detect_webflow(html, soup, url),
        ]
        # Pick the platform with the highest confidence
        platform, confidence = max(results, key=lambda x: x[1])
        if confidence < 40:
            platform = "unknown"
        self._cache[cache_key] = (platform, confidence)
        return platform, confidence

    async def is_shopify_store(self, url, timeout=None):
        """Probe a page for Shopify fingerprints. Any fetch failure counts as 'not Shopify'."""
        try:
            result = await self.fetcher.fetch(url, timeout=timeout or self.settings.scraper.probe_timeout)
        except FetchError as e:
            logger.info(f"Shopify probe failed for {url}: {e}")
            return False
        html = result.html.lower()
        return any(signal in html for signal in SHOPIFY_SIGNALS)

    def _get_cache_key(self, url):
        return hashlib.sha256(url.encode()).hexdigest()

    def _detect_shopify(self, html, soup, url):
        score = 0
        if soup.find("script", src=lambda x: x and "cdn.shopify.com" in x):
            score += 40
        if soup.find(attrs={"data-shopify": True}):
            score += 30
        if "/cdn/shop/" in url or "/cdn/shop/" in html:
            score += 10
        if "Shopify.theme" in html:
            score += 20
        if "myshopify.com" in html:
            score += 20
        return ("shopify", min(score, 100))

    def _detect_woocommerce(self, html, soup, url):
        score = 0
        if soup.find("body", class_=lambda c: c and "woocommerce" in c):
            score += 40
        if soup.find("link", href=lambda x: x and "woocommerce" in x):
            score += 20
        if "woocommerce" in html.lower():
            score += 20
        if soup.select('.woocommerce, [class*="woocommerce"]'):
            score += 20
        return ("woocommerce", min(score, 100))

    def _detect_magento(self, html, soup, url):
        score = 0
        if soup.find("meta", attrs={"name": "generator", "content": lambda x: x and "Magento" in x}):
            score += 60
        if "/pub/static/frontend/" in html:
            score += 30
        if soup.find("script", attrs={"type": "text/x-magento-init"}):
            score += 30
        if soup.find(attrs={"data-mage-init": True}):
            score += 20
        return ("magento", min(score, 100))

    def _detect_wordpress(self, html, soup, url):
        score = 0
        if soup.find("meta", attrs={"name": "generator", "content": lambda x: x and "WordPress" in x}):
            score += 40
        if "/wp-content/" in html or "/wp-includes/" in html:
            score += 30
        return ("wordpress", min(score, 100))

    def _detect_webflow(self, html, soup, url):
        score = 0
        if soup.find("meta", attrs={"name": "generator", "content": lambda x: x and "Webflow" in x}):
            score += 60
        if "Webflow.require" in html:
            score += 30
        return ("webflow", min(score, 100))
