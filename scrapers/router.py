"""
Request orchestration: classify, dispatch, extract, normalize, respond.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel

from common.category import CategoryDetector
from common.exceptions import ExtractionError
from common.fetcher import Fetcher
from common.platform_detector import PlatformDetector
from config import config
from scrapers.classifier import REDIRECT_HANDLERS, HandlerId, classify
from scrapers.engine import SelectorExtractor
from scrapers.generic import GenericExtractor
from scrapers.normalizer import NormalizedProduct, RedirectInfo, normalize, to_legacy_dict
from scrapers.redirect import RedirectResolver, RedirectState
from scrapers.shopify import ShopifyExtractor
from scrapers.sites import GENERIC_SITE, SiteDescriptor, get_descriptor

logger = logging.getLogger(__name__)

NO_DATA_ERROR = "Could not extract product data"

# Named storefronts that run on Shopify and are read through the Shopify extractor
SHOPIFY_BACKED = (HandlerId.CHICLARA, HandlerId.GALLERYDEPT)


class HandlerSpec:
    """How one HandlerId is served.

    ``factory(fetcher, browser_enabled)`` builds an extractor exposing ``async extract(url)``.
    Redirect handlers have no factory; they go through the resolver.
    """

    def __init__(
        self,
        handler: HandlerId,
        descriptor: SiteDescriptor,
        factory: Optional[Callable[..., Any]] = None,
        resolves_redirect: bool = False,
    ):
        self.handler = handler
        self.descriptor = descriptor
        self.factory = factory
        self.resolves_redirect = resolves_redirect

    @property
    def requires_browser(self) -> bool:
        return self.descriptor.requires_browser


def _selector_factory(descriptor: SiteDescriptor):
    def build(fetcher, browser_enabled):
        return SelectorExtractor(descriptor, fetcher, browser_enabled=browser_enabled)

    return build


def _shopify_factory(descriptor: SiteDescriptor):
    def build(fetcher, browser_enabled):
        return ShopifyExtractor(fetcher, descriptor=descriptor, browser_enabled=browser_enabled)

    return build


def _generic_factory(fetcher, browser_enabled):
    return GenericExtractor(fetcher, browser_enabled=browser_enabled)


def build_registry() -> Dict[HandlerId, HandlerSpec]:
    """One HandlerSpec per HandlerId."""
    registry = {}
    for handler in HandlerId:
        descriptor = get_descriptor(handler)
        if handler in REDIRECT_HANDLERS:
            registry[handler] = HandlerSpec(handler, descriptor, resolves_redirect=True)
        elif handler == HandlerId.SHOPIFY or handler in SHOPIFY_BACKED:
            registry[handler] = HandlerSpec(handler, descriptor, _shopify_factory(descriptor))
        elif descriptor is GENERIC_SITE:
            registry[handler] = HandlerSpec(handler, descriptor, _generic_factory)
        else:
            registry[handler] = HandlerSpec(handler, descriptor, _selector_factory(descriptor))
    return registry


class ScrapeResult(BaseModel):
    success: bool
    product: Optional[NormalizedProduct] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "product": to_legacy_dict(self.product) if self.product is not None else None,
            "error": self.error,
        }


class ProductRouter:
    """Turns a product URL into a ScrapeResult.

    Collaborators are injected; nothing here keeps per-request state on the instance, so
    one router can serve concurrent requests.
    """

    def __init__(
        self,
        fetcher: Optional[Fetcher] = None,
        category_detector: Optional[CategoryDetector] = None,
        platform_detector: Optional[PlatformDetector] = None,
        registry: Optional[Dict[HandlerId, HandlerSpec]] = None,
        resolver: Optional[RedirectResolver] = None,
        settings=None,
    ):
        self.settings = settings or config
        self.fetcher = fetcher or Fetcher(self.settings)
        self.category_detector = category_detector or CategoryDetector()
        self.platform_detector = platform_detector or PlatformDetector(self.fetcher, self.settings)
        self.registry = registry or build_registry()
        self.resolver = resolver or RedirectResolver(
            self.fetcher,
            max_hops=self.settings.scraper.max_redirect_hops,
            timeout=self.settings.scraper.redirect_timeout,
        )

    @property
    def browser_enabled(self) -> bool:
        return self.settings.browser.enabled

    async def fallback_policy(self, url: str) -> HandlerId:
        """Pick the handler for a URL no table entry claims: Shopify if the probe says so, else generic."""
        if await self.platform_detector.is_shopify_store(url, timeout=self.settings.scraper.probe_timeout):
            logger.info(f"Shopify storefront detected for {url}")
            return HandlerId.SHOPIFY
        return HandlerId.GENERIC

    async def scrape_product(self, url: str) -> ScrapeResult:
        try:
            return await self._scrape(url)
        except Exception as e:
            logger.exception(f"Unexpected error scraping {url}")
            return ScrapeResult(success=False, product=None, error=str(e) or type(e).__name__)

    async def _scrape(self, url: str) -> ScrapeResult:
        handler = classify(url)
        logger.info(f"Classified {url} as {handler.value}")

        target = url
        redirect = None
        if self.registry[handler].resolves_redirect:
            resolution = await self.resolver.resolve(url)
            redirect = RedirectInfo(
                original_url=resolution.original_url,
                final_url=resolution.final_url,
                redirect_count=resolution.redirect_count,
            )
            if resolution.state == RedirectState.ABORTED:
                logger.info(f"Redirect resolution aborted for {url}: {resolution.error}")
                return self._unresolved(resolution.final_url, resolution.error, redirect)
            target = resolution.final_url
            handler = classify(target)
            logger.info(f"Re-classified {target} as {handler.value}")
            # One level of re-dispatch only
            if self.registry[handler].resolves_redirect:
                handler = HandlerId.GENERIC

        if handler == HandlerId.GENERIC:
            handler = await self.fallback_policy(target)
            logger.info(f"Fallback policy chose {handler.value} for {target}")

        spec = self.registry[handler]
        if spec.factory is None:
            raise ExtractionError(f"No extractor registered for {handler.value}")
        logger.info(f"Dispatching {target} to {handler.value} (browser={spec.requires_browser and self.browser_enabled})")
        extractor = spec.factory(self.fetcher, self.browser_enabled)
        raw = await extractor.extract(target)

        product = normalize(
            raw,
            target,
            site_defaults=spec.descriptor,
            category_detector=self.category_detector,
            redirect=redirect,
        )
        logger.info(f"Normalized {target}: name={product.name!r} price={product.sale_price} error={product.error}")
        return self._respond(product)

    def _unresolved(self, final_url: str, error: Optional[str], redirect: RedirectInfo) -> ScrapeResult:
        """Failure envelope for a redirect chain that never reached a product page.

        The product keeps where the chain ended so callers can follow up by hand.
        """
        error = error or "Could not resolve redirect"
        product = normalize(
            {"url": final_url, "error": error, "needs_manual_check": True},
            final_url,
            site_defaults=GENERIC_SITE,
            category_detector=self.category_detector,
            redirect=redirect,
        )
        return ScrapeResult(success=False, product=product, error=error)

    @staticmethod
    def _respond(product: NormalizedProduct) -> ScrapeResult:
        if product.blocked:
            return ScrapeResult(success=False, product=product, error=product.error or "Blocked")
        if product.error:
            if not product.has_any_data():
                return ScrapeResult(success=False, product=None, error=product.error)
            return ScrapeResult(success=False, product=product, error=product.error)
        if not product.has_usable_data():
            return ScrapeResult(success=False, product=product, error=NO_DATA_ERROR)
        return ScrapeResult(success=True, product=product, error=None)

    async def scrape_many(self, urls: List[str], concurrency: int = 5) -> List[ScrapeResult]:
        """Scrape ``urls`` with at most ``concurrency`` requests in flight; results keep input order."""
        semaphore = asyncio.Semaphore(max(concurrency, 1))

        async def run(url):
            async with semaphore:
                return await self.scrape_product(url)

        return await asyncio.gather(*(run(url) for url in urls))
