"""
Declarative per-site extraction descriptors.

Each retailer differs from the others mainly in where its data sits on the page, so a
site is described here as data: candidate CSS selectors per field (first non-empty wins),
whether the page needs a browser render, what to wait for, and the brand to fall back on.
A selector of the form ``css@attr`` reads that attribute instead of the element text.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel

from scrapers.classifier import HandlerId

DEFAULT_BRAND = "Unknown Brand"

FIELDS = (
    "name",
    "brand",
    "price",
    "original_price",
    "description",
    "images",
    "sizes",
    "colors",
    "color",
    "sku",
    "material",
    "category",
)

# Opens collapsed accordions and tabs so lazily rendered details end up in the DOM
EXPAND_DETAILS_JS = """
(() => {
  const targets = document.querySelectorAll(
    'button[aria-expanded="false"], details:not([open]) > summary, [data-component="AccordionItem"] button, .accordion__button, .accordion-toggle'
  );
  targets.forEach((el) => { try { el.click(); } catch (e) {} });
})();
"""

# Tried after each site's own selectors
COMMON_SELECTORS: Dict[str, List[str]] = {
    "name": ["h1[itemprop=\"name\"]", "[itemprop=\"name\"]", "h1", "meta[property=\"og:title\"]@content"],
    "brand": [
        "[itemprop=\"brand\"] [itemprop=\"name\"]",
        "[itemprop=\"brand\"]",
        "meta[property=\"product:brand\"]@content",
        "meta[property=\"og:brand\"]@content",
    ],
    "price": [
        "[itemprop=\"price\"]@content",
        "[itemprop=\"price\"]",
        "meta[property=\"product:price:amount\"]@content",
        "meta[property=\"og:price:amount\"]@content",
        ".price",
    ],
    "original_price": [".was-price", ".original-price", ".compare-at-price", "s.price", "del .price"],
    "description": [
        "[itemprop=\"description\"]",
        "meta[property=\"og:description\"]@content",
        "meta[name=\"description\"]@content",
    ],
    "images": ["[itemprop=\"image\"]", "meta[property=\"og:image\"]@content"],
    "sizes": [],
    "colors": [],
    "color": [],
    "sku": ["[itemprop=\"sku\"]", "meta[property=\"product:retailer_item_id\"]@content"],
    "material": [],
    "category": [],
}

# Embedded application state assignments, tried in order
DEFAULT_STATE_PATTERNS = [
    r"window\.__NEXT_DATA__\s*=\s*(\{.*?\});?\s*</script>",
    r"window\.__INITIAL_STATE__\s*=\s*(\{.*?\});?\s*</script>",
    r"window\.__PRELOADED_STATE__\s*=\s*(\{.*?\});?\s*</script>",
    r"window\.__INITIAL_CONFIG__\s*=\s*(\{.*?\});?\s*</script>",
]


class SiteDescriptor(BaseModel):
    """How to pull a product out of one retailer's pages."""

    handler: HandlerId
    brand_fallback: str = DEFAULT_BRAND
    requires_browser: bool = False
    wait_for: Optional[str] = None
    expand_js: Optional[str] = None
    category_hint: Optional[str] = None
    platform: Optional[str] = None
    image_limit: int = 20
    description_limit: Optional[int] = None
    block_markers: List[str] = []
    selectors: Dict[str, List[str]] = {}
    state_patterns: List[str] = DEFAULT_STATE_PATTERNS
    include_common: bool = True

    def candidates(self, field: str) -> List[str]:
        """Ordered selectors for ``field``: the site's own first, then the shared ones."""
        own = list(self.selectors.get(field, []))
        if not self.include_common:
            return own
        return own + [s for s in COMMON_SELECTORS.get(field, []) if s not in own]


def _site(handler, brand=DEFAULT_BRAND, **kwargs) -> SiteDescriptor:
    return SiteDescriptor(handler=handler, brand_fallback=brand, **kwargs)


SITES: Dict[HandlerId, SiteDescriptor] = {
    HandlerId.AMAZON: _site(
        HandlerId.AMAZON,
        requires_browser=True,
        wait_for="#productTitle",
        selectors={
            "name": ["#productTitle", "#title span"],
            "brand": ["#bylineInfo", "a#brand", "tr.po-brand td.a-span9 span"],
            "price": [
                ".a-price:not(.a-text-price) .a-offscreen",
                "#corePrice_feature_div .a-offscreen",
                "#priceblock_ourprice",
                "#priceblock_dealprice",
            ],
            "original_price": [".a-text-strike .a-offscreen", ".a-price.a-text-price .a-offscreen"],
            "description": ["#feature-bullets ul", "#productDescription"],
            "images": ["#landingImage@data-old-hires", "#landingImage", "#altImages img", "#imgTagWrapperId img"],
            "sizes": ["#variation_size_name option", "#native_dropdown_selected_size_name option"],
            "colors": ["#variation_color_name li img@alt"],
            "color": ["#variation_color_name .selection"],
            "category": ["#wayfinding-breadcrumbs_feature_div ul li:last-child a"],
        },
    ),
    HandlerId.FARFETCH: _site(
        HandlerId.FARFETCH,
        requires_browser=True,
        wait_for="[data-component=\"PriceLarge\"], [data-tstid=\"priceInfo-current\"], h1",
        expand_js=EXPAND_DETAILS_JS,
        selectors={
            "name": ["[data-component=\"ProductShortDescription\"]", "h1 p", "h1"],
            "brand": [
                "[data-component=\"DesignerName\"]",
                "[data-component=\"ProductBrandName\"]",
                "[data-tstid=\"productDetails-brand\"]",
            ],
            "price": ["[data-component=\"PriceFinalLarge\"]", "[data-component=\"PriceLarge\"]", "[data-tstid=\"priceInfo-current\"]"],
            "original_price": ["[data-component=\"PriceOriginal\"]", "[data-tstid=\"priceInfo-original\"]"],
            "description": ["[data-component=\"ProductDescription\"]", "[data-tstid=\"productDetails-description\"]"],
            "images": ["[data-component=\"ProductImageCarousel\"] img", "[data-component=\"ProductImage\"] img"],
            "sizes": ["[data-component=\"SizeSelector\"] option"],
            "color": ["[data-component=\"ColourName\"]", "[data-tstid=\"productDetails-color\"]"],
            "material": ["[data-component=\"Composition\"]"],
        },
    ),
    HandlerId.ETSY: _site(
        HandlerId.ETSY,
        selectors={
            "name": ["h1[data-buy-box-listing-title]", "h1.wt-text-body-01"],
            "brand": ["[data-shop-name]", "a[href*=\"/shop/\"] span", "#listing-page-cart .wt-text-body-01 a"],
            "price": ["p[data-buy-box-region=\"price\"] .wt-text-title-largest", "[data-buy-box-region=\"price\"] p"],
            "original_price": [".wt-text-strikethrough"],
            "description": ["[data-product-details-description-text-content]", "#wt-content-toggle-product-details-read-more"],
            "images": ["ul[data-carousel-pane-list] img@data-src-zoom-image", "ul[data-carousel-pane-list] img"],
            "sizes": ["select#variation-selector-0 option"],
            "colors": ["select#variation-selector-1 option"],
        },
    ),
    HandlerId.GARMENTORY: _site(
        HandlerId.GARMENTORY,
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": [".product-title", "h1"],
            "brand": [".product-designer a", ".product-brand"],
            "price": [".product-price .sale", ".product-price"],
            "original_price": [".product-price .original", ".product-price del"],
            "images": [".product-images img", ".product-gallery img"],
            "sizes": [".size-options button", "select[name*=\"size\"] option"],
        },
    ),
    HandlerId.EBAY: _site(
        HandlerId.EBAY,
        selectors={
            "name": ["h1.x-item-title__mainTitle span", "h1#itemTitle"],
            "brand": [
                ".ux-labels-values--brand .ux-labels-values__values span",
                "[itemprop=\"brand\"] [itemprop=\"name\"]",
            ],
            "price": ["div.x-price-primary span.ux-textspans", "#prcIsum", "#mm-saleDscPrc"],
            "original_price": ["span.ux-textspans--STRIKETHROUGH", "#orgPrc"],
            "description": ["#viTabs_0_is", ".x-item-description"],
            "images": ["div.ux-image-carousel img@data-zoom-src", "div.ux-image-carousel img", "#icImg"],
            "color": [".ux-labels-values--color .ux-labels-values__values span"],
            "material": [".ux-labels-values--material .ux-labels-values__values span"],
            "category": ["nav.breadcrumbs li:last-child a span"],
        },
    ),
    HandlerId.RALPHLAUREN: _site(
        HandlerId.RALPHLAUREN,
        "Ralph Lauren",
        expand_js=EXPAND_DETAILS_JS,
        selectors={
            "name": ["h1.product-name", "h1"],
            "price": [".product-price .price-sales", ".price-sales", ".product-price"],
            "original_price": [".product-price .price-standard", ".price-standard"],
            "description": [".product-details-description", "#pdp-details"],
            "images": ["picture source@srcset", ".swiper-zoomable img", "picture img"],
            "sizes": [".swatches.size li a", ".swatches.size button"],
            "color": ["[data-testid=\"selected-color\"]", ".selected-color", ".color-name"],
            "material": [".product-details-fabric"],
        },
    ),
    HandlerId.COS: _site(
        HandlerId.COS,
        "COS",
        selectors={
            "name": [".product-name", "h1"],
            "price": [".product-price .price-value", ".product-price", ".price"],
            "original_price": [".product-price .is-deprecated", ".price.is-deprecated"],
            "description": [".product-description", ".description-text"],
            "images": [".product-detail-main-image-container img", ".a-image img"],
            "sizes": ["#sizes li button", ".size-options button"],
            "color": [".product-colors .active", ".selected-color"],
            "material": [".composition"],
        },
    ),
    HandlerId.SEZANE: _site(
        HandlerId.SEZANE,
        "Sézane",
        selectors={
            "name": [".c-product__title", "h1"],
            "price": [".c-product__price", ".price"],
            "original_price": [".c-product__price--old"],
            "description": [".c-product__description"],
            "images": [".c-product__gallery img", ".c-product-gallery img"],
            "sizes": [".c-product__sizes button", "[data-size]"],
            "color": [".c-product__color-name"],
        },
    ),
    HandlerId.NORDSTROM: _site(
        HandlerId.NORDSTROM,
        "Nordstrom",
        requires_browser=True,
        wait_for="[data-element=\"product-title\"], h1",
        selectors={
            "name": ["[data-element=\"product-title\"]", "h1"],
            "brand": ["[data-element=\"product-brand\"] a", "a[href*=\"/brands/\"] span"],
            "price": [".price-display-item", "[data-element=\"price-current\"]", "[aria-label*=\"Current Price\"]"],
            "original_price": ["[data-element=\"price-previous\"]", ".price-display-item--original"],
            "description": ["[data-element=\"product-details\"]", "#product-page-selling-statement"],
            "images": ["#product-page-gallery img", "[data-element=\"hero-image\"] img"],
            "sizes": ["[data-element=\"size-dropdown\"] li", "#size-filter-product-page-option li"],
            "color": ["[data-element=\"selected-color\"]"],
        },
    ),
    HandlerId.SSENSE: _site(
        HandlerId.SSENSE,
        "SSENSE",
        requires_browser=True,
        wait_for="body",
        selectors={
            "name": ["h2.pdp-product-title__name", "h1.pdp-product-title__name", "h1"],
            "brand": ["h1.pdp-product-title__brand", ".pdp-product-title__brand a"],
            "price": ["#pdpProductPrice .price", "[data-testid=\"current-price\"]", ".pdp-product-price"],
            "original_price": ["#pdpProductPrice .price--original", "[data-testid=\"original-price\"]"],
            "description": [".pdp-product-description", "#pdpProductDescriptionContainerText"],
            "images": [".pdp__image img", ".product-image img", "picture img"],
            "sizes": ["#pdpSizeDropdown option"],
        },
    ),
    HandlerId.SAKSFIFTHAVENUE: _site(
        HandlerId.SAKSFIFTHAVENUE,
        "Saks Fifth Avenue",
        requires_browser=True,
        wait_for="h1",
        state_patterns=[r"window\.__remixContext\s*=\s*(\{.*?\});?\s*</script>"] + DEFAULT_STATE_PATTERNS,
        selectors={
            "name": [".product-name", "h1.product-overview__short-description", "h1"],
            "brand": [".product-brand", ".product-overview__brand-link", "a.brand-name"],
            "price": [".product-pricing__price .price", ".product-pricing__price", "[data-testid=\"price\"]"],
            "original_price": [".product-pricing__price--original", "span.price--original"],
            "description": [".product-description", "#productDetailDescription"],
            "images": [".product-media img", ".pdp-image img"],
            "sizes": [".product-variant-attribute-value--size", "ul.size-swatches li"],
            "color": [".product-variant-attribute-label__selected-value"],
        },
    ),
    HandlerId.POSHMARK: _site(
        HandlerId.POSHMARK,
        selectors={
            "name": ["h1[data-test=\"listing-title\"]", "h1.listing__title-container"],
            "brand": ["a[data-et-name=\"listing_details_brand\"]", "[data-test=\"listing-brand\"]"],
            "price": ["[data-test=\"listing-price\"]", ".listing__ipad-centered p.h1"],
            "original_price": ["[data-test=\"listing-original-price\"]", ".listing__ipad-centered .original-price"],
            "description": ["[data-test=\"listing-description\"]", ".listing__description"],
            "images": [".slideshow img", "[data-test=\"listing-image\"] img"],
            "sizes": ["[data-test=\"size\"]", ".listing__size-selector-con button"],
            "category": ["[data-test=\"listing-category\"]"],
        },
    ),
    HandlerId.INSTAGRAM: _site(
        HandlerId.INSTAGRAM,
        "Instagram",
        category_hint="Social Media",
        platform="instagram",
        include_common=False,
        selectors={
            "name": ["meta[property=\"og:title\"]@content", "title"],
            "description": ["meta[property=\"og:description\"]@content"],
            "images": ["meta[property=\"og:image\"]@content"],
        },
    ),
    HandlerId.ZARA: _site(
        HandlerId.ZARA,
        "Zara",
        requires_browser=True,
        wait_for=".product-detail-info__header-name, h1",
        selectors={
            "name": ["h1.product-detail-info__header-name", "h1[itemprop=\"name\"]"],
            "price": [
                ".product-detail-info__price .price-current__amount",
                ".price__amount--on-sale",
                ".price__amount",
                ".product-detail-info__price",
            ],
            "original_price": [".price__amount--old", ".product-detail-info__price--crossed", "s.price"],
            "description": [".expandable-text__inner", ".product-detail-info__description"],
            "images": [".media-image__image", "picture.media-image img"],
            "sizes": [".size-selector__size-list li .product-size-info__main-label", ".size-selector-list__item"],
            "color": [".product-color-extended-name", ".product-detail-info__color"],
            "material": [".product-detail-care-info__list", ".structured-component__text"],
        },
    ),
    HandlerId.URBANOUTFITTERS: _site(
        HandlerId.URBANOUTFITTERS,
        "Urban Outfitters",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1.c-pwa-product-meta-heading", "h1"],
            "price": [".c-pwa-product-price__current"],
            "original_price": [".c-pwa-product-price__original"],
            "description": [".s-pwa-cms.c-pwa-markdown", ".c-pwa-product-details__description"],
            "images": [".c-pwa-image-viewer__img", ".o-pwa-image img"],
            "sizes": [".c-pwa-radio-boxes__item--size label"],
            "color": [".c-pwa-sku-selection__color-value"],
        },
    ),
    HandlerId.REVOLVE: _site(
        HandlerId.REVOLVE,
        selectors={
            "name": ["h1.product-titles__product-title", "h1.product-name--lg"],
            "brand": [".product-titles__brand a", ".product-brand a"],
            "price": [".product-price__price--sale", "#retailPrice", ".price__retail"],
            "original_price": [".product-price__price--original", ".price__markdown"],
            "description": [".product-details__description", "#product-details__description"],
            "images": [".slideshow__pager img@data-image", ".product-detail__image img", "#js-primary-slideshow__image"],
            "sizes": [".size-options__item label", "ul.size-options input@value"],
            "color": [".selectedColor", ".product-details__color"],
        },
    ),
    HandlerId.NETAPORTER: _site(
        HandlerId.NETAPORTER,
        requires_browser=True,
        wait_for="h1, [data-testid=\"product-name\"]",
        selectors={
            "name": ["[data-testid=\"product-name\"]", "p.ProductInformation87__name", "h1 p"],
            "brand": ["[data-testid=\"product-designer\"]", "h1 a span"],
            "price": ["[itemprop=\"price\"]@content", ".PriceWithSchema9__value", "[data-testid=\"price\"]"],
            "original_price": [".PriceWithSchema9__wasPrice", "[data-testid=\"was-price\"]"],
            "description": ["#EDITORS_NOTES", "[data-testid=\"editors-notes\"]"],
            "images": [".ImageCarousel88__thumbnailImage", "[data-testid=\"image-carousel\"] img"],
            "sizes": ["[data-testid=\"size-selector\"] li", "select#sizeSelector option"],
        },
    ),
    HandlerId.ASOS: _site(
        HandlerId.ASOS,
        requires_browser=True,
        wait_for="[data-test-id=\"product-name\"], h1",
        selectors={
            "name": ["[data-test-id=\"product-name\"]", "#pdp-react-critical-app h1"],
            "brand": ["[data-test-id=\"product-brand\"]", ".product-description a[href*=\"/brand/\"]"],
            "price": ["[data-test-id=\"current-price\"]", "[data-testid=\"current-price\"]"],
            "original_price": ["[data-test-id=\"previous-price\"]", "[data-testid=\"previous-price\"]"],
            "description": ["#productDescriptionDetails", "[data-test-id=\"product-details\"]"],
            "images": ["[data-test-id=\"gallery-image\"] img", ".gallery-image img"],
            "sizes": ["[data-test-id=\"sizeSelect\"] option", "#variantSelector option"],
            "color": ["[data-test-id=\"product-colour\"]"],
        },
    ),
    HandlerId.REFORMATION: _site(
        HandlerId.REFORMATION,
        "Reformation",
        selectors={
            "name": ["h1[data-product-title]", "h1.product__title", ".product-single__title"],
            "price": ["[data-product-price]", ".product__price--sale", ".product__price"],
            "original_price": ["[data-compare-price]", ".product__price--compare", "s.price"],
            "description": ["[data-product-description]", ".product__description", ".product-single__description"],
            "images": [".product__media img"],
            "sizes": [".size-selector button", ".size-selector label"],
            "colors": [".color-selector button@aria-label", ".color-selector label"],
            "material": ["[data-sustainability]", ".product__sustainability", ".sustainability-info"],
        },
    ),
    HandlerId.EVERLANE: _site(
        HandlerId.EVERLANE,
        "Everlane",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1[data-testid=\"pdp-title\"]", "h1.product-heading__name"],
            "price": ["[data-testid=\"pdp-price\"] span", ".product-heading__price"],
            "original_price": ["[data-testid=\"pdp-compare-price\"]", ".product-heading__price--original"],
            "description": ["[data-testid=\"pdp-description\"]", ".product-details__description"],
            "images": ["[data-testid=\"pdp-image\"] img", ".product-image-carousel img"],
            "sizes": ["[data-testid=\"size-picker\"] button"],
            "color": ["[data-testid=\"color-name\"]"],
        },
    ),
    HandlerId.ANTHROPOLOGIE: _site(
        HandlerId.ANTHROPOLOGIE,
        "Anthropologie",
        requires_browser=True,
        wait_for="h1",
        expand_js=EXPAND_DETAILS_JS,
        selectors={
            "name": ["h1.c-product-meta__title", ".product-name h1"],
            "brand": [".c-product-meta__brand", ".product-brand"],
            "price": [".c-product-meta__current-price", ".product-pricing .price-current"],
            "original_price": [".c-product-meta__original-price", ".product-pricing .price-original"],
            "description": [".product-description", ".accordion-content"],
            "images": [".c-product-image img", ".o-pwa-image img"],
            "sizes": [".product-sizes li label", ".c-pwa-radio-boxes__item--size label"],
            "colors": [".product-colors li img@alt"],
        },
    ),
    HandlerId.MADEWELL: _site(
        HandlerId.MADEWELL,
        "Madewell",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1.product-name", "h1"],
            "price": [".product-pricing .sales", ".product-price__sale"],
            "original_price": [".product-pricing .strike-through", ".product-price__list"],
            "description": [".product-description", ".product-details__description"],
            "images": [".product-image img", ".pdp-gallery img"],
            "sizes": [".size-swatches button", ".js-size-swatch"],
            "color": [".selected-color-name"],
        },
    ),
    HandlerId.ARITZIA: _site(
        HandlerId.ARITZIA,
        "Aritzia",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1[data-test=\"pdp-title\"]", "h1.pdp-product-name"],
            "brand": ["[data-test=\"pdp-brand\"]", ".pdp-product-brand"],
            "price": ["[data-test=\"pdp-price\"]", ".pdp-product-price .price-sales"],
            "original_price": ["[data-test=\"pdp-compare-price\"]", ".pdp-product-price .price-standard"],
            "description": ["[data-test=\"pdp-description\"]", ".pdp-product-description"],
            "images": ["[data-test=\"pdp-image\"] img", ".pdp-image img"],
            "sizes": ["[data-test=\"size-selector\"] button"],
            "color": ["[data-test=\"color-name\"]"],
        },
    ),
    HandlerId.LULULEMON: _site(
        HandlerId.LULULEMON,
        "Lululemon",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1.product-title_title__i8NUw", "[data-testid=\"product-title\"]", "h1"],
            "price": [".price-1SDQy .price", "[data-testid=\"price\"]"],
            "original_price": ["[data-testid=\"list-price\"]", ".markdown-prices_listPrice"],
            "description": ["[data-testid=\"product-description\"]", ".why-we-made-this"],
            "images": ["img[data-testid*=\"product\"]", ".product-images img"],
            "sizes": ["[data-testid=\"size-selector\"] button"],
            "color": ["[data-testid=\"color-name\"]"],
        },
    ),
    HandlerId.STORIES: _site(
        HandlerId.STORIES,
        "& Other Stories",
        selectors={
            "name": ["[data-testid=\"product-name\"]", ".product-name", ".product-title", "h1"],
            "price": ["[data-testid=\"product-price\"]", ".product-price-value", ".product-price"],
            "original_price": [".was-price", ".original-price", ".compare-at-price"],
            "description": [".product-description", "[data-testid=\"product-description\"]"],
            "images": [".product-image img", ".product-gallery img"],
            "sizes": [".size-option", "[data-testid=\"size-option\"]"],
            "color": ["[data-testid=\"color-name\"]", ".selected-color", ".color-name"],
        },
    ),
    HandlerId.MYTHERESA: _site(
        HandlerId.MYTHERESA,
        "Mytheresa",
        block_markers=["SOMETHING WENT WRONG"],
        selectors={
            "name": ["[data-test=\"product-name\"]", "h1.product-name", ".product__area--info h1"],
            "brand": ["[data-test=\"product-brand\"]", ".product__area--info a"],
            "price": ["[data-test=\"product-price\"]", ".product__area__price .pricing__prices__price"],
            "original_price": [".product__area__price .pricing__prices__original"],
            "description": ["[data-test=\"product-description\"]", ".product__area__details__text", ".product-description"],
            "images": [".product__gallery img", ".product__gallery__carousel img"],
            "sizes": [".product__area__size__options .sizeitem__label"],
            "colors": [".product__area__color__options span"],
            "sku": ["[data-test=\"product-id\"]", ".product-id"],
        },
    ),
    HandlerId.CLOTHBASE: _site(
        HandlerId.CLOTHBASE,
        requires_browser=True,
        wait_for="[class*=\"product\"], h1",
        selectors={
            "name": ["[class*=\"productName\"]", "h1"],
            "brand": ["a[href*=\"/brands/\"]", "[class*=\"brandName\"]"],
            "price": ["[class*=\"price\"]", "[data-testid*=\"price\"]"],
            "images": ["[class*=\"gallery\"] img", "[data-testid*=\"image\"] img"],
        },
    ),
    HandlerId.ARCTERYX: _site(
        HandlerId.ARCTERYX,
        "Arc'teryx",
        requires_browser=True,
        wait_for="[data-testid=\"product-info\"], .product-info, h1",
        expand_js=EXPAND_DETAILS_JS,
        selectors={
            "name": ["[data-testid=\"product-name\"]", ".product-info h1", "h1"],
            "price": ["[data-testid=\"product-price\"] [data-testid=\"sale-price\"]", "[data-testid=\"product-price\"]"],
            "original_price": ["[data-testid=\"product-price\"] [data-testid=\"original-price\"]", "[data-testid=\"list-price\"]"],
            "description": ["[data-testid=\"product-description\"]", ".product-description"],
            "images": ["[data-testid=\"product-image\"] img", ".product-gallery img"],
            "sizes": ["[data-testid=\"size-selector\"] button"],
            "colors": ["[data-testid=\"colour-selector\"] button@aria-label"],
            "material": ["[data-testid=\"materials\"]"],
        },
    ),
    HandlerId.SONGFORTHEMUTE: _site(
        HandlerId.SONGFORTHEMUTE,
        "Song for the Mute",
        requires_browser=True,
        wait_for=".product__view, .product__info, h1",
        selectors={
            "name": [".product__info h1", "h1.product__title"],
            "price": [".product__info .product__price", ".product__price"],
            "original_price": [".product__price--original"],
            "description": [".product__description", ".product__info p"],
            "images": [".product__view img", ".product__gallery img"],
            "sizes": [".product__size option", ".size-selector button"],
            "colors": [".product__color option", ".color-selector button"],
            "category": [".breadcrumb a:last-child"],
        },
    ),
    HandlerId.MASSIMODUTTI: _site(
        HandlerId.MASSIMODUTTI,
        "Massimo Dutti",
        requires_browser=True,
        wait_for="h1",
        selectors={
            "name": ["h1.product-detail-info__name", "h1"],
            "price": [".product-detail-info__price-now", ".product-price .price-current"],
            "original_price": [".product-detail-info__price-old", ".product-price .price-old"],
            "description": [".product-detail-info__description", ".product-description"],
            "images": [".product-detail-images img", ".image-gallery img"],
            "sizes": [".product-size-selector li"],
            "color": [".product-detail-info__color"],
        },
    ),
    HandlerId.CAMPERLAB: _site(
        HandlerId.CAMPERLAB,
        "Camperlab",
        selectors={
            "name": ["h1.product-name", "h1"],
            "price": [".product-price .price", "[data-testid=\"price\"]"],
            "images": [".product-gallery img", ".swiper-slide img"],
            "sizes": [".size-selector button"],
        },
    ),
    HandlerId.FWRD: _site(
        HandlerId.FWRD,
        requires_browser=True,
        wait_for="h1, .product-title, [itemprop=\"name\"]",
        selectors={
            "name": ["h1[itemprop=\"name\"]", ".product-title"],
            "brand": [".designer-name", ".product-designer", ".product-brand"],
            "price": [".price-current", ".product-price .price"],
            "original_price": [".price-original", ".price-was", "span.strikethrough"],
            "description": [".product-description", ".product-details"],
            "images": [".product-images img", ".product-carousel img", ".product-gallery img"],
            "sizes": [".size-selector button", ".size-option", "select[name=\"size\"] option"],
            "colors": [".color-option", ".color-selector button"],
            "category": [".breadcrumb a:last-child"],
        },
    ),
    HandlerId.MIUMIU: _site(
        HandlerId.MIUMIU,
        "Miu Miu",
        requires_browser=True,
        wait_for="h1, .product-name, [itemprop=\"name\"]",
        expand_js=EXPAND_DETAILS_JS,
        selectors={
            "name": ["h1.product-name", "h1[itemprop=\"name\"]", ".product-title"],
            "price": ["[data-price]@data-price", ".product-price-value", ".price-sales", ".product-price"],
            "description": [".description-content", ".product-description", ".product-details"],
            "images": ["img[srcset]", "[data-images] img"],
            "sizes": [".size-selector button", ".size-option"],
            "colors": [".color-option", ".color-selector button"],
            "material": [".material-content", ".product-composition", ".product-material"],
        },
    ),
    HandlerId.CHICLARA: _site(
        HandlerId.CHICLARA,
        "CHICLARA",
        requires_browser=True,
        wait_for="[data-product-json], script[type=\"application/ld+json\"]",
        platform="shopify",
        selectors={
            "name": [".product__title", "h1"],
            "description": [".product__description", ".product-description"],
            "images": [".product__media-item img", ".product__media img", ".slick-slide img"],
            "sizes": ["fieldset input + label", "select option"],
        },
    ),
    HandlerId.GALLERYDEPT: _site(
        HandlerId.GALLERYDEPT,
        "GALLERY DEPT",
        platform="shopify",
        selectors={
            "name": ["h1.product__title", ".product__title h1"],
            "price": [
                ".price__sale .price-item--sale",
                ".price--on-sale .price-item--sale",
                ".price__regular .price-item--regular",
                ".product__price .price",
            ],
            "original_price": [".price__sale .price-item--regular", ".price--on-sale .price-item--regular"],
            "description": [".product__description", ".product-single__description"],
            "images": [".product__media img", ".product-single__photo img", ".product__main-photos img"],
            "sizes": ["fieldset input + label"],
        },
    ),
    HandlerId.UNIJAY: _site(
        HandlerId.UNIJAY,
        "Unijay",
        selectors={
            "name": [".headingArea h2", "meta[property=\"og:title\"]@content"],
            "price": ["#span_product_price_sale", "#span_product_price_text", ".sale-price"],
            "original_price": ["#span_product_price_text"],
            "description": [".product-detail .cont", ".cont"],
            "images": [".xans-product-image img", ".keyImg img", ".bigImage img", ".xans-product-addimage img"],
            "sizes": ["select[id*=\"product_option\"] option"],
        },
    ),
    HandlerId.BODEN: _site(
        HandlerId.BODEN,
        "Boden",
        selectors={
            "name": ["h1.product__title", "h1"],
            "price": [".price-item--sale", ".price-item--regular", ".price"],
            "original_price": [".price--on-sale .price-item--regular"],
            "images": [".swiper-slide img", ".product__media img"],
            "sizes": ["input[name=\"Size\"]@value"],
            "colors": [".color-swatch@aria-label", ".product-form__swatch@aria-label"],
        },
    ),
    HandlerId.WCONCEPT: _site(
        HandlerId.WCONCEPT,
        "W Concept",
        selectors={
            "name": [".product_name", ".pd_name", "h3.product"],
            "brand": [".brand_name", ".product_brand", ".pd_brand"],
            "price": [".sale_price", ".price_wrap .sale", ".pd_price"],
            "original_price": [".normal_price", ".price_wrap .normal"],
            "images": [".img_area img", ".pd_img img"],
            "sizes": ["select[name*=\"size\"] option"],
        },
    ),
}

GENERIC_SITE = _site(
    HandlerId.GENERIC,
    platform="generic",
    image_limit=10,
    description_limit=500,
    selectors={
        "name": [
            "h1",
            "[itemprop=\"name\"]",
            ".product-title",
            ".product-name",
            "#product-title",
            "[data-testid=\"product-name\"]",
        ],
        "brand": [
            "[itemprop=\"brand\"]",
            ".brand-name",
            ".product-brand",
            "meta[property=\"product:brand\"]@content",
        ],
        "price": [
            "[itemprop=\"price\"]@content",
            "[itemprop=\"price\"]",
            ".price",
            ".product-price",
            ".current-price",
            "[data-testid=\"product-price\"]",
            ".price-now",
            ".sale-price",
            "meta[property=\"product:price:amount\"]@content",
            "meta[property=\"og:price:amount\"]@content",
        ],
        "original_price": [".was-price", ".original-price", ".compare-at-price"],
        "description": [
            "[itemprop=\"description\"]",
            ".product-description",
            ".product-details",
            "meta[property=\"og:description\"]@content",
            "meta[name=\"description\"]@content",
        ],
        "images": [
            ".woocommerce-product-gallery__image img",
            ".woocommerce-product-gallery img",
            ".product-image img",
            ".product-photo img",
            "[itemprop=\"image\"]",
            ".gallery-image img",
            ".product-gallery img",
            "[data-testid=\"product-image\"]",
            ".main-image img",
            "#product-image img",
            ".wp-post-image",
        ],
        "sizes": [".size-option", ".size-selector option", "[data-testid=\"size-option\"]"],
        "color": [".color-name", ".selected-color", "[data-testid=\"product-color\"]"],
    },
)

SHOPIFY_SITE = _site(
    HandlerId.SHOPIFY,
    platform="shopify",
    selectors={
        "name": ["h1.product__title", "h1[itemprop=\"name\"]", "meta[property=\"og:title\"]@content", "h1"],
        "brand": ["meta[property=\"product:brand\"]@content", "[itemprop=\"brand\"]", ".product__vendor"],
        "price": [".product__price", "[itemprop=\"price\"]@content", ".price"],
        "original_price": [".price__sale .price-item--regular", ".product__price--compare", "s.price"],
        "description": [".product__description", "[itemprop=\"description\"]", ".product-single__description"],
        "images": [
            ".product__media img",
            ".product__image img",
            ".product-single__media img",
            "img[itemprop=\"image\"]",
            "picture img",
        ],
    },
)


def get_descriptor(handler: HandlerId) -> SiteDescriptor:
    """Descriptor for ``handler``; unknown handlers get the generic one."""
    if handler == HandlerId.SHOPIFY:
        return SHOPIFY_SITE
    return SITES.get(handler, GENERIC_SITE)
