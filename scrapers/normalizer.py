"""
Turns the loosely shaped records extractors return into one canonical product.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from common.category import CategoryDetector
from common.utils import dedupe, parse_price
from scrapers.sites import DEFAULT_BRAND, SiteDescriptor

logger = logging.getLogger(__name__)

# Raw keys extractors have historically used for the same field, in lookup order
RAW_ALIASES = {
    "name": ("name", "product_name", "title"),
    "price": ("price", "sale_price", "salePrice", "currentPrice"),
    "original_price": ("original_price", "originalPrice", "compare_at_price", "compareAtPrice"),
    "images": ("images", "image_urls", "imageUrls", "image"),
    "in_stock": ("in_stock", "inStock"),
    "needs_manual_check": ("needs_manual_check", "needsManualCheck"),
    "color": ("color", "colour"),
    "material": ("material", "materials"),
}

# Schema name -> legacy name, both emitted by to_legacy_dict
LEGACY_KEYS = {
    "product_name": "name",
    "sale_price": "price",
    "original_price": "originalPrice",
    "is_on_sale": "isOnSale",
    "discount_percentage": "discountPercentage",
    "sale_badge": "saleBadge",
    "image_urls": "images",
    "in_stock": "inStock",
    "needs_manual_check": "needsManualCheck",
}


class RedirectInfo(BaseModel):
    original_url: str
    final_url: str
    redirect_count: int = 0


class NormalizedProduct(BaseModel):
    name: str = ""
    brand: str = DEFAULT_BRAND
    sale_price: float = 0.0
    original_price: float = 0.0
    is_on_sale: bool = False
    discount_percentage: Optional[int] = None
    sale_badge: Optional[str] = None
    images: List[str] = []
    vendor_url: str = ""
    color: str = ""
    colors: List[str] = []
    sizes: List[str] = []
    category: str = "Other"
    material: str = ""
    description: str = ""
    sku: str = ""
    in_stock: bool = True
    currency: str = ""
    platform: str = ""
    error: Optional[str] = None
    blocked: bool = False
    needs_manual_check: bool = False
    redirect: Optional[RedirectInfo] = None

    def has_usable_data(self) -> bool:
        """Name plus a positive price, or name plus at least one image."""
        return bool(self.name) and (self.sale_price > 0 or bool(self.images))

    def has_any_data(self) -> bool:
        return bool(self.name or self.images or self.sale_price > 0)


def _raw(raw: Dict[str, Any], field: str) -> Any:
    for key in RAW_ALIASES.get(field, (field,)):
        if raw.get(key) not in (None, ""):
            return raw[key]
    return None


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _strings(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return dedupe(v for v in value if isinstance(v, str))


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "instock", "in stock")
    return bool(value)


def sale_fields(sale_price: float, original_price: float) -> Dict[str, Any]:
    """Derive sale flag, discount and badge. ``original_price`` defaults to ``sale_price``."""
    if not original_price:
        original_price = sale_price
    is_on_sale = original_price > sale_price
    discount = None
    if is_on_sale and original_price > 0:
        discount = round((1 - sale_price / original_price) * 100)
    return {
        "sale_price": sale_price,
        "original_price": original_price,
        "is_on_sale": is_on_sale,
        "discount_percentage": discount,
        "sale_badge": "SALE" if is_on_sale else None,
    }


def normalize(
    raw: Any,
    requested_url: str,
    site_defaults: Optional[SiteDescriptor] = None,
    category_detector: Optional[CategoryDetector] = None,
    redirect: Optional[RedirectInfo] = None,
) -> NormalizedProduct:
    """Shape a raw extractor record into a NormalizedProduct. Total over malformed input."""
    if not isinstance(raw, dict):
        logger.warning(f"Normalizer got a {type(raw).__name__} instead of a record for {requested_url}")
        raw = {}
    detector = category_detector or CategoryDetector()

    name = _text(_raw(raw, "name"))
    description = _text(raw.get("description"))
    brand = _text(raw.get("brand"))
    if not brand:
        brand = site_defaults.brand_fallback if site_defaults else DEFAULT_BRAND

    prices = sale_fields(parse_price(_raw(raw, "price")), parse_price(_raw(raw, "original_price")))

    material = _raw(raw, "material")
    if isinstance(material, (list, tuple)):
        material = ", ".join(_strings(material))

    hint = _text(raw.get("category")) or (site_defaults.category_hint if site_defaults else None)
    category = detector.detect(name=name, description=description, brand=brand, hint=hint or None)

    error = _text(raw.get("error")) or None
    return NormalizedProduct(
        name=name,
        brand=brand,
        images=_strings(_raw(raw, "images")),
        vendor_url=requested_url or _text(raw.get("url")),
        color=_text(_raw(raw, "color")),
        colors=_strings(raw.get("colors")),
        sizes=_strings(raw.get("sizes")),
        category=category,
        material=_text(material),
        description=description,
        sku=_text(raw.get("sku")),
        in_stock=_flag(_raw(raw, "in_stock"), default=error is None),
        currency=_text(raw.get("currency")),
        platform=_text(raw.get("platform")),
        error=error,
        blocked=_flag(raw.get("blocked"), default=False),
        needs_manual_check=_flag(_raw(raw, "needs_manual_check"), default=False),
        redirect=redirect,
        **prices,
    )


def to_legacy_dict(product: NormalizedProduct) -> Dict[str, Any]:
    """Serialize for clients that read either naming scheme.

    Every renamed field is written under both names, each an independent copy.
    """
    data = product.model_dump(exclude={"name", "images", "redirect"})
    data["product_name"] = product.name
    data["image_urls"] = list(product.images)
    for schema_key, legacy_key in LEGACY_KEYS.items():
        value = data[schema_key]
        data[legacy_key] = list(value) if isinstance(value, list) else value
    if product.redirect is not None:
        data["originalUrl"] = product.redirect.original_url
        data["finalUrl"] = product.redirect.final_url
        data["redirectCount"] = product.redirect.redirect_count
    return data
