"""
Structured product data embedded in HTML: JSON-LD, framework state blobs and meta tags.

Every parse attempt yields a ParseOutcome so callers can report how many sources were
tried and which ones failed, instead of silently skipping bad blocks.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Tuple

from bs4 import BeautifulSoup
from pydantic import BaseModel

from common.utils import clean_description

logger = logging.getLogger(__name__)

PRODUCT_TYPES = ("Product", "ProductGroup", "IndividualProduct")

NEXT_DATA_SCRIPT = re.compile(
    r"<script[^>]*id=[\"']__NEXT_DATA__[\"'][^>]*>(.*?)</script>", re.DOTALL | re.IGNORECASE
)

# Depth bound for walking framework state trees
MAX_STATE_DEPTH = 12

META_FIELDS = {
    "og:title": "name",
    "og:image": "image",
    "og:description": "description",
    "product:price:amount": "price",
    "og:price:amount": "price",
    "product:price:currency": "currency",
    "og:price:currency": "currency",
    "product:brand": "brand",
    "og:brand": "brand",
}


class ParseOutcome(BaseModel):
    """Result of one attempt to parse one structured data source."""

    source: str
    value: Optional[Any] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _is_product(node: Any) -> bool:
    if not isinstance(node, dict):
        return False
    node_type = node.get("@type")
    if isinstance(node_type, list):
        return any(t in PRODUCT_TYPES for t in node_type)
    return node_type in PRODUCT_TYPES


def _find_products(data: Any) -> List[Dict[str, Any]]:
    """Collect Product nodes from a JSON-LD document (plain, @graph, list or mainEntity)."""
    if isinstance(data, list):
        found = []
        for item in data:
            found.extend(_find_products(item))
        return found
    if not isinstance(data, dict):
        return []
    if _is_product(data):
        return [data]
    found = []
    if "@graph" in data:
        found.extend(_find_products(data["@graph"]))
    if isinstance(data.get("mainEntity"), dict):
        found.extend(_find_products(data["mainEntity"]))
    return found


def extract_json_ld(soup: BeautifulSoup) -> Tuple[List[Dict[str, Any]], List[ParseOutcome]]:
    """Parse every ``application/ld+json`` block.

    Returns:
        The Product nodes found across all blocks, and one ParseOutcome per block.
    """
    products = []
    outcomes = []
    for index, script in enumerate(soup.find_all("script", type="application/ld+json")):
        source = f"json-ld[{index}]"
        text = script.string or script.get_text() or ""
        if not text.strip():
            outcomes.append(ParseOutcome(source=source, error="empty block"))
            continue
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Could not parse {source}: {e}")
            outcomes.append(ParseOutcome(source=source, error=f"invalid JSON: {e}"))
            continue
        nodes = _find_products(data)
        products.extend(nodes)
        outcomes.append(ParseOutcome(source=source, value=len(nodes)))
    return products, outcomes


def extract_embedded_state(html: str, patterns: Iterable[str]) -> Tuple[Optional[Any], List[ParseOutcome]]:
    """Find the first framework state object that parses as JSON.

    Checks ``<script id="__NEXT_DATA__">`` and then each ``window.X = {...}`` pattern.
    """
    outcomes = []
    if not html:
        return None, outcomes

    candidates = []
    match = NEXT_DATA_SCRIPT.search(html)
    if match:
        candidates.append(("__NEXT_DATA__", match.group(1)))
    for pattern in patterns:
        match = re.search(pattern, html, re.DOTALL)
        if match:
            candidates.append((pattern.split("\\s")[0].replace("\\", ""), match.group(1)))

    for source, text in candidates:
        try:
            state = json.loads(text)
        except (json.JSONDecodeError, ValueError) as e:
            logger.debug(f"Could not parse embedded state {source}: {e}")
            outcomes.append(ParseOutcome(source=source, error=f"invalid JSON: {e}"))
            continue
        outcomes.append(ParseOutcome(source=source, value=True))
        return state, outcomes
    return None, outcomes


def extract_meta(soup: BeautifulSoup) -> Dict[str, str]:
    """Read Open Graph and product meta tags into raw-record field names."""
    meta = {}
    for tag in soup.find_all("meta"):
        key = tag.get("property") or tag.get("name")
        content = tag.get("content")
        if not key or not content:
            continue
        field = META_FIELDS.get(key.strip().lower())
        if field and field not in meta:
            meta[field] = content.strip()
    if "description" not in meta:
        description = soup.find("meta", attrs={"name": "description"})
        if description and description.get("content"):
            meta["description"] = description["content"].strip()
    return meta


def _json_ld_images(image: Any) -> List[str]:
    if not image:
        return []
    if isinstance(image, str):
        return [image]
    if isinstance(image, dict):
        url = image.get("url") or image.get("contentUrl")
        return [url] if isinstance(url, str) else []
    if isinstance(image, list):
        images = []
        for item in image:
            images.extend(_json_ld_images(item))
        return images
    return []


def _offer_prices(offers: Any) -> Dict[str, Any]:
    if isinstance(offers, list):
        offers = next((o for o in offers if isinstance(o, dict)), None)
    if not isinstance(offers, dict):
        return {}

    fields = {}
    price = offers.get("price")
    if price in (None, "") and offers.get("lowPrice") not in (None, ""):
        price = offers.get("lowPrice")
    if price in (None, "") and isinstance(offers.get("offers"), (list, dict)):
        return _offer_prices(offers["offers"])
    if price not in (None, ""):
        fields["price"] = price
    if offers.get("priceCurrency"):
        fields["currency"] = offers["priceCurrency"]

    specs = offers.get("priceSpecification")
    if isinstance(specs, dict):
        specs = [specs]
    for spec in specs or []:
        if not isinstance(spec, dict):
            continue
        kind = f"{spec.get('@type', '')} {spec.get('priceType', '')} {spec.get('name', '')}".lower()
        if "strikethrough" in kind or "listprice" in kind or "list price" in kind:
            fields["original_price"] = spec.get("price")
        elif "sale" in kind and spec.get("price") not in (None, ""):
            fields["price"] = spec.get("price")

    availability = offers.get("availability")
    if isinstance(availability, str):
        fields["in_stock"] = "instock" in availability.lower().replace(" ", "")
    return fields


def product_from_json_ld(node: Dict[str, Any]) -> Dict[str, Any]:
    """Map a JSON-LD Product node onto raw-record fields. Missing fields are left out."""
    record: Dict[str, Any] = {}
    if not isinstance(node, dict):
        return record

    if isinstance(node.get("name"), str):
        record["name"] = node["name"].strip()

    brand = node.get("brand")
    if isinstance(brand, list):
        brand = brand[0] if brand else None
    if isinstance(brand, dict):
        brand = brand.get("name")
    if isinstance(brand, str) and brand.strip():
        record["brand"] = brand.strip()

    record.update(_offer_prices(node.get("offers")))
    # ProductGroup nodes carry offers on their variants
    if "price" not in record and isinstance(node.get("hasVariant"), list):
        for variant in node["hasVariant"]:
            prices = _offer_prices(variant.get("offers")) if isinstance(variant, dict) else {}
            if "price" in prices:
                record.update(prices)
                break

    images = _json_ld_images(node.get("image"))
    if images:
        record["images"] = images

    if isinstance(node.get("description"), str):
        record["description"] = clean_description(node["description"])
    for key in ("sku", "mpn"):
        if node.get(key):
            record["sku"] = str(node[key])
            break
    if isinstance(node.get("color"), str):
        record["color"] = node["color"]
    if node.get("material"):
        record["material"] = node["material"]
    if isinstance(node.get("category"), str):
        record["category"] = node["category"]
    return record


def _looks_like_product(node: Dict[str, Any]) -> bool:
    has_name = isinstance(node.get("name") or node.get("title"), str)
    has_price = any(key in node for key in ("price", "prices", "offers", "priceRange", "currentPrice"))
    return has_name and has_price


def product_from_state(state: Any) -> Dict[str, Any]:
    """Best-effort product fields from a framework state tree.

    Walks the tree breadth first and maps the first object that carries a name and a
    price-like key.
    """
    queue = [(state, 0)]
    while queue:
        node, depth = queue.pop(0)
        if depth > MAX_STATE_DEPTH:
            continue
        if isinstance(node, dict):
            if node.get("@type") in PRODUCT_TYPES:
                return product_from_json_ld(node)
            if _looks_like_product(node):
                return _state_product_fields(node)
            queue.extend((value, depth + 1) for value in node.values() if isinstance(value, (dict, list)))
        elif isinstance(node, list):
            queue.extend((value, depth + 1) for value in node if isinstance(value, (dict, list)))
    return {}


def _price_value(value: Any) -> Any:
    if isinstance(value, dict):
        for key in ("value", "amount", "current", "sale", "price", "formatted"):
            if value.get(key) not in (None, ""):
                return _price_value(value[key])
        return None
    return value


def _state_product_fields(node: Dict[str, Any]) -> Dict[str, Any]:
    record: Dict[str, Any] = {"name": (node.get("name") or node.get("title")).strip()}

    price = None
    for key in ("currentPrice", "price", "prices", "priceRange"):
        if key in node:
            price = _price_value(node[key])
            if price not in (None, ""):
                break
    if price not in (None, ""):
        record["price"] = price
    for key in ("originalPrice", "compareAtPrice", "listPrice", "wasPrice"):
        original = _price_value(node.get(key))
        if original not in (None, ""):
            record["original_price"] = original
            break

    brand = node.get("brand") or node.get("designer") or node.get("vendor")
    if isinstance(brand, dict):
        brand = brand.get("name")
    if isinstance(brand, str):
        record["brand"] = brand

    images = node.get("images") or node.get("image")
    if isinstance(images, list):
        urls = []
        for image in images:
            if isinstance(image, str):
                urls.append(image)
            elif isinstance(image, dict):
                url = image.get("url") or image.get("src")
                if isinstance(url, str):
                    urls.append(url)
        if urls:
            record["images"] = urls
    elif isinstance(images, str):
        record["images"] = [images]

    if isinstance(node.get("description"), str):
        record["description"] = clean_description(node["description"])
    return record


def summarize_outcomes(outcomes: List[ParseOutcome], url: str) -> Dict[str, int]:
    """Log failed parse attempts and return attempt/failure counts."""
    failed = [o for o in outcomes if not o.ok]
    for outcome in failed:
        logger.debug(f"{outcome.source} failed on {url}: {outcome.error}")
    if failed:
        logger.warning(f"{len(failed)} of {len(outcomes)} structured data sources failed to parse on {url}")
    return {"attempted": len(outcomes), "failed": len(failed)}
