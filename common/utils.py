"""
Utility functions for the Product Scraper.
Contains common helpers used across multiple modules.
"""

import re
from urllib.parse import unquote, urljoin, urlparse

from loguru import logger

PRICE_PATTERN = re.compile(r"[\d,]+\.?\d*")

# File names made only of these words, plus size or variant words, are site chrome
CHROME_IMAGE_WORDS = frozenset(
    {
        "logo", "favicon", "icon", "icons", "sprite", "sprites", "placeholder",
        "pixel", "spacer", "1x1", "blank", "transparent", "tracking",
    }
)
CHROME_IMAGE_MODIFIERS = frozenset(
    {
        "brand", "site", "header", "footer", "nav", "default", "no", "image", "img",
        "small", "large", "white", "black", "dark", "light", "2x", "3x",
    }
)
CHROME_IMAGE_DIRECTORIES = frozenset({"icons", "icon", "sprites", "logos", "favicons", "tracking", "pixels"})
SIZE_TOKEN_PATTERN = re.compile(r"^\d+(x\d+)?$")


def slug_to_title(url):
    """Guess a product name from the last path segment of a product URL.

    ``https://shop.com/women/silk-midi-dress-p12345.html`` -> ``Silk Midi Dress``
    """
    if not url:
        return ""
    path = urlparse(url).path.rstrip("/")
    if not path:
        return ""
    segment = unquote(path.split("/")[-1])
    segment = re.sub(r"\.(html?|aspx?|php)$", "", segment, flags=re.IGNORECASE)
    segment = re.sub(r"-p\d+$", "", segment)
    words = [w for w in re.split(r"[-_+\s]+", segment) if w and not w.isdigit()]
    return " ".join(w[:1].upper() + w[1:] for w in words)


def extract_price_text(text):
    """Return the first digit group of a price string with thousands separators removed.

    ``"$1,299.00 USD"`` -> ``"1299.00"``. Returns an empty string when no digits are present.
    """
    if text is None:
        return ""
    match = PRICE_PATTERN.search(str(text))
    if not match:
        return ""
    value = match.group(0).replace(",", "").rstrip(".")
    return value


def parse_price(value) -> float:
    """Coerce a number, a currency string or None into a float. Unparsable input yields 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    digits = extract_price_text(value)
    if not digits:
        return 0.0
    try:
        return float(digits)
    except ValueError:
        logger.debug(f"Unparsable price value: {value!r}")
        return 0.0


def clean_html(html_text):
    """Remove HTML tags from text."""
    if not html_text:
        return ""
    # Remove script and style tags
    text = re.sub(r"<(script|style)[^>]*>.*?</\1>", " ", str(html_text), flags=re.DOTALL)
    # Remove all other HTML tags
    text = re.sub(r"<[^>]+>", " ", text)
    # Remove extra whitespace
    text = re.sub(r"\s+", " ", text).strip()
    return text


def clean_description(text: str) -> str:
    """Clean and normalize description text."""
    if not text:
        return ""
    text = clean_html(text)
    # Filter out common JavaScript warnings
    if text.startswith("JavaScript seems to be disabled"):
        return ""
    return text


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, ending in an ellipsis when shortened."""
    if not text or len(text) <= limit:
        return text or ""
    return text[: limit - 3] + "..."


def get_domain_from_url(url):
    """Extract the domain from a URL."""
    if not url:
        return ""

    parsed = urlparse(url)
    domain = parsed.netloc.lower()

    # Remove www prefix
    domain = re.sub(r"^www\.", "", domain)

    return domain


def domain_brand(url):
    """Build a display brand from the first label of the domain (``rachel-comey.com`` -> ``Rachel comey``)."""
    domain = get_domain_from_url(url)
    if not domain:
        return ""
    label = domain.split(".")[0]
    label = label.replace("-", " ")
    return label[:1].upper() + label[1:]


def strip_www(url):
    """Return ``url`` with a leading ``www.`` removed from its hostname, or None when there is none."""
    parsed = urlparse(url)
    if not parsed.netloc.lower().startswith("www."):
        return None
    return parsed._replace(netloc=parsed.netloc[4:]).geturl()


def ensure_absolute_url(url: str, base_url: str) -> str:
    """Ensure a URL is absolute."""
    if not url:
        return ""

    url = url.strip()
    if url.startswith(("http://", "https://")):
        return url
    elif url.startswith("//"):
        return f"https:{url}"
    elif url.startswith("/"):
        parsed_base = urlparse(base_url)
        return f"{parsed_base.scheme}://{parsed_base.netloc}{url}"
    else:
        return urljoin(base_url.rstrip("/") + "/", url)


def is_low_value_image(url: str) -> bool:
    """True for inline data, tracking pixels, placeholders and site chrome.

    Only whole file names and directory names count, so ``/products/logo-tee.jpg`` stays.
    """
    if not url:
        return True
    lowered = url.lower()
    if lowered.startswith("data:"):
        return True
    segments = [unquote(s) for s in urlparse(lowered).path.split("/") if s]
    if not segments:
        return False
    if any(segment in CHROME_IMAGE_DIRECTORIES for segment in segments[:-1]):
        return True
    stem = segments[-1].split(".")[0]
    words = [w for w in re.split(r"[-_\s]+", stem) if w]
    if not any(w in CHROME_IMAGE_WORDS for w in words):
        return False
    return all(w in CHROME_IMAGE_WORDS or w in CHROME_IMAGE_MODIFIERS or SIZE_TOKEN_PATTERN.match(w) for w in words)


def clean_image_urls(urls, base_url: str, limit=None):
    """Absolutize, filter and de-duplicate image URLs, keeping discovery order."""
    seen = set()
    images = []
    for raw in urls or []:
        if not isinstance(raw, str) or not raw.strip():
            continue
        absolute = ensure_absolute_url(raw, base_url)
        if is_low_value_image(absolute):
            continue
        if absolute in seen:
            continue
        seen.add(absolute)
        images.append(absolute)
        if limit and len(images) >= limit:
            break
    return images


def dedupe(values):
    """Drop empty and repeated strings while keeping order."""
    seen = set()
    result = []
    for value in values or []:
        if value is None:
            continue
        text = str(value).strip()
        if not text or text in seen:
            continue
        seen.add(text)
        result.append(text)
    return result
