"""
Exception types shared by the fetch, classification and extraction layers.
"""

from typing import Optional


class ScraperError(Exception):
    """Base class for all scraper errors."""


class InvalidURLError(ScraperError):
    """The input could not be parsed into a URL with a scheme and hostname."""

    def __init__(self, url, message: Optional[str] = None):
        self.url = url
        super().__init__(message or f"Invalid URL: {url!r}")


class FetchError(ScraperError):
    """A page could not be fetched."""

    def __init__(self, url: str, message: str):
        self.url = url
        super().__init__(message)


class NetworkError(FetchError):
    """DNS resolution, connection or browser session failure."""


class FetchTimeoutError(FetchError):
    """The request or page load exceeded its time limit."""


class BlockedError(FetchError):
    """The site answered with a block status or a bot-protection page."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(url, message)


class HTTPStatusError(FetchError):
    """The page answered with an error status (4xx or 5xx) that is not a block."""

    def __init__(self, url: str, message: str, status: int):
        self.status = status
        super().__init__(url, message)


class ExtractionError(ScraperError):
    """Extraction logic failed in a way that cannot be represented as partial data."""
