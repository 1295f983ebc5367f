"""
Affiliate and short-link resolution.

The resolver walks a redirect chain one hop at a time (auto-follow disabled) so every hop
is visible, loops are caught and the hop count stays bounded. It never extracts anything.
"""

import logging
from enum import Enum
from typing import List, Optional
from urllib.parse import urljoin

from pydantic import BaseModel

from common.exceptions import BlockedError, FetchTimeoutError, NetworkError
from config import config
from scrapers.classifier import is_redirect_platform

logger = logging.getLogger(__name__)


class RedirectState(str, Enum):
    FOLLOWING = "following"
    RESOLVED = "resolved"
    ABORTED = "aborted"


class RedirectResult(BaseModel):
    original_url: str
    final_url: str
    redirect_count: int = 0
    state: RedirectState = RedirectState.FOLLOWING
    error: Optional[str] = None
    visited: List[str] = []

    @property
    def resolved(self) -> bool:
        return self.state == RedirectState.RESOLVED


def _location(headers) -> Optional[str]:
    for key, value in (headers or {}).items():
        if key.lower() == "location" and value:
            return value
    return None


class RedirectResolver:
    def __init__(self, fetcher, max_hops: Optional[int] = None, timeout: Optional[float] = None):
        self.fetcher = fetcher
        self.max_hops = max_hops if max_hops is not None else config.scraper.max_redirect_hops
        self.timeout = timeout or config.scraper.redirect_timeout

    async def resolve(self, url: str) -> RedirectResult:
        """Follow ``url`` to its destination.

        Returns a RedirectResult in state RESOLVED or ABORTED; never raises for network
        conditions.
        """
        result = RedirectResult(original_url=url, final_url=url, visited=[url])
        current = url

        while result.state == RedirectState.FOLLOWING:
            try:
                page = await self.fetcher.fetch(current, follow_redirects=False, timeout=self.timeout)
            except BlockedError as e:
                # The destination host answered, it just won't serve us
                logger.info(f"Redirect target {current} is protected, treating as resolved: {e}")
                result.state = RedirectState.RESOLVED
                break
            except (NetworkError, FetchTimeoutError) as e:
                result.error = str(e)
                if result.redirect_count == 0:
                    logger.warning(f"Could not reach {current}: {e}")
                    result.state = RedirectState.ABORTED
                else:
                    logger.warning(f"Redirect chain stopped at {current} after {result.redirect_count} hops: {e}")
                    result.state = RedirectState.RESOLVED
                break

            location = _location(page.headers)
            if not (300 <= page.status < 400 and location):
                result.state = RedirectState.RESOLVED
                break

            target = urljoin(current, location)
            if target in result.visited:
                logger.warning(f"Redirect loop detected at {target}")
                result.state = RedirectState.ABORTED
                result.error = "Redirect loop detected"
                break
            if result.redirect_count >= self.max_hops:
                logger.warning(f"Gave up on {url} after {result.redirect_count} redirects")
                result.state = RedirectState.ABORTED
                result.error = "Could not resolve: too many redirects"
                break

            result.redirect_count += 1
            result.visited.append(target)
            logger.info(f"Redirect {result.redirect_count}: {current} -> {target}")
            current = target

        result.final_url = current
        if result.state == RedirectState.RESOLVED and is_redirect_platform(current):
            logger.warning(f"Redirect chain for {url} ended on a redirect platform: {current}")
            result.state = RedirectState.ABORTED
            result.error = "Still on redirect platform"

        logger.info(f"Redirect resolution for {url}: {result.state.value} at {result.final_url}")
        return result
