"""
Configuration module for the Product Scraper.
Handles all environment variables and project settings.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Always load .env at the very top
load_dotenv(dotenv_path=Path(__file__).parent / ".env")

# Determine environment (dev, test, prod, etc.)
ENV = os.getenv("ENV", "dev")

# Base project directory
BASE_DIR = Path(__file__).resolve().parent

# Log directory
LOG_DIR = Path(os.getenv("LOG_DIR", "./logs"))

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class ScraperConfig(BaseModel):
    """General scraper configuration settings."""

    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: int = 30
    probe_timeout: int = 10
    redirect_timeout: int = 10
    max_redirects: int = 5
    max_redirect_hops: int = 10
    timeout_retries: int = 1


class BrowserSettings(BaseModel):
    """Headless browser settings used for client-rendered pages."""

    enabled: bool = True
    headless: bool = True
    executable_path: Optional[str] = None
    page_timeout_ms: int = 45000
    selector_timeout_ms: int = 10000


class ProxyConfig(BaseModel):
    """Proxy settings for sites that block cloud server addresses."""

    use_proxy: bool = False
    proxy_url: Optional[str] = None
    proxy_sites: List[str] = ["ralphlauren.com", "cos.com", "sezane.com"]

    def proxy_for(self, url: str) -> Optional[str]:
        """Return the proxy URL to use for ``url``, or None for a direct connection."""
        if not self.use_proxy or not self.proxy_url or not url:
            return None
        if any(site in url for site in self.proxy_sites):
            return self.proxy_url
        return None


class ApiConfig(BaseModel):
    """HTTP API server settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    cors_origins: List[str] = ["*"]


# Main configuration object
class Config(BaseModel):
    """
    Main configuration class for the Product Scraper.
    Loads and validates all environment variables and settings.
    Supports environment selection (dev, test, prod) via ENV variable.
    """

    scraper: ScraperConfig
    browser: BrowserSettings
    proxy: ProxyConfig
    api: ApiConfig
    LOG_DIR: Path = LOG_DIR
    ENV: str = ENV

    @classmethod
    def from_env(cls):
        """
        Create configuration from environment variables.
        Every setting has a default, so an empty environment is valid.
        """
        return cls(
            scraper=ScraperConfig(
                user_agent=os.getenv("USER_AGENT", DEFAULT_USER_AGENT),
                request_timeout=int(os.getenv("REQUEST_TIMEOUT", "30")),
                probe_timeout=int(os.getenv("PROBE_TIMEOUT", "10")),
                redirect_timeout=int(os.getenv("REDIRECT_TIMEOUT", "10")),
                max_redirects=int(os.getenv("MAX_REDIRECTS", "5")),
                max_redirect_hops=int(os.getenv("MAX_REDIRECT_HOPS", "10")),
                timeout_retries=int(os.getenv("TIMEOUT_RETRIES", "1")),
            ),
            browser=BrowserSettings(
                enabled=_env_bool("ENABLE_BROWSER", True),
                headless=_env_bool("BROWSER_HEADLESS", True),
                executable_path=os.getenv("BROWSER_EXECUTABLE_PATH") or None,
                page_timeout_ms=int(os.getenv("PAGE_TIMEOUT_MS", "45000")),
                selector_timeout_ms=int(os.getenv("SELECTOR_TIMEOUT_MS", "10000")),
            ),
            proxy=ProxyConfig(
                use_proxy=_env_bool("USE_PROXY", False),
                proxy_url=os.getenv("PROXY_URL") or None,
                proxy_sites=_env_list("PROXY_SITES", ["ralphlauren.com", "cos.com", "sezane.com"]),
            ),
            api=ApiConfig(
                host=os.getenv("HOST", "0.0.0.0"),
                port=int(os.getenv("PORT", "8000")),
                log_level=os.getenv("LOG_LEVEL", "info"),
                cors_origins=_env_list("CORS_ORIGINS", ["*"]),
            ),
            LOG_DIR=Path(os.getenv("LOG_DIR", str(LOG_DIR))),
            ENV=os.getenv("ENV", ENV),
        )


# Create config instance for importing in other modules
config = Config.from_env()
