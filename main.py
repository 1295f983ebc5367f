#!/usr/bin/env python
"""
Product Scraper - Main Entry Point
---
Command line interface for classifying, resolving and scraping product URLs.
"""

import asyncio
import csv
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import click
import tqdm
from loguru import logger

from common.exceptions import InvalidURLError
from common.fetcher import Fetcher
from common.platform_detector import PlatformDetector
from config import config
from scrapers.classifier import classify
from scrapers.redirect import RedirectResolver
from scrapers.router import ProductRouter


# Configure logging
def setup_logging(log_dir_override=None):
    """Configure logging for the application."""
    log_dir = Path(log_dir_override) if log_dir_override else config.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    # Remove default logger
    logger.remove()

    # Add file logger with rotation
    log_file = log_dir / f"product_scraper_{datetime.now().strftime('%Y%m%d')}.log"
    logger.add(
        log_file,
        rotation="10 MB",
        retention="1 week",
        level="INFO",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    )

    # Add console logger
    logger.add(
        sys.stderr,
        level="INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level}</level> | <level>{message}</level>",
    )

    # Scraper modules log through the standard library
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    return logger


def build_router(no_browser=False):
    settings = config
    if no_browser:
        settings = config.model_copy(update={"browser": config.browser.model_copy(update={"enabled": False})})
    return ProductRouter(settings=settings)


def read_urls(path):
    """Read URLs from a CSV with a ``url`` column or from a plain file with one URL per line."""
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix.lower() == ".csv":
            reader = csv.DictReader(f)
            if not reader.fieldnames or "url" not in reader.fieldnames:
                raise click.ClickException(f"Column 'url' not found in CSV file {path}")
            return [row["url"].strip() for row in reader if (row.get("url") or "").strip()]
        return [line.strip() for line in f if line.strip() and not line.startswith("#")]


def write_json(data, output):
    text = json.dumps(data, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Wrote results to {output}")
    else:
        click.echo(text)


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """Product Scraper - Tool for extracting normalized product data from store pages."""
    setup_logging()


@cli.command()
@click.argument("url")
def detect(url):
    """Show which handler a URL routes to and which platform the site runs on."""
    try:
        handler = classify(url)
    except InvalidURLError as e:
        click.echo(f"Error: {e}")
        return

    click.echo(f"Handler: {handler.value}")
    logger.info(f"Detecting platform for {url}...")

    async def run_detection():
        detector = PlatformDetector(Fetcher())
        return await detector.detect(url)

    platform, confidence = asyncio.run(run_detection())
    logger.info(f"Detected platform: {platform} (confidence={confidence})")
    click.echo(f"Website {url} is using platform: {platform} (confidence={confidence})")


@cli.command()
@click.argument("url")
@click.option("--output", type=click.Path(), help="Write the JSON result to this file")
@click.option("--no-browser", is_flag=True, help="Never fall back to headless browser rendering")
def scrape(url, output, no_browser):
    """Scrape a single product URL."""
    logger.info(f"Scraping product from {url}")
    router = build_router(no_browser)
    result = asyncio.run(router.scrape_product(url))
    if not result.success:
        logger.warning(f"Scrape of {url} did not succeed: {result.error}")
    write_json(result.to_dict(), output)


@cli.command()
@click.argument("url")
def resolve(url):
    """Follow an affiliate or short link and print the redirect chain."""
    resolver = RedirectResolver(Fetcher())
    result = asyncio.run(resolver.resolve(url))
    click.echo(f"State: {result.state.value}")
    for index, hop in enumerate(result.visited):
        click.echo(f"  {index}: {hop}")
    click.echo(f"Final URL: {result.final_url} ({result.redirect_count} redirects)")
    if result.error:
        click.echo(f"Error: {result.error}")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", type=click.Path(), help="Write the JSON results to this file")
@click.option("--concurrent", type=int, default=3, help="Number of concurrent scraping tasks")
@click.option("--no-browser", is_flag=True, help="Never fall back to headless browser rendering")
def batch(file, output, concurrent, no_browser):
    """Scrape every URL in FILE (one per line, or a CSV with a 'url' column)."""
    urls = read_urls(file)
    logger.info(f"Found {len(urls)} URLs in {file}")
    if not urls:
        click.echo("No URLs found.")
        return

    router = build_router(no_browser)

    async def scrape_all():
        semaphore = asyncio.Semaphore(max(concurrent, 1))
        results = [None] * len(urls)

        async def scrape_one(index, url):
            async with semaphore:
                results[index] = await router.scrape_product(url)

        tasks = [scrape_one(i, url) for i, url in enumerate(urls)]
        # Process with progress bar
        for task in tqdm.tqdm(asyncio.as_completed(tasks), total=len(tasks), desc="Scraping products"):
            await task
        return results

    results = asyncio.run(scrape_all())
    succeeded = sum(1 for r in results if r.success)
    logger.info(f"Batch finished: {succeeded}/{len(results)} succeeded")
    write_json([{"url": url, **result.to_dict()} for url, result in zip(urls, results)], output)
    click.echo(f"Scraped {succeeded} of {len(urls)} products successfully")


if __name__ == "__main__":
    cli()
