#!/usr/bin/env python
"""
FastAPI application for the product scraping service.

Exposes the product router over HTTP: one URL in, one ``{success, product, error}``
envelope out.
"""

import time
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from common.exceptions import InvalidURLError
from config import config
from scrapers.classifier import get_hostname
from scrapers.router import ProductRouter

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting product scraping API...")
    if getattr(app.state, "router", None) is None:
        app.state.router = ProductRouter()
    yield
    logger.info("Shutting down product scraping API...")


# Initialize FastAPI app
app = FastAPI(
    title="Product Scraping API",
    description="API for extracting normalized product data from e-commerce product pages",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request and Response Models
class ScrapeRequest(BaseModel):
    url: Optional[str] = None


class ScrapeResponse(BaseModel):
    success: bool
    product: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: float
    version: str = VERSION


def get_router(request: Request) -> ProductRouter:
    router = getattr(request.app.state, "router", None)
    if router is None:
        router = ProductRouter()
        request.app.state.router = router
    return router


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "product": None, "error": message})


async def _scrape(url: Optional[str], router: ProductRouter):
    if not url or not url.strip():
        return _bad_request("URL is required")
    try:
        get_hostname(url)
    except InvalidURLError as e:
        logger.warning(f"Rejected scrape request: {e}")
        return _bad_request(str(e))

    logger.info(f"Received scrape request for {url}")
    start = time.time()
    result = await router.scrape_product(url.strip())
    logger.info(f"Scrape request for {url} finished in {time.time() - start:.2f}s. Success: {result.success}")
    return ScrapeResponse(**result.to_dict())


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", timestamp=time.time())


@app.post("/api/scrape", response_model=ScrapeResponse)
async def scrape_endpoint(request: ScrapeRequest, router: ProductRouter = Depends(get_router)):
    """Scrape one product URL given in the JSON body."""
    return await _scrape(request.url, router)


@app.get("/api/scrape", response_model=ScrapeResponse)
async def scrape_query_endpoint(url: Optional[str] = None, router: ProductRouter = Depends(get_router)):
    """Scrape one product URL given as the ``url`` query parameter."""
    return await _scrape(url, router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc):
    logger.warning(f"Invalid request to {request.url.path}: {exc}")
    return _bad_request("Request body must be JSON with a 'url' field")


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.opt(exception=exc).error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "product": None, "error": f"Internal server error: {exc}"},
    )


if __name__ == "__main__":
    uvicorn.run(
        "api:app",
        host=config.api.host,
        port=config.api.port,
        reload=True,
        log_level=config.api.log_level,
    )
