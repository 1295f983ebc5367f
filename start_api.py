#!/usr/bin/env python
"""
Startup script for the Product Scraping API.

This script provides a convenient way to start the FastAPI server with proper configuration.
"""

import os

import uvicorn

from config import config

if __name__ == "__main__":
    # Environment overrides win over config defaults
    host = os.getenv("HOST", config.api.host)
    port = int(os.getenv("PORT", str(config.api.port)))
    reload = os.getenv("RELOAD", "false").lower() == "true"
    log_level = os.getenv("LOG_LEVEL", config.api.log_level)

    print("Starting Product Scraping API...")
    print(f"API will be available at: http://{host}:{port}")
    print(f"API documentation at: http://{host}:{port}/docs")
    print(f"Health check at: http://{host}:{port}/health")
    print(f"Browser rendering: {'enabled' if config.browser.enabled else 'disabled'}")

    if reload:
        print("Development mode: auto-reload enabled")
        print("\nPress Ctrl+C to stop the server")

    uvicorn.run(
        "api:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
    )
