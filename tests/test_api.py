import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from api import app, get_router
from scrapers.normalizer import normalize
from scrapers.router import ScrapeResult

PRODUCT_URL = "https://tibi.com/products/wrap-dress"


class StubRouter:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.urls = []

    async def scrape_product(self, url):
        self.urls.append(url)
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def use_router():
    def install(router):
        app.dependency_overrides[get_router] = lambda: router
        return router

    yield install
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app, raise_server_exceptions=False)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["version"] == "1.0.0"


def test_scrape_success(client, use_router):
    product = normalize({"name": "Wrap Dress", "price": "395.00", "brand": "TIBI"}, PRODUCT_URL)
    router = use_router(StubRouter(ScrapeResult(success=True, product=product)))
    response = client.post("/api/scrape", json={"url": PRODUCT_URL})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["error"] is None
    assert body["product"]["name"] == body["product"]["product_name"] == "Wrap Dress"
    assert body["product"]["sale_price"] == 395.0
    assert router.urls == [PRODUCT_URL]


def test_scrape_failure_is_still_200(client, use_router):
    error = "Could not connect to https://gone.example/p"
    use_router(StubRouter(ScrapeResult(success=False, product=None, error=error)))
    response = client.post("/api/scrape", json={"url": "https://gone.example/p"})
    assert response.status_code == 200
    assert response.json() == {"success": False, "product": None, "error": error}


def test_scrape_via_query_string(client, use_router):
    product = normalize({"name": "Wrap Dress", "price": 395}, PRODUCT_URL)
    router = use_router(StubRouter(ScrapeResult(success=True, product=product)))
    response = client.get("/api/scrape", params={"url": PRODUCT_URL})
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert router.urls == [PRODUCT_URL]


@pytest.mark.parametrize(
    "payload,message",
    [
        ({}, "URL is required"),
        ({"url": ""}, "URL is required"),
        ({"url": "   "}, "URL is required"),
        ({"url": "not a url"}, "Invalid URL"),
        ({"url": "ftp://tibi.com/file"}, "Invalid URL"),
    ],
)
def test_scrape_rejects_bad_input(client, use_router, payload, message):
    router = use_router(StubRouter())
    response = client.post("/api/scrape", json=payload)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["product"] is None
    assert message in body["error"]
    assert router.urls == []


def test_query_without_url_is_rejected(client, use_router):
    use_router(StubRouter())
    response = client.get("/api/scrape")
    assert response.status_code == 400


def test_malformed_json_is_rejected(client, use_router):
    use_router(StubRouter())
    response = client.post("/api/scrape", content="{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_unhandled_error_returns_500_envelope(client, use_router):
    use_router(StubRouter(error=RuntimeError("router crashed")))
    response = client.post("/api/scrape", json={"url": PRODUCT_URL})
    assert response.status_code == 500
    assert response.json() == {"success": False, "product": None, "error": "Internal server error: router crashed"}
