from fastapi import APIRouter
from fastapi.testclient import TestClient

from quote_pipeline.api.dependencies import get_storage
from quote_pipeline.main import create_app


def test_healthz(client):
    res = client.get("/healthz")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}


def test_unhandled_error_is_json_500_with_cors(app):
    router = APIRouter()

    @router.get("/fail")
    def fail_route():
        raise RuntimeError("boom")

    app.include_router(router)

    res = TestClient(app).get("/fail", headers={"Origin": "http://foo.com"})
    assert res.status_code == 500
    assert res.json() == {"error": "boom"}
    assert res.headers.get("access-control-allow-origin") == "*"


def test_browser_preflight_allowed_from_any_origin(client):
    res = client.options(
        "/generate-quote-pdf",
        headers={
            "Origin": "https://app.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "authorization, content-type",
        },
    )
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "*"


def test_api_prefix_mounts_routes(settings, storage):
    settings.API_PREFIX = "/functions/v1"
    app = create_app(settings)
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app)
    assert client.options("/functions/v1/calculate-quote-totals").text == "ok"
    assert client.post("/calculate-quote-totals", json={}).status_code == 404


def test_openapi_lists_pipeline_routes(client):
    paths = client.get("/openapi.json").json()["paths"]
    assert "/calculate-quote-totals" in paths
    assert "/generate-quote-pdf" in paths
