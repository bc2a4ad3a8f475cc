import httpx
import pytest
import respx
from fastapi.testclient import TestClient
from httpx import Response

from curator.gemini import generate_content_url
from curator.main import create_app
from curator.rate_limit import RateLimiter

GEMINI_URL = generate_content_url()
GEMINI_REPLY = {
    "candidates": [{"content": {"parts": [{"text": "It matters because..."}]}}]
}


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")


@pytest.fixture
def client():
    return TestClient(create_app(RateLimiter(limit=3, window_seconds=60)))


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@respx.mock
def test_success_forwards_upstream_body(api_key, client):
    route = respx.post(GEMINI_URL).mock(return_value=Response(200, json=GEMINI_REPLY))

    resp = client.post("/api/gemini", json={"prompt": "Why does this matter?"})

    assert resp.status_code == 200
    assert resp.json() == GEMINI_REPLY
    assert resp.headers["X-RateLimit-Remaining"] == "2"

    sent = route.calls.last.request
    assert sent.url.params["key"] == "test-key"
    assert b"Why does this matter?" in sent.content


@respx.mock
def test_rate_limited_after_limit(api_key, client):
    respx.post(GEMINI_URL).mock(return_value=Response(200, json=GEMINI_REPLY))
    headers = {"X-Forwarded-For": "203.0.113.9"}

    for expected in ("2", "1", "0"):
        resp = client.post("/api/gemini", json={"prompt": "hi"}, headers=headers)
        assert resp.headers["X-RateLimit-Remaining"] == expected

    resp = client.post("/api/gemini", json={"prompt": "hi"}, headers=headers)
    assert resp.status_code == 429
    assert resp.headers["X-RateLimit-Remaining"] == "0"
    assert int(resp.headers["X-RateLimit-Reset"]) > 0
    assert "error" in resp.json()

    # A different client still gets through
    other = client.post("/api/gemini", json={"prompt": "hi"}, headers={"X-Real-IP": "198.51.100.1"})
    assert other.status_code == 200


def test_rate_limit_checked_before_anything_else(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    client = TestClient(create_app(RateLimiter(limit=1, window_seconds=60)))

    assert client.post("/api/gemini", json={"prompt": "hi"}).status_code == 500
    assert client.post("/api/gemini", json={"prompt": "hi"}).status_code == 429


def test_missing_api_key_is_configuration_error(monkeypatch, client):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    resp = client.post("/api/gemini", json={"prompt": "hi"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Service configuration error"}


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"prompt": 42},
        {"prompt": None},
        {"prompt": ["a"]},
        {"prompt": ""},
        {"prompt": "   \n\t"},
        {"prompt": "x" * 50001},
        ["prompt"],
    ],
)
def test_invalid_prompt_rejected(api_key, client, body):
    resp = client.post("/api/gemini", json=body)
    assert resp.status_code == 400
    assert "error" in resp.json()


def test_non_json_body_rejected(api_key, client):
    resp = client.post(
        "/api/gemini", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400


@respx.mock
def test_prompt_at_max_length_accepted(api_key, client):
    respx.post(GEMINI_URL).mock(return_value=Response(200, json=GEMINI_REPLY))
    resp = client.post("/api/gemini", json={"prompt": "x" * 50000})
    assert resp.status_code == 200


@respx.mock
def test_upstream_error_status_preserved_without_body(api_key, client):
    respx.post(GEMINI_URL).mock(
        return_value=Response(403, text="secret upstream detail: key revoked")
    )

    resp = client.post("/api/gemini", json={"prompt": "hi"})

    assert resp.status_code == 403
    assert resp.json() == {"error": "AI service error: 403"}
    assert "secret" not in resp.text


@respx.mock
def test_unexpected_failure_is_generic_500(api_key, client):
    respx.post(GEMINI_URL).mock(side_effect=httpx.ConnectError("boom at 10.0.0.5"))

    resp = client.post("/api/gemini", json={"prompt": "hi"})

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}
    assert "boom" not in resp.text
