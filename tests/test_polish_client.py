"""Tests for the polish client, against the real app and against failures."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from paperwriter.core.rate_limiter import RateLimiter, get_polish_rate_limiter
from paperwriter.core.schemas_draft import PaperContext
from paperwriter.core.schemas_polish import PriorContext
from paperwriter.main import app
from paperwriter.services.polish_client import polish_text

CONTEXT = PaperContext(country="Brazil", committee="UNEP", topic="Climate Finance")
ENDPOINT = "/api/polish-text"


@pytest.fixture(autouse=True)
def fresh_limiter():
    limiter = RateLimiter(max_requests=20, window_seconds=60)
    app.dependency_overrides[get_polish_rate_limiter] = lambda: limiter
    yield limiter
    app.dependency_overrides.clear()


def _asgi_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


def _mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://testserver")


@pytest.mark.asyncio
async def test_round_trip_through_endpoint():
    with patch("paperwriter.chains.polish_text.generate_text", new_callable=AsyncMock) as mock_generate:
        mock_generate.return_value = '"Brazil urges predictable climate finance."'
        async with _asgi_client() as client:
            result = await polish_text(
                "brazil wants money to be predictable",
                CONTEXT,
                "formalize",
                prior_context=PriorContext(country_position="Backs the fund"),
                target_layer="paragraphComponents",
                client=client,
                endpoint_url=ENDPOINT,
            )

    assert result.success is True
    assert result.polished_text == "Brazil urges predictable climate finance."
    assert result.error is None
    assert "Country position: Backs the fund" in mock_generate.await_args.args[0]


@pytest.mark.asyncio
async def test_blank_text_skips_network():
    def handler(request):
        raise AssertionError("should not be called")

    async with _mock_client(handler) as client:
        result = await polish_text("   ", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.success is True
    assert result.polished_text == "   "


@pytest.mark.asyncio
async def test_missing_context():
    result = await polish_text("some text", PaperContext(country="Brazil"), "formalize")

    assert result.success is False
    assert result.polished_text == "some text"
    assert result.error == "Missing paper context"


@pytest.mark.asyncio
async def test_network_error_returns_original_text():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _mock_client(handler) as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.success is False
    assert result.polished_text == "original"
    assert result.error == "Network error"


@pytest.mark.asyncio
async def test_rate_limited(fresh_limiter):
    for _ in range(20):
        fresh_limiter.check_limit("unknown")

    async with _asgi_client() as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.success is False
    assert result.polished_text == "original"
    assert result.error == "Rate limit exceeded. Please wait a moment."


@pytest.mark.asyncio
async def test_server_error_uses_body_message():
    async with _mock_client(lambda request: httpx.Response(400, json={"error": "Invalid transform type"})) as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.error == "Invalid transform type"
    assert result.polished_text == "original"


@pytest.mark.asyncio
async def test_server_error_without_body():
    async with _mock_client(lambda request: httpx.Response(502, text="Bad Gateway")) as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.error == "AI processing failed"


@pytest.mark.asyncio
async def test_empty_polished_text():
    async with _mock_client(lambda request: httpx.Response(200, json={"polishedText": "  "})) as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.success is False
    assert result.polished_text == "original"
    assert result.error == "Empty response from AI"


@pytest.mark.asyncio
async def test_rejected_content_reports_endpoint_error():
    body = {"polishedText": "", "error": "Content could not be processed"}
    async with _mock_client(lambda request: httpx.Response(200, json=body)) as client:
        result = await polish_text("original", CONTEXT, "formalize", client=client, endpoint_url=ENDPOINT)

    assert result.success is False
    assert result.error == "Content could not be processed"
