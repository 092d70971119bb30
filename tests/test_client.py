import asyncio

import httpx
import pytest

from conftest import FakeProvider
from tennis_importer.client import TennisApiClient
from tennis_importer.errors import (
    ErrorKind,
    ProviderHTTPError,
    QuotaExceededError,
    TransportError,
)
from tennis_importer.quota import MemoryQuota


def _request(settings, quota, transport, endpoint="/matches?limit=3"):
    async def run():
        async with TennisApiClient(settings, quota, transport=transport) as client:
            return await client.request(endpoint)

    return asyncio.run(run())


def test_sends_auth_headers_and_returns_json(settings):
    provider = FakeProvider([{"id": 1}])
    data = _request(settings, MemoryQuota(5), provider.transport)
    assert data == [{"id": 1}]
    sent = provider.calls[0]
    assert sent.headers["X-RapidAPI-Key"] == "test-key"
    assert sent.headers["X-RapidAPI-Host"] == "tennis-devs.p.rapidapi.com"
    assert sent.url.path == "/matches"


def test_quota_guard_blocks_without_network_call(settings):
    provider = FakeProvider([])
    quota = MemoryQuota(limit=3)

    async def run():
        async with TennisApiClient(settings, quota, transport=provider.transport) as client:
            for _ in range(3):
                await client.request("/matches")
            with pytest.raises(QuotaExceededError) as exc:
                await client.request("/matches")
            return exc.value

    err = asyncio.run(run())
    assert len(provider.calls) == 3
    assert err.kind is ErrorKind.QUOTA
    assert err.status.remaining == 0


def test_failed_requests_still_count(settings):
    provider = FakeProvider({"message": "boom"}, status_code=500)
    quota = MemoryQuota(limit=5)
    with pytest.raises(ProviderHTTPError) as exc:
        _request(settings, quota, provider.transport)
    assert exc.value.status_code == 500
    assert exc.value.kind is ErrorKind.TRANSPORT
    assert asyncio.run(quota.status()).used == 1


@pytest.mark.parametrize("code,kind", [(401, ErrorKind.AUTH), (403, ErrorKind.AUTH), (429, ErrorKind.QUOTA), (404, ErrorKind.TRANSPORT)])
def test_http_error_kinds(settings, code, kind):
    provider = FakeProvider({"message": "nope"}, status_code=code)
    with pytest.raises(ProviderHTTPError) as exc:
        _request(settings, MemoryQuota(5), provider.transport)
    assert exc.value.kind is kind


def test_network_failure_is_transport_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    quota = MemoryQuota(5)
    with pytest.raises(TransportError):
        _request(settings, quota, httpx.MockTransport(handler))
    assert asyncio.run(quota.status()).used == 1


def test_invalid_json_is_transport_error(settings):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(TransportError):
        _request(settings, MemoryQuota(5), transport)
