"""Provider tests against httpx.MockTransport."""

import asyncio

import httpx
import pytest

from cryptoseek.core.recovery import HTTPStatusError, ShapeError, SourceTimeoutError, TransientSourceError
from cryptoseek.core.recovery.errors import ErrorCategory
from cryptoseek.providers.binance import BinanceProvider
from cryptoseek.providers.lcx import LCXProvider
from cryptoseek.providers.masterdex import MasterDexProvider


def json_transport(payload, status_code=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)
    return httpx.MockTransport(handler)


def raising_transport(exc_type):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("boom", request=request)
    return httpx.MockTransport(handler)


class TestMasterDexProvider:
    """Single attempts against the big-swaps endpoints."""

    def test_urls(self):
        provider = MasterDexProvider(base_url="https://dex.test/")

        assert provider.chain_url("base") == "https://dex.test/v1/pairs/getbigSwaps/base"
        assert provider.batch_url == "https://dex.test/v1/pairs/getbigSwaps"
        assert "blast" in provider.supported_chains

    @pytest.mark.asyncio
    async def test_fetch_returns_data_list(self):
        seen = []
        transport = json_transport({"data": [{"symbol0": "WETH"}], "message": "ok"}, seen=seen)

        async with MasterDexProvider(base_url="https://dex.test", transport=transport) as provider:
            data = await provider.fetch_big_swaps(provider.chain_url("ethereum"), "ethereum")

        assert data == [{"symbol0": "WETH"}]
        assert seen[0].url.path == "/v1/pairs/getbigSwaps/ethereum"
        assert seen[0].headers["user-agent"] == "LCX-AI-Lab/1.0"
        assert seen[0].headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_missing_data_is_shape_error(self):
        transport = json_transport({"message": "no data"})

        async with MasterDexProvider(base_url="https://dex.test", transport=transport) as provider:
            with pytest.raises(ShapeError):
                await provider.fetch_big_swaps(provider.batch_url, "multi-chain")

    @pytest.mark.asyncio
    async def test_non_2xx_is_http_status_error(self):
        transport = json_transport({"error": "down"}, status_code=503)

        async with MasterDexProvider(base_url="https://dex.test", transport=transport) as provider:
            with pytest.raises(HTTPStatusError) as exc_info:
                await provider.fetch_big_swaps(provider.chain_url("base"), "base")

        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == "HTTP 503: Service Unavailable"
        assert exc_info.value.context.source == "base"

    @pytest.mark.asyncio
    async def test_rate_limit_category(self):
        transport = json_transport({}, status_code=429)

        async with MasterDexProvider(base_url="https://dex.test", transport=transport) as provider:
            with pytest.raises(HTTPStatusError) as exc_info:
                await provider.fetch_big_swaps(provider.chain_url("base"), "base")

        assert exc_info.value.category == ErrorCategory.RATE_LIMIT

    @pytest.mark.asyncio
    async def test_transport_errors_are_classified(self):
        async with MasterDexProvider(base_url="https://dex.test", transport=raising_transport(httpx.ConnectError)) as provider:
            with pytest.raises(TransientSourceError):
                await provider.fetch_big_swaps(provider.chain_url("bnb"), "bnb")

        async with MasterDexProvider(base_url="https://dex.test", transport=raising_transport(httpx.ReadTimeout)) as provider:
            with pytest.raises(SourceTimeoutError):
                await provider.fetch_big_swaps(provider.chain_url("bnb"), "bnb")

    @pytest.mark.asyncio
    async def test_slow_response_is_aborted_at_deadline(self):
        async def slow(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(3600)
            return httpx.Response(200, json={"data": []})

        transport = httpx.MockTransport(slow)
        async with MasterDexProvider(base_url="https://dex.test", timeout_s=0.05, transport=transport) as provider:
            with pytest.raises(SourceTimeoutError) as exc_info:
                await asyncio.wait_for(provider.fetch_big_swaps(provider.chain_url("base"), "base"), timeout=2)

        assert exc_info.value.context.source == "base"
        assert exc_info.value.context.details == {"timeout_seconds": 0.05}

    @pytest.mark.asyncio
    async def test_invalid_json_is_shape_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>oops</html>"))

        async with MasterDexProvider(base_url="https://dex.test", transport=transport) as provider:
            with pytest.raises(ShapeError):
                await provider.fetch_big_swaps(provider.batch_url, "multi-chain")

    @pytest.mark.asyncio
    async def test_health_check(self):
        async with MasterDexProvider(base_url="https://dex.test", transport=json_transport({"data": []})) as provider:
            status = await provider.health_check()

        assert status["status"] == "healthy"


class TestBinanceProvider:
    @pytest.mark.asyncio
    async def test_params_and_api_key_header(self):
        seen = []
        transport = json_transport({"symbol": "BTCUSDT", "price": "65000.00"}, seen=seen)

        async with BinanceProvider(api_key="k", base_url="https://bn.test", transport=transport) as provider:
            data = await provider.get_ticker_price("BTCUSDT")

        assert data["price"] == "65000.00"
        assert seen[0].url.path == "/api/v3/ticker/price"
        assert seen[0].url.params["symbol"] == "BTCUSDT"
        assert seen[0].headers["x-mbx-apikey"] == "k"

    @pytest.mark.asyncio
    async def test_no_api_key_header_when_unset(self):
        seen = []
        transport = json_transport([], seen=seen)

        async with BinanceProvider(api_key="", base_url="https://bn.test", transport=transport) as provider:
            await provider.get_klines("ETHUSDT", interval="1h", limit=5)

        assert "x-mbx-apikey" not in seen[0].headers
        assert seen[0].url.params["interval"] == "1h"
        assert seen[0].url.params["limit"] == "5"


class TestLCXProvider:
    @pytest.mark.asyncio
    async def test_kline_uses_kline_service(self):
        seen = []
        transport = json_transport({"data": []}, seen=seen)

        async with LCXProvider(
            base_url="https://lcx.test",
            kline_url="https://kline.test/v1/market/kline",
            transport=transport,
        ) as provider:
            await provider.get_kline("LCX/ETH", "1D", 100, 200)

        request = seen[0]
        assert request.url.host == "kline.test"
        assert dict(request.url.params) == {"pair": "LCX/ETH", "resolution": "1D", "from": "100", "to": "200"}
        assert request.headers["api-version"] == "1.1.0"

    @pytest.mark.asyncio
    async def test_trades(self):
        seen = []
        payload = {"data": [[1.0, 2.0, "BUY", 1700000000]]}
        transport = json_transport(payload, seen=seen)

        async with LCXProvider(base_url="https://lcx.test", transport=transport) as provider:
            data = await provider.get_trades("BTC/EUR", limit=10)

        assert data == payload
        assert seen[0].url.path == "/api/trades"
        assert seen[0].url.params["limit"] == "10"
