"""
Tests for FallbackClient with respx mocks.
"""

import json

import httpx
import pytest
import respx

from fallback_client import FallbackClient, KeyRotator
from fallback_client.core.config import ClientConfig, RetryPolicy, TimeoutConfig
from fallback_client.core.exceptions import ConfigurationError, FatalTransportError
from fallback_client.core.logging import LoggingConfig

BASE_URL = "https://api.test.com"
KEYS = ["sk-alpha-aaaaaaaaaaaa0001", "sk-bravo-bbbbbbbbbbbb0002"]


def _key_of(request):
    return request.headers["authorization"].split(" ", 1)[1]


class TestFallbackClientInit:
    """Test FallbackClient initialization."""

    def test_init_with_keys(self):
        client = FallbackClient(KEYS)
        assert client.base_url == "https://api.openai.com"
        assert isinstance(client.pool, KeyRotator)
        assert client.pool.keys == KEYS

    def test_init_with_base_url(self):
        client = FallbackClient(KEYS, base_url=BASE_URL)
        assert client.base_url == BASE_URL

    def test_base_url_overrides_config(self):
        config = ClientConfig.create(base_url="https://other.com", max_retries=2)
        client = FallbackClient(KEYS, base_url=BASE_URL, config=config)

        assert client.base_url == BASE_URL
        assert client.config.retry.max_attempts == 2

    def test_init_with_timeout_config(self):
        config = ClientConfig(timeout=TimeoutConfig(connect=5, read=30))
        client = FallbackClient(KEYS, config=config)

        assert client._timeout.connect == 5
        assert client._timeout.read == 30

    def test_init_with_pool(self, scripted_pool):
        client = FallbackClient(pool=scripted_pool)
        assert client.pool is scripted_pool

    def test_pool_as_first_argument(self, scripted_pool):
        client = FallbackClient(scripted_pool, base_url=BASE_URL)
        assert client.pool is scripted_pool

    def test_keys_or_pool_required(self):
        with pytest.raises(ValueError, match="Either api_keys or pool"):
            FallbackClient()

    def test_keys_and_pool_exclusive(self, scripted_pool):
        with pytest.raises(ValueError, match="not both"):
            FallbackClient(KEYS, pool=scripted_pool)

    def test_empty_keys(self):
        with pytest.raises(ConfigurationError):
            FallbackClient(["", " "])


class TestFallbackClientContextManager:
    """Lifecycle."""

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self):
        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            http = client._client
            assert http is not None

        assert http.is_closed
        assert client._client is None

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self):
        external = httpx.AsyncClient()
        try:
            async with FallbackClient(KEYS, base_url=BASE_URL, http_client=external):
                pass
            assert not external.is_closed
        finally:
            await external.aclose()

    @pytest.mark.asyncio
    async def test_close_twice(self):
        client = FallbackClient(KEYS, base_url=BASE_URL)
        await client.close()
        await client.close()

    @pytest.mark.asyncio
    async def test_owned_logger_closed(self, tmp_path, restore_package_logger):
        config = ClientConfig.create(logging=LoggingConfig.create(
            enable_console=False, enable_file=True, file_path=str(tmp_path / "client.log"),
        ))
        client = FallbackClient(KEYS, config=config)
        logger = client._logger

        await client.close()

        assert logger._closed is True


class TestFallbackClientRequests:
    """HTTP methods with respx mocks."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_post_json(self):
        route = respx.post(f"{BASE_URL}/v1/chat/completions").mock(
            return_value=httpx.Response(200, json={"id": "chatcmpl-1"})
        )

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await client.post("/v1/chat/completions", body={"model": "gpt-4o"})

        assert response.status_code == 200
        assert response.json() == {"id": "chatcmpl-1"}
        request = route.calls.last.request
        assert _key_of(request) == KEYS[0]
        assert json.loads(request.content) == {"model": "gpt-4o"}

    @respx.mock
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_methods_without_body(self, method):
        route = respx.route(method=method.upper(), url=f"{BASE_URL}/v1/files/1").mock(
            return_value=httpx.Response(200, json={"deleted": method == "delete"})
        )

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await getattr(client, method)("/v1/files/1")

        assert response.status_code == 200
        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["put", "patch"])
    async def test_methods_with_body(self, method):
        route = respx.route(method=method.upper(), url=f"{BASE_URL}/v1/items/1").mock(
            return_value=httpx.Response(200, json={})
        )

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            await getattr(client, method)("/v1/items/1", body="raw text")

        assert route.calls.last.request.content == b"raw text"

    @respx.mock
    @pytest.mark.asyncio
    async def test_config_headers_and_call_headers(self):
        route = respx.get(f"{BASE_URL}/v1/models").mock(return_value=httpx.Response(200, json={}))
        config = ClientConfig.create(base_url=BASE_URL, headers={"OpenAI-Organization": "org-1", "X-A": "config"})

        async with FallbackClient(KEYS, config=config) as client:
            await client.get("/v1/models", headers={"X-A": "call"})

        headers = route.calls.last.request.headers
        assert headers["openai-organization"] == "org-1"
        assert headers["x-a"] == "call"

    @respx.mock
    @pytest.mark.asyncio
    async def test_rate_limited_key_skipped(self):
        seen = []

        def handler(request):
            seen.append(_key_of(request))
            if _key_of(request) == KEYS[0]:
                return httpx.Response(429, json={"error": {"message": "Rate limit reached"}})
            return httpx.Response(200, json={"ok": True})

        respx.post(f"{BASE_URL}/v1/chat/completions").mock(side_effect=handler)

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await client.post("/v1/chat/completions", body={})

        assert response.json() == {"ok": True}
        assert seen == KEYS

    @respx.mock
    @pytest.mark.asyncio
    async def test_soft_rate_limit_skipped(self):
        respx.post(f"{BASE_URL}/v1/chat/completions").mock(side_effect=[
            httpx.Response(200, json={"error": {"type": "rate_limit_exceeded"}}),
            httpx.Response(200, json={"choices": []}),
        ])

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await client.post("/v1/chat/completions", body={})

        assert response.json() == {"choices": []}

    @respx.mock
    @pytest.mark.asyncio
    async def test_all_rate_limited_returns_429(self):
        route = respx.get(f"{BASE_URL}/v1/models").mock(
            return_value=httpx.Response(429, json={"error": {"message": "slow down"}})
        )

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await client.get("/v1/models")

        assert response.status_code == 429
        assert response.json() == {"error": {"message": "slow down"}}
        assert route.call_count == len(KEYS)

    @respx.mock
    @pytest.mark.asyncio
    async def test_connection_reset_retried_with_injected_sleep(self, recording_sleep):
        route = respx.get(f"{BASE_URL}/v1/models").mock(side_effect=[
            httpx.ReadError("read ECONNRESET"),
            httpx.Response(200, json={}),
        ])

        async with FallbackClient(KEYS, base_url=BASE_URL, sleep=recording_sleep) as client:
            response = await client.get("/v1/models")

        assert response.status_code == 200
        assert route.call_count == 2
        assert recording_sleep.delays == pytest.approx([0.01])

    @respx.mock
    @pytest.mark.asyncio
    async def test_transport_failure_on_every_key_raises(self, recording_sleep):
        route = respx.get(f"{BASE_URL}/v1/models").mock(
            side_effect=httpx.ConnectError("[Errno 111] Connection refused")
        )
        config = ClientConfig(base_url=BASE_URL, retry=RetryPolicy(max_attempts=3))

        async with FallbackClient(KEYS, config=config, sleep=recording_sleep) as client:
            with pytest.raises(FatalTransportError):
                await client.get("/v1/models")

        assert route.call_count == len(KEYS)
        assert recording_sleep.delays == []

    @respx.mock
    @pytest.mark.asyncio
    async def test_server_error_returned_as_is(self):
        route = respx.get(f"{BASE_URL}/v1/models").mock(return_value=httpx.Response(500, text="oops"))

        async with FallbackClient(KEYS, base_url=BASE_URL) as client:
            response = await client.get("/v1/models")

        assert response.status_code == 500
        assert response.text == "oops"
        assert route.call_count == 1

    @respx.mock
    @pytest.mark.asyncio
    async def test_lazy_client_without_context_manager(self):
        respx.get(f"{BASE_URL}/v1/models").mock(return_value=httpx.Response(200, json={}))
        client = FallbackClient(KEYS, base_url=BASE_URL)
        try:
            assert client._client is None
            response = await client.get("/v1/models")
            assert response.status_code == 200
        finally:
            await client.close()
