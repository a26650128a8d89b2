#!/usr/bin/env python
"""
Tests de AsyncNominatimClient con httpx.MockTransport.

Verifica los reintentos con backoff exponencial, que los 4xx no se
reintentan y el ownership del cliente httpx inyectado.
"""

import httpx
import pytest
import pytest_asyncio

from nominatim_client import (
    AsyncNominatimClient,
    Search,
    ServiceConnectionError,
    ServiceError,
    ServiceHTTPError,
    ServiceTimeoutError,
)

TEST_URL = "https://nominatim.test"


class MockServer:
    """Devuelve las respuestas encoladas en orden; la última se repite."""

    def __init__(self):
        self.responses = []
        self.requests = []

    def add_response(self, status_code=200, json=None, text=None, exception=None):
        self.responses.append((status_code, json, text, exception))
        return self

    @property
    def call_count(self):
        return len(self.requests)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.responses)) - 1
        status_code, json, text, exception = self.responses[index]
        if exception is not None:
            raise exception
        if json is not None:
            return httpx.Response(status_code, json=json)
        return httpx.Response(status_code, text=text if text is not None else "[]")


@pytest.fixture
def server():
    return MockServer()


@pytest_asyncio.fixture
async def async_client(server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    client = AsyncNominatimClient(
        TEST_URL,
        user_agent="tests/1.0",
        max_retries=3,
        retry_base_delay=0.01,
        retry_max_delay=0.1,
        http_client=http_client,
    )
    yield client
    await client.close()
    await http_client.aclose()


class TestFind:

    @pytest.mark.asyncio
    async def test_find_sends_params(self, async_client, server):
        server.add_response(json=[{"lat": "48.85", "lon": "2.35", "display_name": "Paris"}])

        result = await async_client.find(Search().query("Paris").limit(1))

        assert result[0]["display_name"] == "Paris"
        request = server.requests[0]
        assert request.url.path == "/search"
        assert dict(request.url.params) == {"q": "Paris", "limit": "1", "format": "json"}
        assert request.headers["User-Agent"] == "tests/1.0"
        assert async_client.last_sent() == str(request.url)

    @pytest.mark.asyncio
    async def test_find_places_and_response(self, async_client, server):
        server.add_response(json={"lat": "41.38", "lon": "2.17", "display_name": "Barcelona", "osm_type": "way", "osm_id": 5})

        reverse = async_client.new_reverse().lat_lon("41.38", "2.17").format("jsonv2")
        places = await async_client.find_places(reverse)
        assert places[0].osm_ref == "W5"

        response = await async_client.find_response(reverse)
        assert response.count == 1
        assert response.path == "reverse"
        assert response.params == {"lat": "41.38", "lon": "2.17", "format": "jsonv2"}

    @pytest.mark.asyncio
    async def test_find_xml(self, async_client, server):
        server.add_response(text="<lookupresults/>")
        root = await async_client.find(async_client.new_lookup().osm_ids("R146656").format("xml"))
        assert root.tag == "lookupresults"


class TestExponentialBackoff:

    @pytest.mark.asyncio
    async def test_retry_on_5xx_error(self, async_client, server):
        server.add_response(503).add_response(503).add_response(200)

        result = await async_client.find(Search().query("Paris"))

        assert server.call_count == 3
        assert result == []

    @pytest.mark.asyncio
    async def test_no_retry_on_4xx_error(self, async_client, server):
        server.add_response(400, text="Bad Request")

        with pytest.raises(ServiceHTTPError) as exc_info:
            await async_client.find(Search().query("Paris"))

        assert server.call_count == 1
        assert exc_info.value.status_code == 400
        assert exc_info.value.response_text == "Bad Request"

    @pytest.mark.asyncio
    async def test_retry_on_timeout(self, async_client, server):
        timeout_exc = httpx.ReadTimeout("Read timed out")
        server.add_response(exception=timeout_exc).add_response(200)

        assert await async_client.find(Search().query("Paris")) == []
        assert server.call_count == 2

    @pytest.mark.asyncio
    async def test_max_retries_exhausted_5xx(self, async_client, server):
        server.add_response(503)

        with pytest.raises(ServiceHTTPError) as exc_info:
            await async_client.find(Search().query("Paris"))

        assert server.call_count == 4
        assert "4 intentos" in str(exc_info.value)
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_max_retries_exhausted_timeout(self, async_client, server):
        server.add_response(exception=httpx.ConnectTimeout("Timed out"))

        with pytest.raises(ServiceTimeoutError, match="4 intentos"):
            await async_client.find(Search().query("Paris"))
        assert server.call_count == 4

    @pytest.mark.asyncio
    async def test_max_retries_exhausted_connection(self, async_client, server):
        server.add_response(exception=httpx.ConnectError("Connection refused"))

        with pytest.raises(ServiceConnectionError, match="4 intentos"):
            await async_client.find(Search().query("Paris"))
        assert server.call_count == 4

    def test_backoff_delay_calculation(self):
        client = AsyncNominatimClient(TEST_URL, retry_base_delay=0.01, retry_max_delay=0.1)

        def check_range(val, target):
            assert target * 0.85 <= val <= target * 1.15

        check_range(client._calculate_backoff_delay(0), 0.01)
        check_range(client._calculate_backoff_delay(1), 0.02)
        check_range(client._calculate_backoff_delay(2), 0.04)
        check_range(client._calculate_backoff_delay(3), 0.08)
        assert client._calculate_backoff_delay(4) <= 0.1

    @pytest.mark.asyncio
    async def test_retry_on_429(self, async_client, server):
        server.add_response(429).add_response(200)

        assert await async_client.find(Search().query("Paris")) == []
        assert server.call_count == 2

    @pytest.mark.asyncio
    async def test_no_retry_on_501(self, async_client, server):
        server.add_response(501)

        with pytest.raises(ServiceHTTPError):
            await async_client.find(Search().query("Paris"))
        assert server.call_count == 1

    @pytest.mark.asyncio
    async def test_429_retried_with_5xx_retries_disabled(self, server):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        server.add_response(429).add_response(200)
        async with AsyncNominatimClient(TEST_URL, retry_on_5xx=False, retry_base_delay=0.01, http_client=http_client) as client:
            assert await client.find(Search().query("Paris")) == []
        assert server.call_count == 2
        await http_client.aclose()

    @pytest.mark.asyncio
    async def test_too_many_redirects_is_service_error(self, async_client, server):
        server.add_response(exception=httpx.TooManyRedirects("Exceeded maximum allowed redirects"))

        with pytest.raises(ServiceError, match="redirects"):
            await async_client.find(Search().query("Paris"))
        assert server.call_count == 1

    @pytest.mark.asyncio
    async def test_decoding_error_is_service_error(self, async_client, server):
        server.add_response(exception=httpx.DecodingError("Malformed gzip"))

        with pytest.raises(ServiceError) as exc_info:
            await async_client.find(Search().query("Paris"))
        assert not isinstance(exc_info.value, ServiceConnectionError)
        assert server.call_count == 1

    @pytest.mark.asyncio
    async def test_retry_disabled_on_5xx(self, server):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(server))
        server.add_response(503)
        async with AsyncNominatimClient(TEST_URL, retry_on_5xx=False, http_client=http_client) as client:
            with pytest.raises(ServiceHTTPError):
                await client.find(Search().query("Paris"))
        assert server.call_count == 1
        await http_client.aclose()


class TestClientOwnership:

    @pytest.mark.asyncio
    async def test_external_client_not_closed(self):
        external = httpx.AsyncClient()
        client = AsyncNominatimClient(TEST_URL, http_client=external)
        assert client.client is external
        assert not client._owns_client

        await client.close()
        assert not external.is_closed
        await external.aclose()

    @pytest.mark.asyncio
    async def test_own_client_closed(self):
        client = AsyncNominatimClient(TEST_URL)
        assert client._owns_client
        http_client = client.client

        await client.close()
        await client.close()
        assert http_client.is_closed

    @pytest.mark.asyncio
    async def test_warns_on_verify_ssl_conflict(self, caplog):
        external = httpx.AsyncClient()
        AsyncNominatimClient(TEST_URL, verify_ssl=False, http_client=external)
        assert any("verify_ssl=False ignorado" in record.message for record in caplog.records)
        await external.aclose()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
