"""Tests for ApiClient."""

import json
from collections.abc import Callable

import httpx
import pytest

from appwrite_sync import __version__
from appwrite_sync.config.models import ClientConfig
from appwrite_sync.errors import GatewayError, NotFoundError
from appwrite_sync.gateway.client import ApiClient, _encode_params

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(handler: Handler) -> ApiClient:
    config = ClientConfig(endpoint="https://api.example.test/v1", project_id="demo", api_key="secret")
    return ApiClient(config, transport=httpx.MockTransport(handler))


class TestHeaders:
    @pytest.mark.asyncio
    async def test_sends_project_key_and_agent(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"ok": True})

        client = make_client(handler)
        assert await client.call("GET", "/health") == {"ok": True}
        await client.close()

        request = seen[0]
        assert str(request.url) == "https://api.example.test/v1/health"
        assert request.headers["X-Appwrite-Project"] == "demo"
        assert request.headers["X-Appwrite-Key"] == "secret"
        assert request.headers["User-Agent"] == f"appwrite-sync/{__version__}"

    @pytest.mark.asyncio
    async def test_set_project_switches_header(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers["X-Appwrite-Project"])
            return httpx.Response(200, json={})

        client = make_client(handler)
        client.set_project("other")
        await client.call("GET", "/health")
        await client.close()

        assert seen == ["other"]
        assert client.config.project_id == "other"

    def test_no_key_header_without_api_key(self) -> None:
        client = ApiClient(ClientConfig(project_id="demo"))
        assert "X-Appwrite-Key" not in client._http.headers


class TestResponses:
    @pytest.mark.asyncio
    async def test_empty_body_is_empty_dict(self) -> None:
        client = make_client(lambda request: httpx.Response(204))
        assert await client.call("DELETE", "/teams/a") == {}
        await client.close()

    @pytest.mark.asyncio
    async def test_raw_returns_bytes(self) -> None:
        client = make_client(lambda request: httpx.Response(200, content=b"\x1f\x8barchive"))
        assert await client.call("GET", "/download", raw=True) == b"\x1f\x8barchive"
        await client.close()

    @pytest.mark.asyncio
    async def test_json_body_is_sent(self) -> None:
        bodies: list[dict[str, object]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"$id": "a"})

        client = make_client(handler)
        await client.call("POST", "/teams", json={"teamId": "a", "name": "A"})
        await client.close()

        assert bodies == [{"teamId": "a", "name": "A"}]


class TestErrors:
    @pytest.mark.asyncio
    async def test_404_is_not_found(self) -> None:
        body = {"message": "Collection not found", "type": "collection_not_found", "code": 404}
        client = make_client(lambda request: httpx.Response(404, json=body))

        with pytest.raises(NotFoundError) as exc_info:
            await client.call("GET", "/databases/db/collections/c")
        await client.close()

        assert exc_info.value.error_type == "collection_not_found"
        assert "Collection not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_other_status_is_gateway_error(self) -> None:
        body = {"message": "Attribute already exists", "type": "attribute_already_exists"}
        client = make_client(lambda request: httpx.Response(409, json=body))

        with pytest.raises(GatewayError) as exc_info:
            await client.call("POST", "/databases/db/collections/c/attributes/string")
        await client.close()

        assert not isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.code == 409
        assert exc_info.value.response == body

    @pytest.mark.asyncio
    async def test_non_json_error_body(self) -> None:
        client = make_client(lambda request: httpx.Response(502, text="Bad Gateway"))

        with pytest.raises(GatewayError, match="Bad Gateway"):
            await client.call("GET", "/health")
        await client.close()

    @pytest.mark.asyncio
    async def test_transport_failure_is_gateway_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(GatewayError, match="Request to /health failed"):
            await client.call("GET", "/health")
        await client.close()


class TestEncodeParams:
    def test_none(self) -> None:
        assert _encode_params(None) is None

    def test_lists_use_bracket_names(self) -> None:
        assert _encode_params({"queries": ["a", "b"]}) == [("queries[]", "a"), ("queries[]", "b")]

    def test_booleans_and_missing_values(self) -> None:
        assert _encode_params({"flag": True, "off": False, "skip": None, "n": 3}) == [
            ("flag", "true"),
            ("off", "false"),
            ("n", 3),
        ]

    @pytest.mark.asyncio
    async def test_queries_reach_the_url(self) -> None:
        seen: list[list[str]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.params.get_list("queries[]"))
            return httpx.Response(200, json={"total": 0})

        client = make_client(handler)
        await client.call("GET", "/teams", params={"queries": ["q1", "q2"]})
        await client.close()

        assert seen == [["q1", "q2"]]
