"""HTTP client for the remote project API.

One httpx.AsyncClient is shared by every resource service. Requests
carry the project and API key headers; error responses are mapped
onto the GatewayError hierarchy.
"""

from typing import Any

import httpx
from loguru import logger

from appwrite_sync import __version__
from appwrite_sync.config.models import ClientConfig
from appwrite_sync.errors import GatewayError, NotFoundError


class ApiClient:
    """Thin async wrapper over httpx for JSON endpoints."""

    def __init__(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """
        Initialize the client.

        Args:
            config: Endpoint, project and credentials.
            transport: Optional transport override (tests use httpx.MockTransport).
        """
        self._config = config
        headers = {
            "X-Appwrite-Project": config.project_id,
            "X-Appwrite-Response-Format": "1.7.0",
            "User-Agent": f"appwrite-sync/{__version__}",
        }
        if config.api_key:
            headers["X-Appwrite-Key"] = config.api_key
        self._http = httpx.AsyncClient(
            base_url=config.endpoint,
            headers=headers,
            timeout=httpx.Timeout(config.timeout_seconds, connect=10.0),
            verify=not config.self_signed,
            transport=transport,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    def set_project(self, project_id: str) -> None:
        """Switch the project header (the manifest may name the project)."""
        self._config = self._config.model_copy(update={"project_id": project_id})
        self._http.headers["X-Appwrite-Project"] = project_id

    async def call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> Any:
        """
        Issue one request.

        Args:
            method: HTTP method.
            path: Path relative to the endpoint, e.g. "/functions/abc".
            params: Query parameters; list values are sent as `name[]`.
            json: JSON body.
            files: Multipart files.
            data: Multipart form fields (with files).
            raw: Return the body bytes instead of decoded JSON.

        Returns:
            Decoded JSON, bytes when raw, or an empty dict for empty bodies.

        Raises:
            NotFoundError: The resource does not exist.
            GatewayError: Any other error response or transport failure.
        """
        logger.debug("{} {}", method, path)
        try:
            response = await self._http.request(
                method,
                path,
                params=_encode_params(params),
                json=json,
                files=files,
                data=data,
            )
        except httpx.HTTPError as e:
            raise GatewayError(f"Request to {path} failed: {e}") from e

        if response.is_error:
            raise _to_error(response)

        if raw:
            return response.content
        if not response.content:
            return {}
        return response.json()

    async def close(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()


def _encode_params(params: dict[str, Any] | None) -> list[tuple[str, Any]] | None:
    if params is None:
        return None
    encoded: list[tuple[str, Any]] = []
    for name, value in params.items():
        if value is None:
            continue
        if isinstance(value, list):
            encoded.extend((f"{name}[]", item) for item in value)
        elif isinstance(value, bool):
            encoded.append((name, "true" if value else "false"))
        else:
            encoded.append((name, value))
    return encoded


def _to_error(response: httpx.Response) -> GatewayError:
    try:
        body = response.json()
    except ValueError:
        body = {"message": response.text}
    if not isinstance(body, dict):
        body = {"message": str(body)}

    message = body.get("message") or f"HTTP {response.status_code}"
    error_type = body.get("type", "")
    if response.status_code == 404:
        return NotFoundError(message, error_type=error_type, response=body)
    return GatewayError(message, code=response.status_code, error_type=error_type, response=body)
