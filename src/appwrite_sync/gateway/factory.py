"""Gateway factory.

Builds every resource service on one shared ApiClient.
"""

from dataclasses import dataclass
from types import TracebackType

import httpx

from appwrite_sync.config.models import ClientConfig
from appwrite_sync.errors import ConfigurationError
from appwrite_sync.gateway.client import ApiClient
from appwrite_sync.gateway.services import (
    ConsoleService,
    FunctionsService,
    MessagingService,
    ProjectsService,
    ProxyService,
    SchemaService,
    StorageService,
    TeamsService,
)
from appwrite_sync.models.schema import COLLECTIONS, TABLES


@dataclass
class Gateways:
    """All resource services sharing one HTTP client.

    Usable as an async context manager that closes the client.
    """

    client: ApiClient
    collections: SchemaService
    tables: SchemaService
    functions: FunctionsService
    storage: StorageService
    teams: TeamsService
    messaging: MessagingService
    projects: ProjectsService
    proxy: ProxyService
    console: ConsoleService

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "Gateways":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


def create_gateways(config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> Gateways:
    """
    Create the gateway services for a project.

    Args:
        config: Client connection settings.
        transport: Optional httpx transport override.

    Returns:
        Gateways bundle.

    Raises:
        ConfigurationError: If no API key is configured.
    """
    if not config.api_key:
        raise ConfigurationError(
            "No API key configured. Set client.api_key in the config file or APPWRITE_SYNC_CLIENT__API_KEY."
        )
    client = ApiClient(config, transport=transport)
    return Gateways(
        client=client,
        collections=SchemaService(client, COLLECTIONS),
        tables=SchemaService(client, TABLES),
        functions=FunctionsService(client),
        storage=StorageService(client),
        teams=TeamsService(client),
        messaging=MessagingService(client),
        projects=ProjectsService(client),
        proxy=ProxyService(client),
        console=ConsoleService(client),
    )
