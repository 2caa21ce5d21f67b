"""Port interfaces for the remote resource gateway.

Every method is a single remote round-trip. Responses are the decoded
JSON documents of the remote API; list calls return
`{"total": int, "<plural>": [...]}`. A missing resource raises
NotFoundError.
"""

from typing import Any, Protocol

from appwrite_sync.models.schema import SchemaFlavor

Document = dict[str, Any]


class SchemaPort(Protocol):
    """Databases with their collections (or tables), attributes and indexes."""

    flavor: SchemaFlavor

    async def list_databases(self, queries: list[str] | None = None) -> Document:
        """List databases."""
        ...

    async def get_database(self, database_id: str) -> Document:
        """Get a database by ID."""
        ...

    async def create_database(self, database_id: str, name: str, enabled: bool = True) -> Document:
        """Create a database."""
        ...

    async def update_database(self, database_id: str, name: str, enabled: bool = True) -> Document:
        """Rename or toggle a database."""
        ...

    async def delete_database(self, database_id: str) -> None:
        """Delete a database and everything in it."""
        ...

    async def list_containers(self, database_id: str, queries: list[str] | None = None) -> Document:
        """List collections (or tables) of a database."""
        ...

    async def get_container(self, database_id: str, container_id: str) -> Document:
        """Get a collection (or table) including its attributes and indexes."""
        ...

    async def create_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> Document:
        """Create a collection (or table)."""
        ...

    async def update_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> Document:
        """Update a collection (or table)."""
        ...

    async def delete_container(self, database_id: str, container_id: str) -> None:
        """Delete a collection (or table)."""
        ...

    async def list_attributes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> Document:
        """List attributes (or columns) with their status."""
        ...

    async def create_attribute(self, database_id: str, container_id: str, attribute: Document) -> Document:
        """Create an attribute using the type-specific endpoint."""
        ...

    async def update_attribute(self, database_id: str, container_id: str, attribute: Document) -> Document:
        """Update the mutable fields of an attribute."""
        ...

    async def delete_attribute(self, database_id: str, container_id: str, key: str) -> None:
        """Delete an attribute."""
        ...

    async def list_indexes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> Document:
        """List indexes with their status."""
        ...

    async def create_index(
        self,
        database_id: str,
        container_id: str,
        key: str,
        index_type: str,
        fields: list[str],
        orders: list[str] | None = None,
    ) -> Document:
        """Create an index."""
        ...

    async def delete_index(self, database_id: str, container_id: str, key: str) -> None:
        """Delete an index."""
        ...


class FunctionsPort(Protocol):
    """Functions, their variables and deployments."""

    async def list_functions(self, queries: list[str] | None = None) -> Document:
        """List functions."""
        ...

    async def get_function(self, function_id: str) -> Document:
        """Get a function by ID."""
        ...

    async def create_function(self, function_id: str, definition: Document) -> Document:
        """Create a function."""
        ...

    async def update_function(self, function_id: str, definition: Document) -> Document:
        """Update a function."""
        ...

    async def list_variables(self, function_id: str, queries: list[str] | None = None) -> Document:
        """List environment variables of a function."""
        ...

    async def create_variable(self, function_id: str, key: str, value: str, secret: bool = False) -> Document:
        """Create an environment variable."""
        ...

    async def delete_variable(self, function_id: str, variable_id: str) -> None:
        """Delete an environment variable."""
        ...

    async def create_deployment(
        self,
        function_id: str,
        code: bytes,
        entrypoint: str | None = None,
        commands: str | None = None,
        activate: bool = True,
    ) -> Document:
        """Upload a code archive as a new deployment."""
        ...

    async def get_deployment(self, function_id: str, deployment_id: str) -> Document:
        """Get a deployment, including its build status."""
        ...

    async def list_deployments(self, function_id: str, queries: list[str] | None = None) -> Document:
        """List deployments of a function."""
        ...

    async def download_deployment(self, function_id: str, deployment_id: str) -> bytes:
        """Download the code archive of a deployment."""
        ...


class StoragePort(Protocol):
    """Storage buckets."""

    async def list_buckets(self, queries: list[str] | None = None) -> Document:
        """List buckets."""
        ...

    async def get_bucket(self, bucket_id: str) -> Document:
        """Get a bucket by ID."""
        ...

    async def create_bucket(self, bucket_id: str, definition: Document) -> Document:
        """Create a bucket."""
        ...

    async def update_bucket(self, bucket_id: str, definition: Document) -> Document:
        """Update a bucket."""
        ...


class TeamsPort(Protocol):
    """Teams."""

    async def list_teams(self, queries: list[str] | None = None) -> Document:
        """List teams."""
        ...

    async def get_team(self, team_id: str) -> Document:
        """Get a team by ID."""
        ...

    async def create_team(self, team_id: str, name: str) -> Document:
        """Create a team."""
        ...

    async def update_team_name(self, team_id: str, name: str) -> Document:
        """Rename a team."""
        ...


class MessagingPort(Protocol):
    """Messaging topics."""

    async def list_topics(self, queries: list[str] | None = None) -> Document:
        """List topics."""
        ...

    async def get_topic(self, topic_id: str) -> Document:
        """Get a topic by ID."""
        ...

    async def create_topic(self, topic_id: str, name: str, subscribe: list[str]) -> Document:
        """Create a topic."""
        ...

    async def update_topic(self, topic_id: str, name: str, subscribe: list[str]) -> Document:
        """Update a topic."""
        ...


class ProjectsPort(Protocol):
    """Project-level settings (console API)."""

    async def get_project(self, project_id: str) -> Document:
        """Get a project with its settings."""
        ...

    async def update_project(self, project_id: str, name: str) -> Document:
        """Rename a project."""
        ...

    async def update_service_status(self, project_id: str, service: str, status: bool) -> Document:
        """Enable or disable an API service."""
        ...

    async def update_auth_status(self, project_id: str, method: str, status: bool) -> Document:
        """Enable or disable an auth method."""
        ...

    async def update_auth_security(self, project_id: str, setting: str, value: Any) -> Document:
        """Apply one auth security setting."""
        ...


class ProxyPort(Protocol):
    """Proxy (domain) rules."""

    async def create_function_rule(self, domain: str, function_id: str) -> Document:
        """Route a domain to a function."""
        ...

    async def list_rules(self, queries: list[str] | None = None) -> Document:
        """List proxy rules."""
        ...


class ConsolePort(Protocol):
    """Console metadata."""

    async def variables(self) -> Document:
        """Get console variables such as the functions domain."""
        ...
