"""Port interface for the local manifest store."""

from typing import Any, Protocol

from appwrite_sync.models.manifest import (
    Bucket,
    Collection,
    Database,
    Function,
    Table,
    Team,
    Topic,
)


class ManifestStorePort(Protocol):
    """Declared project state, read and written by push and pull."""

    @property
    def project_id(self) -> str:
        """Active project ID (empty when the manifest names none)."""
        ...

    def get_project(self) -> Any:
        """Project ID, name and persisted settings."""
        ...

    def set_project(self, project_id: str, project_name: str = "", settings: dict[str, Any] | None = None) -> None:
        """Record project identity and settings."""
        ...

    def get_databases(self) -> list[Database]:
        ...

    def get_database(self, database_id: str) -> Database | None:
        ...

    def add_database(self, database: Database) -> None:
        ...

    def get_tables_dbs(self) -> list[Database]:
        ...

    def get_tables_db(self, database_id: str) -> Database | None:
        ...

    def add_tables_db(self, database: Database) -> None:
        ...

    def set_tables_dbs(self, databases: list[Database]) -> None:
        ...

    def get_collections(self) -> list[Collection]:
        ...

    def get_collection(self, collection_id: str, database_id: str | None = None) -> Collection | None:
        ...

    def add_collection(self, collection: Collection) -> None:
        ...

    def get_tables(self) -> list[Table]:
        ...

    def get_table(self, table_id: str, database_id: str | None = None) -> Table | None:
        ...

    def add_table(self, table: Table) -> None:
        ...

    def set_tables(self, tables: list[Table]) -> None:
        ...

    def get_functions(self) -> list[Function]:
        ...

    def get_function(self, function_id: str) -> Function | None:
        ...

    def add_function(self, function: Function) -> None:
        ...

    def update_function(self, function_id: str, **fields: Any) -> Function:
        ...

    def get_buckets(self) -> list[Bucket]:
        ...

    def add_bucket(self, bucket: Bucket) -> None:
        ...

    def get_teams(self) -> list[Team]:
        ...

    def add_team(self, team: Team) -> None:
        ...

    def get_messaging_topics(self) -> list[Topic]:
        ...

    def add_messaging_topic(self, topic: Topic) -> None:
        ...
