"""JSON-backed manifest store.

Holds the declared project state in memory and writes it back to disk
whenever a resource is added or updated. Adders upsert by ID, so
repeated pulls and server-assigned IDs never duplicate entries.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from loguru import logger
from pydantic import ValidationError

from appwrite_sync.errors import ManifestError
from appwrite_sync.models.manifest import (
    Bucket,
    Collection,
    Database,
    Function,
    Manifest,
    ManifestModel,
    Table,
    Team,
    Topic,
)

M = TypeVar("M", bound=ManifestModel)


@dataclass(frozen=True)
class Project:
    """Project identity and persisted settings."""

    project_id: str
    project_name: str = ""
    settings: dict[str, Any] = field(default_factory=dict)


def _upsert(items: list[M], item: M, *keys: str) -> list[M]:
    """Replace the entry matching item on every key attribute, or append."""
    for i, existing in enumerate(items):
        if all(getattr(existing, k) == getattr(item, k) for k in keys):
            items[i] = item
            return items
    items.append(item)
    return items


class ManifestStore:
    """Load, query and persist the project manifest."""

    def __init__(self, path: Path, manifest: Manifest | None = None) -> None:
        self.path = path
        self._manifest = manifest or Manifest()
        # Keys this tool does not model (e.g. sites) survive a save
        self._extra: dict[str, Any] = {}

    @classmethod
    def load(cls, path: Path) -> "ManifestStore":
        """
        Read a manifest file.

        A missing file yields an empty manifest bound to that path.

        Raises:
            ManifestError: If the file is not valid JSON or fails validation.
        """
        store = cls(path)
        if not path.exists():
            logger.debug("Manifest {} not found, starting empty", path)
            return store

        try:
            data = json.loads(path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise ManifestError(f"Invalid JSON in manifest {path}: {e}") from e
        if not isinstance(data, dict):
            raise ManifestError(f"Manifest root must be an object, not {type(data).__name__}")

        try:
            store._manifest = Manifest.model_validate(data)
        except ValidationError as e:
            raise ManifestError(f"Invalid manifest {path}: {e}") from e

        known = set(Manifest.model_fields) | {f.alias for f in Manifest.model_fields.values() if f.alias}
        store._extra = {k: v for k, v in data.items() if k not in known}
        logger.debug("Loaded manifest {}", path)
        return store

    def save(self) -> None:
        """Write the manifest back to disk."""
        data = {**self._extra, **self._manifest.to_payload()}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=4) + "\n", encoding="utf-8")

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def project_id(self) -> str:
        return self._manifest.project_id

    def get_project(self) -> Project:
        return Project(
            project_id=self._manifest.project_id,
            project_name=self._manifest.project_name,
            settings=dict(self._manifest.settings),
        )

    def set_project(self, project_id: str, project_name: str = "", settings: dict[str, Any] | None = None) -> None:
        self._manifest.project_id = project_id
        if project_name:
            self._manifest.project_name = project_name
        if settings is not None:
            self._manifest.settings = settings
        self.save()

    # Databases

    def get_databases(self) -> list[Database]:
        return list(self._manifest.databases)

    def get_database(self, database_id: str) -> Database | None:
        return next((d for d in self._manifest.databases if d.id == database_id), None)

    def add_database(self, database: Database) -> None:
        _upsert(self._manifest.databases, database, "id")
        self.save()

    def get_tables_dbs(self) -> list[Database]:
        return list(self._manifest.tables_db)

    def get_tables_db(self, database_id: str) -> Database | None:
        return next((d for d in self._manifest.tables_db if d.id == database_id), None)

    def add_tables_db(self, database: Database) -> None:
        _upsert(self._manifest.tables_db, database, "id")
        self.save()

    def set_tables_dbs(self, databases: list[Database]) -> None:
        self._manifest.tables_db = list(databases)
        self.save()

    # Collections and tables

    def get_collections(self) -> list[Collection]:
        return list(self._manifest.collections)

    def get_collection(self, collection_id: str, database_id: str | None = None) -> Collection | None:
        for collection in self._manifest.collections:
            if collection.id == collection_id and database_id in (None, collection.database_id):
                return collection
        return None

    def add_collection(self, collection: Collection) -> None:
        _upsert(self._manifest.collections, collection, "id", "database_id")
        self.save()

    def get_tables(self) -> list[Table]:
        return list(self._manifest.tables)

    def get_table(self, table_id: str, database_id: str | None = None) -> Table | None:
        for table in self._manifest.tables:
            if table.id == table_id and database_id in (None, table.database_id):
                return table
        return None

    def add_table(self, table: Table) -> None:
        _upsert(self._manifest.tables, table, "id", "database_id")
        self.save()

    def set_tables(self, tables: list[Table]) -> None:
        self._manifest.tables = list(tables)
        self.save()

    # Functions

    def get_functions(self) -> list[Function]:
        return list(self._manifest.functions)

    def get_function(self, function_id: str) -> Function | None:
        return next((f for f in self._manifest.functions if f.id == function_id), None)

    def add_function(self, function: Function) -> None:
        _upsert(self._manifest.functions, function, "id")
        self.save()

    def update_function(self, function_id: str, **fields: Any) -> Function:
        """
        Update fields of a declared function.

        Raises:
            ManifestError: If no function has that ID.
        """
        function = self.get_function(function_id)
        if function is None:
            raise ManifestError(f"Function '{function_id}' not found.")
        updated = function.model_copy(update=fields)
        _upsert(self._manifest.functions, updated, "id")
        self.save()
        return updated

    # Buckets, teams, topics

    def get_buckets(self) -> list[Bucket]:
        return list(self._manifest.buckets)

    def add_bucket(self, bucket: Bucket) -> None:
        _upsert(self._manifest.buckets, bucket, "id")
        self.save()

    def get_teams(self) -> list[Team]:
        return list(self._manifest.teams)

    def add_team(self, team: Team) -> None:
        _upsert(self._manifest.teams, team, "id")
        self.save()

    def get_messaging_topics(self) -> list[Topic]:
        return list(self._manifest.topics)

    def add_messaging_topic(self, topic: Topic) -> None:
        _upsert(self._manifest.topics, topic, "id")
        self.save()
