"""Pull: copy remote resources into the manifest.

Every kind is counted with a single-item query first so an empty
project costs one round-trip, then paged through in full. Pulled
documents are validated through the manifest models, which drops any
server bookkeeping the manifest does not track.
"""

from pathlib import Path
from typing import Any

from loguru import logger
from rich.markup import escape

from appwrite_sync.errors import ProjectNotInitializedError, SyncError
from appwrite_sync.gateway.factory import Gateways
from appwrite_sync.gateway.queries import ListFetch, Query, paginate
from appwrite_sync.manifest.settings import create_settings_object
from appwrite_sync.manifest.store import ManifestStore
from appwrite_sync.models.manifest import Bucket, Collection, Database, Function, Table, Team, Topic
from appwrite_sync.services.progress import Reporter
from appwrite_sync.utils.paths import extract_code_archive

PULL_KINDS = ("settings", "functions", "collections", "tables", "buckets", "teams", "topics")

# Server timestamps change on every write and would make every pull a diff
TIMESTAMP_FIELDS = ("$createdAt", "$updatedAt")

# Remote function fields kept in the manifest
FUNCTION_FIELDS = (
    "$id",
    "name",
    "runtime",
    "execute",
    "events",
    "schedule",
    "timeout",
    "enabled",
    "logging",
    "entrypoint",
    "commands",
    "scopes",
    "specification",
)


def strip_timestamps(document: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in document.items() if k not in TIMESTAMP_FIELDS}


async def fetch_all(fetch: ListFetch, key: str) -> list[dict[str, Any]]:
    """Count with limit(1), then page through everything."""
    first = await fetch([Query.limit(1)])
    if int(first.get("total", 0)) == 0:
        return []
    return await paginate(fetch, key)


def write_env_file(path: Path, variables: dict[str, str]) -> None:
    """Write KEY=value lines, replacing any existing file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [f"{key}={value}" for key, value in variables.items()]
    path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")


class Pull:
    """Copy remote project state into the local manifest."""

    def __init__(self, gateways: Gateways, store: ManifestStore, reporter: Reporter | None = None) -> None:
        self.gateways = gateways
        self.store = store
        self.reporter = reporter or Reporter()

    @property
    def base_dir(self) -> Path:
        return self.store.path.parent

    def _require_project(self) -> str:
        if not self.store.project_id:
            raise ProjectNotInitializedError()
        return self.store.project_id

    async def pull_settings(self) -> int:
        project_id = self._require_project()
        self.reporter.log("Pulling project settings ...")
        project = await self.gateways.projects.get_project(project_id)
        self.store.set_project(project_id, str(project.get("name", "")), create_settings_object(project))
        self.reporter.success("Successfully pulled all project settings.")
        return 1

    async def pull_functions(
        self,
        code: bool = True,
        with_variables: bool = False,
        function_ids: list[str] | None = None,
    ) -> int:
        """
        Pull function definitions, optionally with code and variables.

        Local-only fields (path, ignore, variables) of functions already in
        the manifest are kept.
        """
        self._require_project()
        self.reporter.log("Fetching functions ...")
        functions = self.gateways.functions
        remote = await fetch_all(functions.list_functions, "functions")
        if function_ids:
            wanted = set(function_ids)
            remote = [f for f in remote if f["$id"] in wanted]
        if not remote:
            self.reporter.log("No functions found.")
            return 0

        for document in remote:
            function = self._merge_function(document)
            self.store.add_function(function)
            row = self.reporter.row(function.name, function.id)

            if with_variables:
                await self._pull_variables(function)
            if code:
                try:
                    pulled = await self._pull_code(function, document)
                except SyncError as e:
                    row.fail(str(e))
                    continue
                row.update("Pulled" if pulled else "No code")
            else:
                row.update("Pulled")

        self.reporter.success(f"Successfully pulled {len(remote)} functions.")
        return len(remote)

    def _merge_function(self, document: dict[str, Any]) -> Function:
        data = {k: document[k] for k in FUNCTION_FIELDS if document.get(k) is not None}
        existing = self.store.get_function(str(document["$id"]))
        if existing is not None:
            data["path"] = existing.path
            data["ignore"] = existing.ignore
            data["variables"] = existing.variables
        else:
            data["path"] = f"functions/{document['name']}"
        return Function.model_validate(data)

    async def _pull_variables(self, function: Function) -> None:
        async def fetch(queries: list[str]) -> dict[str, Any]:
            return await self.gateways.functions.list_variables(function.id, queries)

        variables = await fetch_all(fetch, "variables")
        env = {str(v["key"]): str(v.get("value", "")) for v in variables}
        write_env_file(self.base_dir / (function.path or f"functions/{function.name}") / ".env", env)
        logger.debug("Wrote {} variables for {}", len(env), function.id)

    async def _pull_code(self, function: Function, document: dict[str, Any]) -> bool:
        functions = self.gateways.functions
        deployment_id = str(document.get("deploymentId") or "")
        if not deployment_id:
            latest = await functions.list_deployments(
                function.id, [Query.limit(1), Query.order_desc("$createdAt")]
            )
            if int(latest.get("total", 0)) == 0 or not latest.get("deployments"):
                return False
            deployment_id = str(latest["deployments"][0]["$id"])

        archive = await functions.download_deployment(function.id, deployment_id)
        extract_code_archive(archive, self.base_dir / (function.path or f"functions/{function.name}"))
        return True

    async def pull_collections(self) -> int:
        self._require_project()
        self.reporter.warn("Collections are deprecated. Please consider pulling tables instead.")
        schema = self.gateways.collections
        databases = await fetch_all(schema.list_databases, "databases")
        if not databases:
            self.reporter.log("No databases found.")
            return 0

        count = 0
        for db in databases:
            database = Database.model_validate(db)
            self.store.add_database(database)
            self.reporter.log(f"Pulling all collections from [bold]{escape(database.name)}[/bold] database ...")

            async def fetch(queries: list[str], database_id: str = database.id) -> dict[str, Any]:
                return await schema.list_containers(database_id, queries)

            for document in await fetch_all(fetch, "collections"):
                data = {"databaseId": database.id, **strip_timestamps(document)}
                self.store.add_collection(Collection.model_validate(data))
                count += 1

        self.reporter.success(f"Successfully pulled {count} collections.")
        return count

    async def pull_tables(self) -> int:
        self._require_project()
        schema = self.gateways.tables
        databases = await fetch_all(schema.list_databases, "databases")
        if not databases:
            self.reporter.log("No tables DB found.")
            return 0

        self.store.set_tables_dbs([Database.model_validate(db) for db in databases])
        tables: list[Table] = []
        for database in self.store.get_tables_dbs():
            self.reporter.log(f"Pulling all tables from [bold]{escape(database.name)}[/bold] database ...")

            async def fetch(queries: list[str], database_id: str = database.id) -> dict[str, Any]:
                return await schema.list_containers(database_id, queries)

            for document in await fetch_all(fetch, "tables"):
                data = {"databaseId": database.id, **strip_timestamps(document)}
                tables.append(Table.model_validate(data))

        self.store.set_tables(tables)
        self.reporter.success(f"Successfully pulled {len(tables)} tables.")
        return len(tables)

    async def pull_buckets(self) -> int:
        self._require_project()
        self.reporter.log("Fetching buckets ...")
        buckets = await fetch_all(self.gateways.storage.list_buckets, "buckets")
        if not buckets:
            self.reporter.log("No buckets found.")
            return 0
        for document in buckets:
            self.store.add_bucket(Bucket.model_validate(document))
        self.reporter.success(f"Successfully pulled {len(buckets)} buckets.")
        return len(buckets)

    async def pull_teams(self) -> int:
        self._require_project()
        self.reporter.log("Fetching teams ...")
        teams = await fetch_all(self.gateways.teams.list_teams, "teams")
        if not teams:
            self.reporter.log("No teams found.")
            return 0
        for document in teams:
            self.store.add_team(Team.model_validate(document))
        self.reporter.success(f"Successfully pulled {len(teams)} teams.")
        return len(teams)

    async def pull_topics(self) -> int:
        self._require_project()
        self.reporter.log("Fetching topics ...")
        topics = await fetch_all(self.gateways.messaging.list_topics, "topics")
        if not topics:
            self.reporter.log("No topics found.")
            return 0
        for document in topics:
            self.store.add_messaging_topic(Topic.model_validate(document))
        self.reporter.success(f"Successfully pulled {len(topics)} topics.")
        return len(topics)

    async def pull_resources(
        self,
        kinds: tuple[str, ...] = PULL_KINDS,
        code: bool = True,
        with_variables: bool = False,
    ) -> dict[str, int]:
        """Pull several kinds in order; returns the pulled count per kind."""
        self._require_project()
        counts: dict[str, int] = {}
        for kind in kinds:
            if kind not in PULL_KINDS:
                raise ValueError(f"Unknown resource kind: {kind}")
            logger.info("Pulling {}", kind)
            if kind == "functions":
                counts[kind] = await self.pull_functions(code, with_variables)
            else:
                counts[kind] = await getattr(self, f"pull_{kind}")()
        return counts


__all__ = ["PULL_KINDS", "Pull", "fetch_all", "strip_timestamps", "write_env_file"]
