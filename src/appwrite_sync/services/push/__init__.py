"""Push: converge remote resources to the manifest."""

from loguru import logger

from appwrite_sync.errors import ProjectNotInitializedError, SyncError
from appwrite_sync.gateway.factory import Gateways
from appwrite_sync.manifest.store import ManifestStore
from appwrite_sync.models.manifest import Collection, Table
from appwrite_sync.models.results import PushResult
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import RemoteWaiter
from appwrite_sync.services.progress import Reporter
from appwrite_sync.services.push.functions import FunctionPusher
from appwrite_sync.services.push.resources import ResourcePusher
from appwrite_sync.services.push.schema import SchemaPusher
from appwrite_sync.services.push.settings import SettingsPusher

RESOURCE_KINDS = ("settings", "functions", "collections", "tables", "buckets", "teams", "topics")


class Push:
    """
    Entry point for pushing a manifest.

    Each push_* method handles one resource kind and returns a
    PushResult. Per-resource failures are collected in the result;
    only whole-run problems raise.
    """

    def __init__(
        self,
        gateways: Gateways,
        store: ManifestStore,
        confirmer: Confirmer,
        waiter: RemoteWaiter,
        reporter: Reporter | None = None,
    ) -> None:
        self.gateways = gateways
        self.store = store
        self.confirmer = confirmer
        self.waiter = waiter
        self.reporter = reporter or Reporter(confirmer.console)

    def _require_project(self) -> None:
        if not self.store.project_id:
            raise ProjectNotInitializedError()

    def _schema(self, tables: bool, skip_confirmation: bool = False) -> SchemaPusher:
        confirmer = self.confirmer
        if skip_confirmation and not confirmer.force:
            confirmer = Confirmer(force=True, console=confirmer.console)
        schema = self.gateways.tables if tables else self.gateways.collections
        return SchemaPusher(schema, self.store, confirmer, self.waiter, self.reporter)

    async def push_settings(self) -> PushResult:
        self._require_project()
        pusher = SettingsPusher(self.gateways.projects, self.store, self.confirmer, self.reporter)
        return await pusher.push()

    async def push_functions(
        self,
        function_ids: list[str] | None = None,
        async_deploy: bool = False,
        code: bool = True,
        with_variables: bool = False,
    ) -> PushResult:
        self._require_project()
        pusher = FunctionPusher(
            self.gateways.functions,
            self.gateways.proxy,
            self.gateways.console,
            self.store,
            self.confirmer,
            self.waiter,
            self.reporter,
            console_url=self.gateways.client.config.console_url,
        )
        return await pusher.push(function_ids, async_deploy, code, with_variables)

    async def push_collections(
        self, collections: list[Collection] | None = None, attempts: int | None = None
    ) -> PushResult:
        self._require_project()
        self.reporter.warn("Collections are deprecated. Please consider pushing tables instead.")
        declared = collections if collections is not None else self.store.get_collections()
        return await self._schema(tables=False).push_containers(declared, attempts, ensure_databases=True)

    async def push_tables(
        self,
        tables: list[Table] | None = None,
        attempts: int | None = None,
        skip_confirmation: bool = False,
    ) -> PushResult:
        """
        Push tables.

        Without an explicit list the whole manifest is synced: databases
        are created, updated or deleted first, and remote tables the
        manifest no longer declares are offered for deletion.
        """
        self._require_project()
        pusher = self._schema(tables=True, skip_confirmation=skip_confirmation)
        if tables is None:
            _, resync = await pusher.apply_database_changes()
            if resync:
                await pusher.resync_manifest()
            await pusher.delete_orphan_containers()
            tables = self.store.get_tables()
        return await pusher.push_containers(tables, attempts)

    def _resources(self) -> ResourcePusher:
        return ResourcePusher(
            self.gateways.storage,
            self.gateways.teams,
            self.gateways.messaging,
            self.store,
            self.confirmer,
            self.reporter,
        )

    async def push_buckets(self, bucket_ids: list[str] | None = None) -> PushResult:
        self._require_project()
        return await self._resources().push_buckets(bucket_ids)

    async def push_teams(self, team_ids: list[str] | None = None) -> PushResult:
        self._require_project()
        return await self._resources().push_teams(team_ids)

    async def push_topics(self, topic_ids: list[str] | None = None) -> PushResult:
        self._require_project()
        return await self._resources().push_topics(topic_ids)

    async def push_resources(
        self,
        kinds: tuple[str, ...] = RESOURCE_KINDS,
        attempts: int | None = None,
        async_deploy: bool = False,
        code: bool = True,
        with_variables: bool = False,
    ) -> PushResult:
        """
        Push several resource kinds in a fixed order.

        Raises:
            ProjectNotInitializedError: The manifest names no project.
            SyncError: The manifest declares nothing to push.
        """
        self._require_project()
        manifest = self.store.manifest
        if not any(
            (
                manifest.settings,
                manifest.functions,
                manifest.collections,
                manifest.tables,
                manifest.buckets,
                manifest.teams,
                manifest.topics,
            )
        ):
            raise SyncError("No resources found to push. Pull or declare resources in the manifest first.")

        total = PushResult()
        for kind in kinds:
            if kind not in RESOURCE_KINDS:
                raise ValueError(f"Unknown resource kind: {kind}")
            logger.info("Pushing {}", kind)
            if kind == "settings":
                if not (manifest.settings or manifest.project_name):
                    continue
                try:
                    total.merge(await self.push_settings())
                except SyncError as e:
                    total.errors.append(e)
                    self.reporter.error(f"Failed to push project settings: {e}")
            elif kind == "functions":
                total.merge(await self.push_functions(None, async_deploy, code, with_variables))
            elif kind == "collections":
                if manifest.collections:
                    total.merge(await self.push_collections(attempts=attempts))
            elif kind == "tables":
                if manifest.tables or manifest.tables_db:
                    total.merge(await self.push_tables(attempts=attempts))
            elif kind == "buckets":
                total.merge(await self.push_buckets())
            elif kind == "teams":
                total.merge(await self.push_teams())
            else:
                total.merge(await self.push_topics())
        return total


__all__ = ["RESOURCE_KINDS", "Push"]
