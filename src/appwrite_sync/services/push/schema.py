"""Reconciliation of collections and tables.

Both flavors run the same pipeline: make sure the parent database and
container exist, then walk containers one at a time classifying their
attributes and indexes, applying deletions, recreations and in-place
updates, and finally creating what is missing. Every destructive step
is confirmed (unless forced) and waited on before anything with the
same key is created again.
"""

import asyncio
from typing import Any

from loguru import logger
from rich.markup import escape

from appwrite_sync.errors import NotFoundError, SyncError
from appwrite_sync.gateway.queries import paginate
from appwrite_sync.models.changes import ChangeSet
from appwrite_sync.models.manifest import Collection, Database, Table
from appwrite_sync.models.results import PushResult
from appwrite_sync.ports.gateway import SchemaPort
from appwrite_sync.ports.manifest import ManifestStorePort
from appwrite_sync.services.classifier import classify
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import RemoteWaiter
from appwrite_sync.services.progress import Reporter
from appwrite_sync.services.push.approval import COLLECTION_KEYS, TABLE_KEYS, approve_changes

Container = Collection | Table


def declared_attributes(container: Container) -> list[dict[str, Any]]:
    """Attribute (or column) payloads of a declared container."""
    fields = container.columns if isinstance(container, Table) else container.attributes
    return [f.to_payload() for f in fields]


def declared_indexes(container: Container) -> list[dict[str, Any]]:
    return [i.to_payload() for i in container.indexes]


def security_of(container: Container) -> bool:
    return container.row_security if isinstance(container, Table) else container.document_security


def owner_label(container: Container) -> str:
    return f"{container.name} ({container.id})"


class SchemaPusher:
    """Push collections or tables through one schema flavor."""

    def __init__(
        self,
        schema: SchemaPort,
        store: ManifestStorePort,
        confirmer: Confirmer,
        waiter: RemoteWaiter,
        reporter: Reporter,
    ) -> None:
        self.schema = schema
        self.flavor = schema.flavor
        self.store = store
        self.confirmer = confirmer
        self.waiter = waiter
        self.reporter = reporter

    async def attributes_to_create(
        self,
        remote: list[dict[str, Any]],
        local: list[dict[str, Any]],
        container: Container,
        is_index: bool = False,
        waiter: RemoteWaiter | None = None,
    ) -> list[dict[str, Any]]:
        """
        Apply deletions, recreations and in-place updates for one container.

        Returns:
            Declared attributes (or indexes) that still have to be created.
            Empty when there is nothing to do or the user declined.
        """
        waiter = waiter or self.waiter
        changes = classify(remote, local, owner_label(container))
        if changes.is_empty:
            return []

        self.confirmer.show_changes(changes, self.flavor.attribute_title, is_index)
        if changes.requires_confirmation and not self.confirmer.confirm():
            return []

        db_id, container_id = container.database_id, container.id
        remaining = {str(a["key"]) for a in remote}

        if changes.conflicts:
            await self._delete_all(changes, db_id, container_id, is_index, conflicts=True)
            remaining -= {c.attribute_key for c in changes.conflicts}

        if changes.changes and not is_index:
            await asyncio.gather(
                *(self.schema.update_attribute(db_id, container_id, c.attribute) for c in changes.changes)
            )

        if changes.deleting:
            await self._delete_all(changes, db_id, container_id, is_index, conflicts=False)

        removed = [c.attribute_key for c in (*changes.conflicts, *changes.deleting)]
        if removed:
            if is_index:
                await waiter.indexes_deleted(self.schema, db_id, container_id, removed)
            else:
                await waiter.attributes_deleted(self.schema, db_id, container_id, removed)

        return [attr for attr in local if str(attr["key"]) not in remaining]

    async def _delete_all(
        self, changes: ChangeSet, db_id: str, container_id: str, is_index: bool, conflicts: bool
    ) -> None:
        records = changes.conflicts if conflicts else changes.deleting
        what = "index" if is_index else self.flavor.attribute
        for record in records:
            logger.info("Deleting {} {} of {}", what, record.attribute_key, container_id)
        delete = self.schema.delete_index if is_index else self.schema.delete_attribute
        await asyncio.gather(*(delete(db_id, container_id, r.attribute_key) for r in records))

    async def create_attributes(
        self, attributes: list[dict[str, Any]], container: Container, waiter: RemoteWaiter | None = None
    ) -> None:
        """Create attributes in order, then wait for every declared one to be available."""
        waiter = waiter or self.waiter
        # Child sides of two-way relationships are created by their parent
        for attribute in attributes:
            if attribute.get("side") != "child":
                await self.schema.create_attribute(container.database_id, container.id, attribute)

        keys = [a["key"] for a in declared_attributes(container) if a.get("side") != "child"]
        if keys:
            await waiter.attributes_available(self.schema, container.database_id, container.id, keys)
        if attributes:
            self.reporter.success(f"Created {len(attributes)} {self.flavor.attributes}")

    async def create_indexes(
        self, indexes: list[dict[str, Any]], container: Container, waiter: RemoteWaiter | None = None
    ) -> None:
        waiter = waiter or self.waiter
        if not indexes:
            return
        for index in indexes:
            fields = index.get("columns") or index.get("attributes") or []
            await self.schema.create_index(
                container.database_id,
                container.id,
                index["key"],
                index["type"],
                fields,
                index.get("orders"),
            )
        await waiter.indexes_available(
            self.schema, container.database_id, container.id, [i["key"] for i in indexes]
        )
        self.reporter.success(f"Created {len(indexes)} indexes")

    async def ensure_databases(self, containers: list[Container], result: PushResult) -> set[str]:
        """Create or rename parent databases concurrently; return the IDs that failed."""
        database_ids = sorted({c.database_id for c in containers})

        async def ensure(database_id: str) -> str | None:
            local = self.store.get_database(database_id)
            name = local.name if local else database_id
            try:
                try:
                    remote = await self.schema.get_database(database_id)
                except NotFoundError:
                    self.reporter.log(f"Database {escape(database_id)} not found. Creating it now ...")
                    await self.schema.create_database(database_id, name)
                    return None
                if remote.get("name") != name:
                    await self.schema.update_database(database_id, name)
                    self.reporter.success(f"Updated {name} ( {database_id} ) name")
            except SyncError as e:
                result.errors.append(e)
                self.reporter.error(f"Failed to sync database {database_id}: {e}")
                return database_id
            return None

        failed = await asyncio.gather(*(ensure(d) for d in database_ids))
        return {d for d in failed if d}

    async def _sync_container(self, container: Container) -> tuple[bool, dict[str, Any] | None]:
        """Create the container or update its top-level fields; return (changed, remote)."""
        security = security_of(container)
        try:
            remote = await self.schema.get_container(container.database_id, container.id)
        except NotFoundError:
            kind = self.flavor.container.capitalize()
            self.reporter.log(f"{kind} {escape(container.name)} does not exist in the project. Creating ...")
            await self.schema.create_container(
                container.database_id,
                container.id,
                container.name,
                security,
                container.permissions,
                container.enabled,
            )
            self.reporter.success(f"Created {container.name} ( {container.id} )")
            return True, None

        changed = []
        if remote.get("name") != container.name:
            changed.append("name")
        if remote.get(self.flavor.security_param) != security:
            changed.append(self.flavor.security_param)
        if remote.get("enabled", True) != container.enabled:
            changed.append("enabled")
        if list(remote.get("$permissions") or []) != list(container.permissions):
            changed.append("permissions")
        if changed:
            await self.schema.update_container(
                container.database_id,
                container.id,
                container.name,
                security,
                container.permissions,
                container.enabled,
            )
            self.reporter.success(f"Updated {container.name} ( {container.id} ) - {', '.join(changed)}")
        return bool(changed), remote

    async def push_containers(
        self,
        containers: list[Container],
        attempts: int | None = None,
        ensure_databases: bool = False,
    ) -> PushResult:
        """
        Push declared containers with their attributes and indexes.

        Containers are created or updated concurrently; attributes and
        indexes are then reconciled one container at a time.
        """
        result = PushResult()
        plural = self.flavor.containers
        if not containers:
            self.reporter.log(f"No {plural} found.")
            return result

        waiter = self.waiter.with_attempts(attempts)
        skipped: set[str] = set()
        if ensure_databases:
            skipped = await self.ensure_databases(containers, result)
        containers = [c for c in containers if c.database_id not in skipped]

        keys = TABLE_KEYS if self.flavor.container == "table" else COLLECTION_KEYS
        approved = await approve_changes(
            containers,
            lambda c: self.schema.get_container(c.database_id, c.id),
            keys,
            plural,
            self.confirmer,
            self.reporter,
            result,
            skip=(self.flavor.attributes, "indexes"),
        )
        if approved is None:
            return result
        containers = approved

        async def sync(container: Container) -> tuple[Container, bool, dict[str, Any] | None] | None:
            try:
                changed, remote = await self._sync_container(container)
            except SyncError as e:
                result.errors.append(e)
                self.reporter.error(f"Failed to push {container.name} ( {container.id} ): {e}")
                return None
            return container, changed, remote

        synced = [s for s in await asyncio.gather(*(sync(c) for c in containers)) if s is not None]

        pushed = 0
        for container, changed, remote in synced:
            try:
                if await self._push_fields(container, remote, waiter):
                    changed = True
            except (SyncError, ValueError) as e:
                result.errors.append(e)
                self.reporter.error(f"Failed to push {container.name} ( {container.id} ): {e}")
                continue
            if changed:
                pushed += 1

        result.successfully_pushed = pushed
        self.reporter.success(f"Successfully pushed {pushed} {plural}")
        return result

    async def _push_fields(
        self, container: Container, remote: dict[str, Any] | None, waiter: RemoteWaiter
    ) -> bool:
        """Reconcile attributes then indexes of one container; True when anything was pushed."""
        attributes = declared_attributes(container)
        indexes = declared_indexes(container)

        if remote is not None:
            attributes = await self.attributes_to_create(
                remote.get(self.flavor.attributes) or [], attributes, container, waiter=waiter
            )
            indexes = await self.attributes_to_create(
                remote.get("indexes") or [], indexes, container, is_index=True, waiter=waiter
            )
            if not attributes and not indexes:
                return False

        self.reporter.log(
            f"Pushing {self.flavor.container} {escape(container.name)} "
            f"( {container.database_id} - {container.id} ) {self.flavor.attributes}"
        )
        await self.create_attributes(attributes, container, waiter)
        await self.create_indexes(indexes, container, waiter)
        self.reporter.success(f"Successfully pushed {container.name} ( {container.id} )")
        return True

    async def _remote_databases(self) -> list[dict[str, Any]]:
        return await paginate(self.schema.list_databases, "databases")

    async def apply_database_changes(self) -> tuple[bool, bool]:
        """
        Create, update and delete remote databases to match the manifest.

        Returns:
            (applied, resync_needed). Resync is needed after deletions.

        Raises:
            SyncError: A database operation failed part way through.
        """
        self.reporter.log(f"Checking for {self.flavor.name} database changes ...")
        local_dbs = self.store.get_tables_dbs()
        remote_dbs = await self._remote_databases()
        if not local_dbs and not remote_dbs:
            return False, False

        local_by_id = {d.id: d for d in local_dbs}
        remote_by_id = {str(d["$id"]): d for d in remote_dbs}
        rows: list[dict[str, Any]] = []
        to_delete = [d for d in remote_dbs if str(d["$id"]) not in local_by_id]
        to_create: list[Database] = []
        to_update: list[Database] = []

        for db in to_delete:
            rows.append(
                {
                    "id": db["$id"],
                    "action": "deleting",
                    "key": "Database",
                    "remote": db.get("name"),
                    "local": "(deleted locally)",
                }
            )
        for db in local_dbs:
            remote = remote_by_id.get(db.id)
            if remote is None:
                to_create.append(db)
                rows.append(
                    {
                        "id": db.id,
                        "action": "creating",
                        "key": "Database",
                        "remote": "(does not exist)",
                        "local": db.name,
                    }
                )
                continue
            differs = False
            if remote.get("name") != db.name:
                differs = True
                rows.append(
                    {"id": db.id, "action": "updating", "key": "Name", "remote": remote.get("name"), "local": db.name}
                )
            if remote.get("enabled", True) != db.enabled:
                differs = True
                rows.append(
                    {
                        "id": db.id,
                        "action": "updating",
                        "key": "Enabled",
                        "remote": remote.get("enabled"),
                        "local": db.enabled,
                    }
                )
            if differs:
                to_update.append(db)

        if not rows:
            return False, False

        self.reporter.log(f"Found changes in {self.flavor.name} databases:")
        self.confirmer.show_table(rows)
        if to_delete:
            self.reporter.warn(f"Database deletion will also delete all related {self.flavor.containers}")
        if not self.confirmer.confirm():
            return False, False

        for db in to_delete:
            try:
                await self.schema.delete_database(str(db["$id"]))
            except SyncError as e:
                raise SyncError(
                    f"Database sync failed during deletion of {db['$id']}. Some changes may have been applied."
                ) from e
            self.reporter.success(f"Deleted {db.get('name')} ( {db['$id']} )")
        for db in to_create:
            try:
                await self.schema.create_database(db.id, db.name, db.enabled)
            except SyncError as e:
                raise SyncError(
                    f"Database sync failed during creation of {db.id}. Some changes may have been applied."
                ) from e
            self.reporter.success(f"Created {db.name} ( {db.id} )")
        for db in to_update:
            try:
                await self.schema.update_database(db.id, db.name, db.enabled)
            except SyncError as e:
                raise SyncError(
                    f"Database sync failed during update of {db.id}. Some changes may have been applied."
                ) from e
            self.reporter.success(f"Updated {db.name} ( {db.id} )")

        return True, bool(to_delete)

    async def resync_manifest(self) -> None:
        """Drop manifest databases and tables whose remote database is gone."""
        self.reporter.log("Resyncing configuration due to database deletions ...")
        remote_ids = {str(d["$id"]) for d in await self._remote_databases()}
        self.store.set_tables([t for t in self.store.get_tables() if t.database_id in remote_ids])
        self.store.set_tables_dbs([d for d in self.store.get_tables_dbs() if d.id in remote_ids])
        self.reporter.success("Configuration resynced successfully.")

    async def delete_orphan_containers(self) -> int:
        """Delete remote tables of manifest databases that the manifest no longer declares."""
        self.reporter.log(f"Checking for deleted {self.flavor.containers} ...")
        declared = {(t.database_id, t.id) for t in self.store.get_tables()}
        orphans: list[tuple[Database, dict[str, Any]]] = []

        for db in self.store.get_tables_dbs():

            async def fetch(queries: list[str], database_id: str = db.id) -> dict[str, Any]:
                return await self.schema.list_containers(database_id, queries)

            try:
                remote = await paginate(fetch, self.flavor.containers)
            except NotFoundError:
                logger.debug("Database {} not found while checking orphans", db.id)
                continue
            orphans.extend((db, c) for c in remote if (db.id, str(c["$id"])) not in declared)

        if not orphans:
            return 0

        self.reporter.log(f"Found {self.flavor.containers} that exist remotely but not locally:")
        self.confirmer.show_table(
            [
                {
                    "id": c["$id"],
                    "action": "deleting",
                    "key": self.flavor.container.capitalize(),
                    "database": db.name,
                    "remote": c.get("name"),
                    "local": "(deleted locally)",
                }
                for db, c in orphans
            ]
        )
        if not self.confirmer.confirm():
            return 0

        deleted = 0
        for db, c in orphans:
            try:
                await self.schema.delete_container(db.id, str(c["$id"]))
            except SyncError as e:
                self.reporter.error(f"Failed to delete {c.get('name')} ( {c['$id']} ): {e}")
                continue
            deleted += 1
            self.reporter.success(f"Deleted {c.get('name')} ( {c['$id']} )")
        return deleted
