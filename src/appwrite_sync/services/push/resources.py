"""Buckets, teams and messaging topics.

Each declared resource is looked up by ID, updated when it exists and
created on a 404. Resources of one kind are pushed concurrently.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from rich.markup import escape

from appwrite_sync.errors import NotFoundError, SyncError
from appwrite_sync.models.manifest import Bucket, Team, Topic
from appwrite_sync.models.results import PushResult
from appwrite_sync.ports.gateway import MessagingPort, StoragePort, TeamsPort
from appwrite_sync.ports.manifest import ManifestStorePort
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.progress import Reporter
from appwrite_sync.services.push.approval import BUCKET_KEYS, TEAM_KEYS, TOPIC_KEYS, approve_changes

R = TypeVar("R", Bucket, Team, Topic)

BUCKET_FIELDS = (
    "name",
    "$permissions",
    "fileSecurity",
    "enabled",
    "maximumFileSize",
    "allowedFileExtensions",
    "compression",
    "encryption",
    "antivirus",
)


def bucket_definition(bucket: Bucket) -> dict[str, Any]:
    payload = bucket.to_payload()
    body = {field: payload[field] for field in BUCKET_FIELDS if field in payload}
    body["permissions"] = body.pop("$permissions", [])
    return body


def _select(declared: Sequence[R], ids: list[str] | None) -> list[R]:
    if not ids:
        return list(declared)
    wanted = set(ids)
    return [r for r in declared if r.id in wanted]


class ResourcePusher:
    """Sequential get/update-or-create for simple resources."""

    def __init__(
        self,
        storage: StoragePort,
        teams: TeamsPort,
        messaging: MessagingPort,
        store: ManifestStorePort,
        confirmer: Confirmer,
        reporter: Reporter,
    ) -> None:
        self.storage = storage
        self.teams = teams
        self.messaging = messaging
        self.store = store
        self.confirmer = confirmer
        self.reporter = reporter

    async def _push_each(
        self,
        resources: list[R],
        kind: str,
        plural: str,
        keys: frozenset[str],
        get: Callable[[R], Awaitable[Any]],
        update: Callable[[R], Awaitable[Any]],
        create: Callable[[R], Awaitable[Any]],
    ) -> PushResult:
        result = PushResult()
        if not resources:
            self.reporter.log(f"No {plural} found.")
            return result

        approved = await approve_changes(resources, get, keys, plural, self.confirmer, self.reporter, result)
        if approved is None:
            return result

        async def push_one(resource: R) -> None:
            name = resource.name
            self.reporter.log(f"Pushing {kind} [bold]{escape(name)}[/bold] ...")
            try:
                try:
                    await get(resource)
                    await update(resource)
                except NotFoundError:
                    self.reporter.log(f"{kind.capitalize()} {escape(name)} does not exist in the project. Creating ...")
                    await create(resource)
            except SyncError as e:
                result.errors.append(e)
                self.reporter.error(f"Failed to push {kind} {name}: {e}")
                return
            result.successfully_pushed += 1

        self.reporter.log(f"Pushing {plural} ...")
        await asyncio.gather(*(push_one(r) for r in approved))

        self.reporter.success(f"Successfully pushed {result.successfully_pushed} {plural}.")
        return result

    async def push_buckets(self, bucket_ids: list[str] | None = None) -> PushResult:
        buckets = _select(self.store.get_buckets(), bucket_ids)
        return await self._push_each(
            buckets,
            "bucket",
            "buckets",
            BUCKET_KEYS,
            lambda b: self.storage.get_bucket(b.id),
            lambda b: self.storage.update_bucket(b.id, bucket_definition(b)),
            lambda b: self.storage.create_bucket(b.id, bucket_definition(b)),
        )

    async def push_teams(self, team_ids: list[str] | None = None) -> PushResult:
        teams: list[Team] = _select(self.store.get_teams(), team_ids)
        return await self._push_each(
            teams,
            "team",
            "teams",
            TEAM_KEYS,
            lambda t: self.teams.get_team(t.id),
            lambda t: self.teams.update_team_name(t.id, t.name),
            lambda t: self.teams.create_team(t.id, t.name),
        )

    async def push_topics(self, topic_ids: list[str] | None = None) -> PushResult:
        topics: list[Topic] = _select(self.store.get_messaging_topics(), topic_ids)
        return await self._push_each(
            topics,
            "topic",
            "topics",
            TOPIC_KEYS,
            lambda t: self.messaging.get_topic(t.id),
            lambda t: self.messaging.update_topic(t.id, t.name, t.subscribe),
            lambda t: self.messaging.create_topic(t.id, t.name, t.subscribe),
        )
