"""Tests for bucket, team, topic and settings push."""

import asyncio
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console

from appwrite_sync.errors import GatewayError, NotFoundError, ProjectNotInitializedError, SyncError
from appwrite_sync.manifest.store import ManifestStore
from appwrite_sync.models.manifest import Bucket, Team, Topic
from appwrite_sync.models.results import PushResult
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import RemoteWaiter
from appwrite_sync.services.progress import Reporter
from appwrite_sync.services.push import Push
from appwrite_sync.services.push.approval import TEAM_KEYS, approve_changes, diff_fields
from appwrite_sync.services.push.resources import ResourcePusher, bucket_definition
from appwrite_sync.services.push.settings import SettingsPusher, object_changes


@pytest.fixture
def ports() -> dict[str, AsyncMock]:
    return {"storage": AsyncMock(), "teams": AsyncMock(), "messaging": AsyncMock()}


@pytest.fixture
def make_pusher(
    ports: dict[str, AsyncMock], store: ManifestStore, reporter: Reporter
) -> Callable[[Confirmer], ResourcePusher]:
    def factory(confirmer: Confirmer) -> ResourcePusher:
        return ResourcePusher(ports["storage"], ports["teams"], ports["messaging"], store, confirmer, reporter)

    return factory


class TestApproval:
    def test_diff_fields_skips_unlisted_and_empty(self) -> None:
        rows = diff_fields(
            "b1",
            {"name": "Old", "enabled": True, "$permissions": [], "$createdAt": "x"},
            {"name": "New", "enabled": True},
            ["name", "enabled", "$permissions"],
        )
        assert rows == [{"id": "b1", "key": "name", "remote": "Old", "local": "New"}]

    @pytest.mark.asyncio
    async def test_missing_resources_are_skipped(
        self, make_confirmer: Callable[..., Confirmer], reporter: Reporter
    ) -> None:
        fetch = AsyncMock(side_effect=NotFoundError("Team not found"))
        team = Team(id="t", name="T")
        approved = await approve_changes([team], fetch, TEAM_KEYS, "teams", make_confirmer(), reporter, PushResult())
        assert approved == [team]

    @pytest.mark.asyncio
    async def test_declined(
        self, make_confirmer: Callable[..., Confirmer], reporter: Reporter, console: Console
    ) -> None:
        fetch = AsyncMock(return_value={"$id": "t", "name": "Old"})
        approved = await approve_changes(
            [Team(id="t", name="T")], fetch, TEAM_KEYS, "teams", make_confirmer("NO"), reporter, PushResult()
        )
        assert approved is None
        assert "Successfully pushed 0 teams." in console.export_text()

    @pytest.mark.asyncio
    async def test_lookup_failure_is_recorded_and_resource_dropped(
        self, make_confirmer: Callable[..., Confirmer], reporter: Reporter, console: Console
    ) -> None:
        broken = Team(id="broken", name="Broken")
        fine = Team(id="fine", name="Fine")

        async def fetch(team: Team) -> dict[str, str]:
            if team.id == "broken":
                raise GatewayError("Server error", 500)
            raise NotFoundError("Team not found")

        result = PushResult()
        approved = await approve_changes([broken, fine], fetch, TEAM_KEYS, "teams", make_confirmer(), reporter, result)

        assert approved == [fine]
        assert len(result.errors) == 1
        assert "Failed to check Broken ( broken ): Server error" in console.export_text()


class TestResources:
    def test_bucket_definition_renames_permissions(self) -> None:
        bucket = Bucket.model_validate({"$id": "b", "name": "B", "$permissions": ['read("any")']})
        definition = bucket_definition(bucket)
        assert definition["permissions"] == ['read("any")']
        assert "$permissions" not in definition
        assert "$id" not in definition

    @pytest.mark.asyncio
    async def test_buckets_update_or_create(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
    ) -> None:
        store.add_bucket(Bucket(id="existing", name="Existing"))
        store.add_bucket(Bucket(id="new", name="New"))

        async def get_bucket(bucket_id: str) -> dict[str, str]:
            if bucket_id == "new":
                raise NotFoundError("Bucket not found")
            return {"$id": bucket_id, "name": "Existing"}

        ports["storage"].get_bucket.side_effect = get_bucket

        result = await make_pusher(make_confirmer()).push_buckets()

        assert result.successfully_pushed == 2
        ports["storage"].update_bucket.assert_awaited_once()
        assert ports["storage"].create_bucket.await_args.args[0] == "new"

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_siblings(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
    ) -> None:
        store.add_team(Team(id="a", name="A"))
        store.add_team(Team(id="b", name="B"))
        ports["teams"].get_team.side_effect = NotFoundError("Team not found")
        ports["teams"].create_team.side_effect = [GatewayError("Team already exists", 409), {"$id": "b"}]

        result = await make_pusher(make_confirmer()).push_teams()

        assert result.successfully_pushed == 1
        assert len(result.errors) == 1

    @pytest.mark.asyncio
    async def test_lookup_failure_does_not_block_siblings(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
    ) -> None:
        store.add_bucket(Bucket(id="b1", name="One"))
        store.add_bucket(Bucket(id="b2", name="Two"))

        async def get_bucket(bucket_id: str) -> dict[str, str]:
            if bucket_id == "b1":
                raise GatewayError("Server error", 500)
            raise NotFoundError("Bucket not found")

        ports["storage"].get_bucket.side_effect = get_bucket

        result = await make_pusher(make_confirmer()).push_buckets()

        assert result.successfully_pushed == 1
        assert len(result.errors) == 1
        ports["storage"].create_bucket.assert_awaited_once()
        assert ports["storage"].create_bucket.await_args.args[0] == "b2"

    @pytest.mark.asyncio
    async def test_resources_pushed_concurrently(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
    ) -> None:
        store.add_team(Team(id="a", name="A"))
        store.add_team(Team(id="b", name="B"))
        ports["teams"].get_team.return_value = {"$id": "x", "name": "A"}
        both_started = asyncio.Event()
        started: list[str] = []

        async def update_team_name(team_id: str, name: str) -> dict[str, str]:
            started.append(team_id)
            if len(started) == 2:
                both_started.set()
            await asyncio.wait_for(both_started.wait(), timeout=1)
            return {"$id": team_id, "name": name}

        ports["teams"].update_team_name.side_effect = update_team_name

        result = await make_pusher(make_confirmer(force=True)).push_teams()

        assert result.successfully_pushed == 2
        assert sorted(started) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_names_with_markup_are_printed_literally(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
        console: Console,
    ) -> None:
        store.add_team(Team(id="t", name="a[/x]"))
        ports["teams"].get_team.side_effect = NotFoundError("Team not found")
        ports["teams"].create_team.side_effect = GatewayError("bad [/y] name", 400)

        result = await make_pusher(make_confirmer()).push_teams()

        assert len(result.errors) == 1
        output = console.export_text()
        assert "Pushing team a[/x] ..." in output
        assert "Failed to push team a[/x]: bad [/y] name" in output

    @pytest.mark.asyncio
    async def test_topics_selected_by_id(
        self,
        store: ManifestStore,
        ports: dict[str, AsyncMock],
        make_pusher: Callable[[Confirmer], ResourcePusher],
        make_confirmer: Callable[..., Confirmer],
    ) -> None:
        store.add_messaging_topic(Topic(id="news", name="News", subscribe=["users"]))
        store.add_messaging_topic(Topic(id="other", name="Other"))
        ports["messaging"].get_topic.return_value = {"$id": "news", "name": "News", "subscribe": ["users"]}

        result = await make_pusher(make_confirmer()).push_topics(["news"])

        assert result.successfully_pushed == 1
        ports["messaging"].update_topic.assert_awaited_once_with("news", "News", ["users"])

    @pytest.mark.asyncio
    async def test_nothing_declared(
        self, make_pusher: Callable[[Confirmer], ResourcePusher], make_confirmer: Callable[..., Confirmer]
    ) -> None:
        result = await make_pusher(make_confirmer()).push_teams()
        assert result.successfully_pushed == 0


class TestSettings:
    def test_object_changes(self) -> None:
        rows = object_changes(
            {"services": {"teams": True, "users": True}},
            {"services": {"teams": False, "users": True}},
            "services",
            "Service",
        )
        assert rows == [{"group": "Service", "setting": "teams", "remote": "True", "local": "False"}]

    @pytest.mark.asyncio
    async def test_applies_settings_in_order(
        self, store: ManifestStore, make_confirmer: Callable[..., Confirmer], reporter: Reporter
    ) -> None:
        store.set_project(
            "demo",
            "Demo",
            {
                "services": {"teams": False},
                "auth": {
                    "methods": {"email-password": True},
                    "security": {"mockNumbers": [], "duration": 3600, "limit": None},
                },
            },
        )
        projects = AsyncMock()
        projects.get_project.return_value = {
            "serviceStatusForTeams": True,
            "authEmailPassword": True,
            "authDuration": 3600,
        }

        result = await SettingsPusher(projects, store, make_confirmer("YES"), reporter).push()

        assert result.successfully_pushed == 1
        projects.update_project.assert_awaited_once_with("demo", "Demo")
        projects.update_service_status.assert_awaited_once_with("demo", "teams", False)
        assert [c.args[1] for c in projects.update_auth_security.await_args_list] == ["duration", "mockNumbers"]
        projects.update_auth_status.assert_awaited_once_with("demo", "email-password", True)

    @pytest.mark.asyncio
    async def test_declined_settings(
        self, store: ManifestStore, make_confirmer: Callable[..., Confirmer], reporter: Reporter
    ) -> None:
        store.set_project("demo", "Demo", {"services": {"teams": False}})
        projects = AsyncMock()
        projects.get_project.return_value = {"serviceStatusForTeams": True}

        result = await SettingsPusher(projects, store, make_confirmer("NO"), reporter).push()

        assert result.successfully_pushed == 0
        projects.update_service_status.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_requires_project(
        self, tmp_path: Path, make_confirmer: Callable[..., Confirmer], reporter: Reporter
    ) -> None:
        store = ManifestStore(tmp_path / "empty.json")
        with pytest.raises(ProjectNotInitializedError):
            await SettingsPusher(AsyncMock(), store, make_confirmer(), reporter).push()


class TestPushFacade:
    @pytest.mark.asyncio
    async def test_push_resources_requires_something_declared(
        self, store: ManifestStore, make_confirmer: Callable[..., Confirmer], waiter: RemoteWaiter
    ) -> None:
        push = Push(MagicMock(), store, make_confirmer(), waiter)
        with pytest.raises(SyncError, match="No resources found"):
            await push.push_resources()

    @pytest.mark.asyncio
    async def test_push_resources_merges_in_order(
        self, store: ManifestStore, make_confirmer: Callable[..., Confirmer], waiter: RemoteWaiter
    ) -> None:
        store.add_team(Team(id="t", name="T"))
        push = Push(MagicMock(), store, make_confirmer(), waiter)
        order: list[str] = []

        def step(name: str, pushed: int) -> AsyncMock:
            async def run(*args: object, **kwargs: object) -> PushResult:
                order.append(name)
                return PushResult(successfully_pushed=pushed)

            return AsyncMock(side_effect=run)

        push.push_settings = step("settings", 1)  # type: ignore[method-assign]
        push.push_functions = step("functions", 2)  # type: ignore[method-assign]
        push.push_buckets = step("buckets", 0)  # type: ignore[method-assign]
        push.push_teams = step("teams", 1)  # type: ignore[method-assign]
        push.push_topics = step("topics", 0)  # type: ignore[method-assign]

        result = await push.push_resources()

        # Collections and tables are skipped when the manifest declares none
        assert order == ["settings", "functions", "buckets", "teams", "topics"]
        assert result.successfully_pushed == 4

    @pytest.mark.asyncio
    async def test_requires_project(
        self, tmp_path: Path, make_confirmer: Callable[..., Confirmer], waiter: RemoteWaiter
    ) -> None:
        push = Push(MagicMock(), ManifestStore(tmp_path / "empty.json"), make_confirmer(), waiter)
        with pytest.raises(ProjectNotInitializedError):
            await push.push_teams()
