"""Fixtures for push and pull service tests."""

import copy
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from appwrite_sync.errors import NotFoundError
from appwrite_sync.manifest.store import ManifestStore
from appwrite_sync.models.schema import COLLECTIONS, TABLES, SchemaFlavor
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.poller import Poller, RemoteWaiter
from appwrite_sync.services.progress import Reporter


async def _no_sleep(seconds: float) -> None:
    return None


class FakeSchema:
    """In-memory schema gateway; every attribute and index is available at once."""

    def __init__(self, flavor: SchemaFlavor) -> None:
        self.flavor = flavor
        self.databases: dict[str, dict[str, Any]] = {}
        self.containers: dict[tuple[str, str], dict[str, Any]] = {}
        self.calls: list[tuple[Any, ...]] = []

    # Seeding helpers

    def add_database(self, database_id: str, name: str, enabled: bool = True) -> None:
        self.databases[database_id] = {"$id": database_id, "name": name, "enabled": enabled}

    def add_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        attributes: list[dict[str, Any]] | None = None,
        indexes: list[dict[str, Any]] | None = None,
        security: bool = True,
        permissions: list[str] | None = None,
    ) -> None:
        if database_id not in self.databases:
            self.add_database(database_id, database_id)
        self.containers[(database_id, container_id)] = {
            "$id": container_id,
            "databaseId": database_id,
            "name": name,
            "enabled": True,
            self.flavor.security_param: security,
            "$permissions": permissions or [],
            self.flavor.attributes: [{"status": "available", **a} for a in attributes or []],
            "indexes": [{"status": "available", **i} for i in indexes or []],
        }

    def called(self, method: str) -> list[tuple[Any, ...]]:
        return [c for c in self.calls if c[0] == method]

    def _container(self, database_id: str, container_id: str) -> dict[str, Any]:
        try:
            return self.containers[(database_id, container_id)]
        except KeyError:
            raise NotFoundError(f"{self.flavor.container} not found") from None

    def _as_stored(self, attribute: dict[str, Any]) -> dict[str, Any]:
        """Echo an attribute the way the server returns it, defaults filled in."""
        stored: dict[str, Any] = {
            "key": attribute["key"],
            "type": attribute["type"],
            "status": "available",
            "error": "",
            "required": attribute.get("required", False),
            "array": attribute.get("array", False),
            "default": attribute.get("default"),
            "$createdAt": "2024-01-01T00:00:00.000+00:00",
            "$updatedAt": "2024-01-01T00:00:00.000+00:00",
        }
        if attribute["type"] == "string":
            stored["size"] = attribute.get("size")
            stored["format"] = attribute.get("format") or ""
            stored["encrypt"] = attribute.get("encrypt", False)
        elif attribute["type"] == "relationship":
            stored.update(
                {
                    f"related{self.flavor.container.capitalize()}": attribute.get("relatedTable")
                    or attribute.get("relatedCollection"),
                    "relationType": attribute.get("relationType"),
                    "twoWay": attribute.get("twoWay", False),
                    "twoWayKey": attribute.get("twoWayKey"),
                    "onDelete": attribute.get("onDelete", "restrict"),
                    "side": attribute.get("side"),
                }
            )
        return stored

    # SchemaPort

    async def list_databases(self, queries: list[str] | None = None) -> dict[str, Any]:
        items = list(self.databases.values())
        return {"total": len(items), "databases": copy.deepcopy(items)}

    async def get_database(self, database_id: str) -> dict[str, Any]:
        if database_id not in self.databases:
            raise NotFoundError("Database not found")
        return dict(self.databases[database_id])

    async def create_database(self, database_id: str, name: str, enabled: bool = True) -> dict[str, Any]:
        self.calls.append(("create_database", database_id))
        self.add_database(database_id, name, enabled)
        return dict(self.databases[database_id])

    async def update_database(self, database_id: str, name: str, enabled: bool = True) -> dict[str, Any]:
        self.calls.append(("update_database", database_id))
        self.add_database(database_id, name, enabled)
        return dict(self.databases[database_id])

    async def delete_database(self, database_id: str) -> None:
        self.calls.append(("delete_database", database_id))
        self.databases.pop(database_id, None)
        for key in [k for k in self.containers if k[0] == database_id]:
            del self.containers[key]

    async def list_containers(self, database_id: str, queries: list[str] | None = None) -> dict[str, Any]:
        if database_id not in self.databases:
            raise NotFoundError("Database not found")
        items = [copy.deepcopy(c) for (db, _), c in self.containers.items() if db == database_id]
        return {"total": len(items), self.flavor.containers: items}

    async def get_container(self, database_id: str, container_id: str) -> dict[str, Any]:
        return copy.deepcopy(self._container(database_id, container_id))

    async def create_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> dict[str, Any]:
        self.calls.append(("create_container", database_id, container_id))
        self.add_container(database_id, container_id, name, security=security, permissions=permissions)
        return copy.deepcopy(self.containers[(database_id, container_id)])

    async def update_container(
        self,
        database_id: str,
        container_id: str,
        name: str,
        security: bool,
        permissions: list[str],
        enabled: bool = True,
    ) -> dict[str, Any]:
        self.calls.append(("update_container", database_id, container_id))
        container = self._container(database_id, container_id)
        container.update(
            {"name": name, self.flavor.security_param: security, "$permissions": permissions, "enabled": enabled}
        )
        return copy.deepcopy(container)

    async def delete_container(self, database_id: str, container_id: str) -> None:
        self.calls.append(("delete_container", database_id, container_id))
        self._container(database_id, container_id)
        del self.containers[(database_id, container_id)]

    async def list_attributes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> dict[str, Any]:
        items = copy.deepcopy(self._container(database_id, container_id)[self.flavor.attributes])
        return {"total": len(items), self.flavor.attributes: items}

    async def create_attribute(self, database_id: str, container_id: str, attribute: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create_attribute", container_id, attribute["key"]))
        attrs = self._container(database_id, container_id)[self.flavor.attributes]
        attrs.append(self._as_stored(attribute))
        return dict(attribute)

    async def update_attribute(self, database_id: str, container_id: str, attribute: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update_attribute", container_id, attribute["key"]))
        attrs = self._container(database_id, container_id)[self.flavor.attributes]
        for i, existing in enumerate(attrs):
            if existing["key"] == attribute["key"]:
                attrs[i] = self._as_stored(attribute)
        return dict(attribute)

    async def delete_attribute(self, database_id: str, container_id: str, key: str) -> None:
        self.calls.append(("delete_attribute", container_id, key))
        container = self._container(database_id, container_id)
        container[self.flavor.attributes] = [a for a in container[self.flavor.attributes] if a["key"] != key]

    async def list_indexes(
        self, database_id: str, container_id: str, queries: list[str] | None = None
    ) -> dict[str, Any]:
        items = copy.deepcopy(self._container(database_id, container_id)["indexes"])
        return {"total": len(items), "indexes": items}

    async def create_index(
        self,
        database_id: str,
        container_id: str,
        key: str,
        index_type: str,
        fields: list[str],
        orders: list[str] | None = None,
    ) -> dict[str, Any]:
        self.calls.append(("create_index", container_id, key))
        index = {
            "key": key,
            "type": index_type,
            self.flavor.index_fields_param: fields,
            "orders": orders or [],
            "lengths": [],
            "status": "available",
            "error": "",
        }
        self._container(database_id, container_id)["indexes"].append(index)
        return dict(index)

    async def delete_index(self, database_id: str, container_id: str, key: str) -> None:
        self.calls.append(("delete_index", container_id, key))
        container = self._container(database_id, container_id)
        container["indexes"] = [i for i in container["indexes"] if i["key"] != key]


@pytest.fixture
def collections_schema() -> FakeSchema:
    return FakeSchema(COLLECTIONS)


@pytest.fixture
def tables_schema() -> FakeSchema:
    return FakeSchema(TABLES)


@pytest.fixture
def waiter() -> RemoteWaiter:
    return RemoteWaiter(Poller(interval=0.0, max_iterations=3, sleep=_no_sleep))


@pytest.fixture
def store(tmp_path: Path) -> ManifestStore:
    store = ManifestStore(tmp_path / "appwrite.json")
    store.set_project("demo", "Demo")
    return store


@pytest.fixture
def reporter(console: Console) -> Reporter:
    return Reporter(console)


@pytest.fixture
def make_confirmer(console: Console) -> Callable[..., Confirmer]:
    """Confirmer answering from a script; fails the test if asked more than scripted."""

    def factory(*answers: str, force: bool = False) -> Confirmer:
        remaining = list(answers)

        def prompt(text: str) -> str:
            if not remaining:
                raise AssertionError(f"Unexpected prompt: {text}")
            return remaining.pop(0)

        return Confirmer(force=force, console=console, prompt=prompt)

    return factory
