"""Tests for manifest models."""

import pytest
from pydantic import ValidationError

from appwrite_sync.models.changes import ChangeAction, ChangeRecord, ChangeSet
from appwrite_sync.models.manifest import Attribute, Collection, Function, Index, Manifest, Table
from appwrite_sync.models.results import FailedDeployment, PushResult
from appwrite_sync.models.schema import COLLECTIONS, TABLES


class TestAttribute:
    def test_camel_case_aliases(self) -> None:
        attribute = Attribute.model_validate(
            {"key": "author", "type": "relationship", "relatedCollection": "authors", "twoWay": False}
        )
        assert attribute.related_collection == "authors"
        assert attribute.two_way is False

    def test_payload_drops_unset_values(self) -> None:
        payload = Attribute(key="title", type="string", size=255).to_payload()
        assert payload == {
            "key": "title",
            "type": "string",
            "required": False,
            "array": False,
            "size": 255,
            "twoWay": False,
            "encrypt": False,
        }

    def test_required_with_default_rejected(self) -> None:
        with pytest.raises(ValidationError, match="default"):
            Attribute(key="title", type="string", required=True, default="x")

    def test_child_side(self) -> None:
        assert Attribute(key="book", type="relationship", side="child").is_child_side
        assert not Attribute(key="book", type="relationship", side="parent").is_child_side


class TestContainers:
    def test_collection_from_remote_payload(self) -> None:
        collection = Collection.model_validate(
            {
                "$id": "books",
                "$permissions": ['read("any")'],
                "$createdAt": "2024-01-01T00:00:00.000+00:00",
                "databaseId": "library",
                "name": "Books",
                "documentSecurity": False,
                "attributes": [{"key": "title", "type": "string", "size": 64, "status": "available"}],
                "indexes": [{"key": "by_title", "type": "key", "attributes": ["title"]}],
            }
        )
        assert collection.id == "books"
        assert collection.permissions == ['read("any")']
        assert collection.document_security is False
        assert collection.indexes[0].field_keys == ["title"]

    def test_duplicate_attribute_keys_rejected(self) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            Collection.model_validate(
                {
                    "$id": "books",
                    "databaseId": "library",
                    "name": "Books",
                    "attributes": [{"key": "title", "type": "string"}, {"key": "title", "type": "integer"}],
                }
            )

    def test_duplicate_index_keys_rejected_for_tables(self) -> None:
        with pytest.raises(ValidationError, match="Index"):
            Table.model_validate(
                {
                    "$id": "books",
                    "databaseId": "library",
                    "name": "Books",
                    "indexes": [
                        {"key": "i", "type": "key", "columns": ["a"]},
                        {"key": "i", "type": "key", "columns": ["b"]},
                    ],
                }
            )

    def test_index_field_keys_prefers_columns(self) -> None:
        index = Index(key="i", type="key", columns=["a", "b"])
        assert index.field_keys == ["a", "b"]


class TestManifest:
    def test_tables_db_alias(self) -> None:
        manifest = Manifest.model_validate({"tablesDB": [{"$id": "main", "name": "Main"}]})
        assert manifest.tables_db[0].id == "main"
        assert "tablesDB" in manifest.to_payload()

    def test_unknown_keys_ignored(self) -> None:
        manifest = Manifest.model_validate({"projectId": "p1", "sites": []})
        assert manifest.project_id == "p1"

    def test_function_defaults(self) -> None:
        function = Function.model_validate({"$id": "hello", "name": "Hello"})
        assert function.timeout == 15
        assert function.variables == {}
        assert function.ignore is None


class TestChangeSet:
    def _record(self, action: ChangeAction) -> ChangeRecord:
        return ChangeRecord("k in c", {"key": "k"}, "reason", action)

    def test_records_in_display_order(self) -> None:
        changes = ChangeSet(
            deleting=[self._record(ChangeAction.DELETING)],
            adding=[self._record(ChangeAction.ADDING)],
            conflicts=[self._record(ChangeAction.RECREATING)],
            changes=[self._record(ChangeAction.CHANGING)],
        )
        assert [r.action for r in changes.records] == [
            ChangeAction.DELETING,
            ChangeAction.ADDING,
            ChangeAction.RECREATING,
            ChangeAction.CHANGING,
        ]

    def test_only_destructive_changes_require_confirmation(self) -> None:
        assert not ChangeSet(adding=[self._record(ChangeAction.ADDING)]).requires_confirmation
        assert not ChangeSet(changes=[self._record(ChangeAction.CHANGING)]).requires_confirmation
        assert ChangeSet(deleting=[self._record(ChangeAction.DELETING)]).requires_confirmation
        assert ChangeSet(conflicts=[self._record(ChangeAction.RECREATING)]).requires_confirmation

    def test_empty(self) -> None:
        assert ChangeSet(unchanged=["a"]).is_empty
        assert self._record(ChangeAction.ADDING).attribute_key == "k"


class TestPushResult:
    def test_merge(self) -> None:
        first = PushResult(successfully_pushed=1, errors=[ValueError("a")])
        second = PushResult(
            successfully_pushed=2,
            successfully_deployed=1,
            failed_deployments=[FailedDeployment("Hello", "hello", "d1")],
        )
        merged = first.merge(second)
        assert merged is first
        assert merged.successfully_pushed == 3
        assert merged.successfully_deployed == 1
        assert len(merged.errors) == 1
        assert merged.failed_deployments[0].deployment_id == "d1"


def test_schema_flavors() -> None:
    assert COLLECTIONS.attribute_title == "Attribute"
    assert TABLES.attribute_title == "Column"
    assert TABLES.base_path == "/tablesdb"
    assert COLLECTIONS.security_param == "documentSecurity"
