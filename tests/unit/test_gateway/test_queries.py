"""Tests for query builders and pagination."""

import json
from unittest.mock import AsyncMock

import pytest

from appwrite_sync.gateway.queries import Query, paginate


class TestQuery:
    def test_limit_and_offset(self) -> None:
        assert json.loads(Query.limit(25)) == {"method": "limit", "values": [25]}
        assert json.loads(Query.offset(50)) == {"method": "offset", "values": [50]}

    def test_equal_wraps_scalars(self) -> None:
        assert json.loads(Query.equal("key", "name")) == {"method": "equal", "attribute": "key", "values": ["name"]}
        assert json.loads(Query.equal("key", ["a", "b"]))["values"] == ["a", "b"]

    def test_not_equal(self) -> None:
        assert json.loads(Query.not_equal("status", "available"))["method"] == "notEqual"

    def test_order_desc_has_no_values(self) -> None:
        assert json.loads(Query.order_desc("$createdAt")) == {"method": "orderDesc", "attribute": "$createdAt"}

    def test_compact_encoding(self) -> None:
        assert " " not in Query.equal("key", "a b".split())


class TestPaginate:
    @pytest.mark.asyncio
    async def test_collects_every_page(self) -> None:
        fetch = AsyncMock(
            side_effect=[
                {"total": 3, "teams": [{"$id": "a"}, {"$id": "b"}]},
                {"total": 3, "teams": [{"$id": "c"}]},
            ]
        )

        items = await paginate(fetch, "teams", limit=2)

        assert [item["$id"] for item in items] == ["a", "b", "c"]
        first, second = (call.args[0] for call in fetch.await_args_list)
        assert first == [Query.limit(2), Query.offset(0)]
        assert second == [Query.limit(2), Query.offset(2)]

    @pytest.mark.asyncio
    async def test_extra_queries_sent_with_every_page(self) -> None:
        fetch = AsyncMock(return_value={"total": 1, "columns": [{"key": "title"}]})
        extra = [Query.equal("status", "available")]

        await paginate(fetch, "columns", queries=extra)

        assert fetch.await_args.args[0][0] == extra[0]

    @pytest.mark.asyncio
    async def test_stops_on_empty_page(self) -> None:
        # total can overstate the list while deletions are in flight
        fetch = AsyncMock(side_effect=[{"total": 5, "indexes": [{"key": "a"}]}, {"total": 5, "indexes": []}])

        items = await paginate(fetch, "indexes")

        assert items == [{"key": "a"}]
        assert fetch.await_count == 2
