"""Query strings and pagination for list endpoints."""

import json
from collections.abc import Awaitable, Callable
from typing import Any


class Query:
    """Builders for the JSON-encoded `queries[]` list parameters."""

    @staticmethod
    def _build(method: str, attribute: str | None = None, values: list[Any] | None = None) -> str:
        query: dict[str, Any] = {"method": method}
        if attribute is not None:
            query["attribute"] = attribute
        if values is not None:
            query["values"] = values
        return json.dumps(query, separators=(",", ":"))

    @staticmethod
    def limit(value: int) -> str:
        return Query._build("limit", values=[value])

    @staticmethod
    def offset(value: int) -> str:
        return Query._build("offset", values=[value])

    @staticmethod
    def equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return Query._build("equal", attribute, values)

    @staticmethod
    def not_equal(attribute: str, value: Any) -> str:
        values = value if isinstance(value, list) else [value]
        return Query._build("notEqual", attribute, values)

    @staticmethod
    def order_desc(attribute: str) -> str:
        return Query._build("orderDesc", attribute)


ListFetch = Callable[[list[str]], Awaitable[dict[str, Any]]]


async def paginate(
    fetch: ListFetch, key: str, limit: int = 100, queries: list[str] | None = None
) -> list[dict[str, Any]]:
    """
    Collect every item of a list endpoint.

    Args:
        fetch: Called with the page queries; returns `{"total": n, key: [...]}`.
        key: Name of the item list in the response.
        limit: Page size.
        queries: Extra queries sent with every page.

    Returns:
        All items, in server order.
    """
    items: list[dict[str, Any]] = []
    offset = 0
    while True:
        response = await fetch([*(queries or []), Query.limit(limit), Query.offset(offset)])
        page = response.get(key, [])
        items.extend(page)
        offset += len(page)
        if not page or offset >= int(response.get("total", 0)):
            return items
