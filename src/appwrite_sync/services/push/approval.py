"""Top-level field approval before pushing existing resources.

For each declared resource that already exists remotely, a whitelist
of top-level fields is compared with the manifest. Any difference is
shown and must be confirmed before the push goes ahead.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import Any, TypeVar

from appwrite_sync.errors import NotFoundError, SyncError
from appwrite_sync.models.manifest import ManifestModel
from appwrite_sync.models.results import PushResult
from appwrite_sync.services.classifier import is_empty, values_equal
from appwrite_sync.services.confirmation import Confirmer
from appwrite_sync.services.progress import Reporter

FUNCTION_KEYS = frozenset(
    {
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
    }
)
COLLECTION_KEYS = frozenset({"name", "enabled", "documentSecurity", "$permissions"})
TABLE_KEYS = frozenset({"name", "enabled", "rowSecurity", "$permissions"})
BUCKET_KEYS = frozenset(
    {
        "name",
        "enabled",
        "fileSecurity",
        "$permissions",
        "maximumFileSize",
        "allowedFileExtensions",
        "compression",
        "encryption",
        "antivirus",
    }
)
TEAM_KEYS = frozenset({"name"})
TOPIC_KEYS = frozenset({"name", "subscribe"})

Fetch = Callable[[Any], Awaitable[dict[str, Any]]]
M = TypeVar("M", bound=ManifestModel)


def _render(value: Any) -> str:
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return "" if value is None else str(value)


def diff_fields(
    resource_id: str,
    remote: dict[str, Any],
    local: dict[str, Any],
    keys: Iterable[str],
    skip: Iterable[str] = (),
) -> list[dict[str, str]]:
    """Rows of (id, key, remote, local) for whitelisted fields that differ."""
    skipped = set(skip)
    rows: list[dict[str, str]] = []
    for key in sorted(set(keys) - skipped):
        if key not in remote:
            continue
        remote_value = remote[key]
        local_value = local.get(key)
        if is_empty(remote_value) and is_empty(local_value):
            continue
        if not values_equal(remote_value, local_value):
            rows.append(
                {"id": resource_id, "key": key, "remote": _render(remote_value), "local": _render(local_value)}
            )
    return rows


async def approve_changes(
    resources: Sequence[M],
    fetch: Fetch,
    keys: Iterable[str],
    plural: str,
    confirmer: Confirmer,
    reporter: Reporter,
    result: PushResult,
    skip: Iterable[str] = (),
) -> list[M] | None:
    """
    Confirm top-level changes to existing remote resources.

    Args:
        resources: Declared resources about to be pushed.
        fetch: Gets the remote document for one declared resource.
        keys: Whitelisted top-level fields.
        plural: Resource kind for the summary line, e.g. "buckets".
        confirmer: Asks for consent.
        reporter: Prints the summary when declined.
        result: Collects lookup failures; those resources are left out.
        skip: Fields excluded from the comparison.

    Returns:
        The resources to push, or None when the user declined.
    """
    key_set = frozenset(keys)
    failed: set[int] = set()

    async def changes_for(index: int, resource: M) -> list[dict[str, str]]:
        local = resource.to_payload()
        resource_id = str(local.get("$id", ""))
        try:
            remote = await fetch(resource)
        except NotFoundError:
            return []
        except SyncError as e:
            failed.add(index)
            result.errors.append(e)
            reporter.error(f"Failed to check {local.get('name', resource_id)} ( {resource_id} ): {e}")
            return []
        return diff_fields(resource_id, remote, local, key_set, skip)

    reporter.log("Checking for changes ...")
    per_resource = await asyncio.gather(*(changes_for(i, r) for i, r in enumerate(resources)))
    remaining = [r for i, r in enumerate(resources) if i not in failed]
    rows = [row for rows in per_resource for row in rows]
    if not rows:
        return remaining

    confirmer.show_table(rows)
    if confirmer.confirm():
        return remaining

    reporter.success(f"Successfully pushed 0 {plural}.")
    return None
