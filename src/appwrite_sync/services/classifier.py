"""Change classification for attributes and indexes.

Compares the remote attribute (or index) list of one collection with
the declared list and partitions every key into exactly one of:
deleting, adding, conflicts (delete then recreate), changes (update in
place) or unchanged. Pure: no remote calls.
"""

import json
import math
from collections.abc import Iterable, Mapping
from typing import Any

from appwrite_sync.models.changes import ChangeAction, ChangeRecord, ChangeSet

# Only these fields take part in a comparison
COMPARABLE_FIELDS: frozenset[str] = frozenset(
    {
        "key",
        "type",
        "required",
        "array",
        "size",
        "default",
        "min",
        "max",
        "format",
        "elements",
        "relatedCollection",
        "relatedTable",
        "relationType",
        "twoWay",
        "twoWayKey",
        "onDelete",
        "side",
        "attributes",
        "columns",
        "orders",
        "encrypt",
    }
)

# Fields the backend can alter in place
CHANGEABLE_FIELDS: frozenset[str] = frozenset(
    {"status", "required", "xdefault", "elements", "min", "max", "default", "error"}
)

REASON_NOT_IN_MANIFEST = "Field doesn't exist in manifest"
REASON_NOT_ON_REMOTE = "Field doesn't exist on the remote server"

_EPSILON = 2.220446049250313e-16

Attr = Mapping[str, Any]


def is_empty(value: Any) -> bool:
    """None, blank strings and empty lists are all "unset"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, list | tuple):
        return len(value) == 0
    return False


def values_equal(remote: Any, local: Any) -> bool:
    """
    Compare two field values the way the remote API round-trips them.

    Lists compare by their JSON rendering (order matters). Numbers
    compare with float tolerance, NaN equal to NaN. Booleans never
    equal numbers.
    """
    if isinstance(remote, list) and isinstance(local, list):
        return json.dumps(remote, sort_keys=True) == json.dumps(local, sort_keys=True)
    if isinstance(remote, bool) or isinstance(local, bool):
        return type(remote) is type(local) and remote == local
    if isinstance(remote, int | float) and isinstance(local, int | float):
        if math.isnan(remote) and math.isnan(local):
            return True
        if math.isinf(remote) or math.isinf(local):
            return remote == local
        return abs(remote - local) < _EPSILON
    return remote == local


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return str(value)


def field_changes(remote: Attr, local: Attr, fields: Iterable[str]) -> list[str]:
    """Describe each differing field as "<field> changed from <remote> to <local>"."""
    lines: list[str] = []
    for name in fields:
        remote_value = remote.get(name)
        local_value = local.get(name)
        if is_empty(remote_value) and is_empty(local_value):
            continue
        if not values_equal(remote_value, local_value):
            lines.append(f"{name} changed from {_describe(remote_value)} to {_describe(local_value)}")
    return lines


def _compared(remote: Attr, changeable: bool) -> list[str]:
    # Iterate remote keys only; status/error/xdefault are never compared
    return [
        name
        for name in remote
        if name in COMPARABLE_FIELDS and (name in CHANGEABLE_FIELDS) == changeable
    ]


def key_label(key: str, owner: str) -> str:
    return f"{key} in {owner}"


def classify(remote: Iterable[Attr], local: Iterable[Attr], owner: str) -> ChangeSet:
    """
    Partition remote and declared attributes (or indexes) of one collection.

    Args:
        remote: Attribute documents as returned by the remote API.
        local: Declared attribute payloads (camelCase keys).
        owner: Label for the collection, e.g. "Books (books)".

    Returns:
        ChangeSet where every key appears in exactly one partition.
        Conflicts carry the remote definition (it is what gets deleted);
        changes carry the local one (it is what gets applied).
    """
    remote_list = list(remote)
    local_by_key = {str(a["key"]): a for a in local}
    remote_keys = {str(a["key"]) for a in remote_list}
    result = ChangeSet()

    for attr in remote_list:
        key = str(attr["key"])
        declared = local_by_key.get(key)
        if declared is None:
            result.deleting.append(
                ChangeRecord(key_label(key, owner), dict(attr), REASON_NOT_IN_MANIFEST, ChangeAction.DELETING)
            )
            continue

        immutable = field_changes(attr, declared, _compared(attr, changeable=False))
        if immutable:
            result.conflicts.append(
                ChangeRecord(key_label(key, owner), dict(attr), "\n".join(immutable), ChangeAction.RECREATING)
            )
            continue

        mutable = field_changes(attr, declared, _compared(attr, changeable=True))
        if mutable:
            result.changes.append(
                ChangeRecord(key_label(key, owner), dict(declared), "\n".join(mutable), ChangeAction.CHANGING)
            )
        else:
            result.unchanged.append(key)

    for key, declared in local_by_key.items():
        if key not in remote_keys:
            result.adding.append(
                ChangeRecord(key_label(key, owner), dict(declared), REASON_NOT_ON_REMOTE, ChangeAction.ADDING)
            )

    return result
