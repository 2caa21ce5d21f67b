"""Change records produced by the change classifier."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ChangeAction(StrEnum):
    """What will happen to an attribute or index."""

    ADDING = "adding"
    DELETING = "deleting"
    CHANGING = "changing"
    RECREATING = "recreating"


@dataclass(frozen=True)
class ChangeRecord:
    """
    One pending change to an attribute or index.

    `key` is the human-readable label shown to the user; the attribute
    payload carries the real key. For recreations the payload is the
    remote definition (it is what gets deleted), otherwise the local one.
    """

    key: str
    attribute: dict[str, Any]
    reason: str
    action: ChangeAction

    @property
    def attribute_key(self) -> str:
        return str(self.attribute["key"])


@dataclass
class ChangeSet:
    """Partition of one collection's attributes (or indexes)."""

    deleting: list[ChangeRecord] = field(default_factory=list)
    adding: list[ChangeRecord] = field(default_factory=list)
    conflicts: list[ChangeRecord] = field(default_factory=list)
    changes: list[ChangeRecord] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def records(self) -> list[ChangeRecord]:
        """All pending changes in display order."""
        return [*self.deleting, *self.adding, *self.conflicts, *self.changes]

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def requires_confirmation(self) -> bool:
        """Destructive changes need explicit consent unless forced."""
        return bool(self.deleting or self.conflicts)
